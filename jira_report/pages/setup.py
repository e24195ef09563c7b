"""Connection setup page: collect Jira credentials and query mode, build ReportService."""

from __future__ import annotations

import streamlit as st

from jira_report.app import register_page
from jira_report.core.config import DEFAULT_LOOKBACK_HOURS, QueryType, ReportConfig
from jira_report.core.errors import ConfigError, JiraRequestError
from jira_report.core.service import ReportService, api_from_config

QUERY_LABELS = {
    QueryType.PROJECT_HOURS: "Project + lookback hours",
    QueryType.CUSTOM_JQL: "Custom JQL",
    QueryType.FILTER: "Saved filter",
}


def secrets_config() -> ReportConfig:
    """Build a config from Streamlit secrets ([jira] section or top level), then env vars."""
    jira_secrets = st.secrets.get("jira", {})
    values = {}
    for name in ("JIRA_HOST", "JIRA_USERNAME", "JIRA_PASSWORD", "WEBHOOK_URL", "REPORT_TIMEZONE"):
        value = jira_secrets.get(name) or st.secrets.get(name)
        if value:
            values[name] = str(value)
    return ReportConfig.from_env(values, base=ReportConfig.from_env())


def _project_picker(config: ReportConfig, default: str) -> str:
    """Project key input backed by recent projects and a name search."""
    options: dict[str, str] = {}
    try:
        api = api_from_config(config)
        query = st.text_input("Search projects", value="", help="Leave empty to show recently viewed projects")
        projects = api.search_projects(query).projects if query else api.get_recent_projects()
        options = {p.key: f"{p.key} - {p.name}" for p in projects}
    except (ConfigError, JiraRequestError) as exc:
        st.caption(f"Project list unavailable ({exc}).")
    if not options:
        return st.text_input("Project key", value=default)
    keys = list(options)
    index = keys.index(default) if default in keys else 0
    return st.selectbox("Project", keys, index=index, format_func=options.get)


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    current: ReportConfig = st.session_state.get("report_config") or secrets_config()

    host = st.text_input("Jira Host URL", value=current.jira_host)
    username = st.text_input("Email / Username (leave empty for a bare token)", value=current.jira_username)
    password = st.text_input("API Token / Password", type="password", value=current.jira_password)
    webhook = st.text_input("Teams Webhook URL", value=current.webhook_url)
    timezone = st.text_input("Report timezone (IANA name)", value=current.timezone)

    modes = list(QUERY_LABELS)
    query_type = st.radio(
        "Query mode",
        modes,
        index=modes.index(QueryType(current.query_type)),
        format_func=lambda q: QUERY_LABELS[q],
    )
    hours = st.number_input(
        "Lookback hours",
        min_value=1,
        max_value=24 * 14,
        value=current.lookback_hours or DEFAULT_LOOKBACK_HOURS,
    )
    project = custom_jql = filter_id = ""
    if query_type is QueryType.PROJECT_HOURS:
        connection = current.with_overrides(jira_host=host, jira_username=username, jira_password=password)
        project = _project_picker(connection, current.jira_project)
    elif query_type is QueryType.CUSTOM_JQL:
        custom_jql = st.text_area("JQL", value=current.custom_jql)
    else:
        filter_id = st.text_input("Filter ID", value=current.filter_id)

    if st.button("Initialize Connection", type="primary"):
        config = current.with_overrides(
            jira_host=host,
            jira_username=username,
            jira_password=password,
            webhook_url=webhook,
            timezone=timezone,
            query_type=query_type,
            lookback_hours=int(hours),
            jira_project=project,
            custom_jql=custom_jql,
            filter_id=filter_id,
        )
        try:
            st.session_state["report_service"] = ReportService.from_config(config)
            st.session_state["report_config"] = config
            st.success("Connection initialized.")
        except ConfigError as exc:
            st.error(f"Configuration error: {exc}")

    if "report_service" in st.session_state:
        st.info("ReportService ready.")
