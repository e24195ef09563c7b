"""Daily report page: generate the digest, preview it, and optionally post it."""

from __future__ import annotations

import json

import streamlit as st

from jira_report.app import register_page
from jira_report.core.errors import PublishError, ReportError
from jira_report.core.mappers import document_to_dataframe
from jira_report.core.service import Report, ReportService
from jira_report.visual.progress import ProgressReporter
from jira_report.visual.tables import render_update_table


@register_page("Daily Report")
def daily_report_page():
    st.title("Daily Report")
    service: ReportService | None = st.session_state.get("report_service")
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return
    st.caption(f"Jira: {service.config.host} | timezone {service.config.timezone}")

    if st.button("Generate Report", type="primary"):
        reporter = ProgressReporter("Generating daily report")
        try:
            report = service.generate(progress=reporter.callback)
        except ReportError as exc:
            reporter.error(str(exc))
            return
        st.session_state["daily_report"] = report
        reporter.complete(report.document)

    report: Report | None = st.session_state.get("daily_report")
    if report is None:
        st.info("No report generated yet.")
        return

    tab_md, tab_table, tab_card = st.tabs(["Markdown", "Updates", "AdaptiveCard"])
    with tab_md:
        if report.document.is_empty:
            st.info("No issue activity in the lookback window.")
        st.markdown(report.markdown)
    with tab_table:
        df = document_to_dataframe(report.document)
        render_update_table(df, service.config.host)
        st.download_button(
            "Download Updates CSV",
            data=df.to_csv(index=False).encode("utf-8"),
            file_name=f"jira_daily_report_{report.document.generated_at:%Y%m%d}.csv",
            mime="text/csv",
        )
    with tab_card:
        st.code(json.dumps(report.card, indent=2, ensure_ascii=False), language="json")

    if st.button("Post to Webhook"):
        try:
            service.publish(report)
            st.success("Report posted.")
        except PublishError as exc:
            st.error(str(exc))
