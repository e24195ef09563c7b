"""ReportService: orchestrates search, hierarchy resolution, assembly and rendering."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jira_report.visual.adaptive_card import render_adaptive_card
from jira_report.visual.html import render_html
from jira_report.visual.markdown import render_markdown

from .assembler import assemble, build_subtitle
from .config import MAX_SEARCH_RESULTS, SEARCH_EXPAND, SEARCH_FIELDS, PayloadFormat, QueryType, ReportConfig
from .errors import GenerateReportError, InvalidQueryTypeError, JiraRequestError, SearchIssuesError
from .hierarchy import HierarchyResolver
from .jira_client import JiraAPI
from .mappers import as_utc
from .models import ReportDocument
from .publisher import WebhookPublisher

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


@dataclass(slots=True)
class Report:
    document: ReportDocument
    markdown: str
    html: str
    card: dict[str, Any]


def project_hours_jql(project: str, hours: int) -> str:
    return f"project = {project} AND updated >= -{hours}h ORDER BY updated DESC"


def api_from_config(config: ReportConfig) -> JiraAPI:
    """Jira client for ``config``; only the connection settings are checked."""
    config.validate_connection()
    return JiraAPI(
        config.host,
        config.jira_username,
        config.jira_password,
        timeout=config.request_timeout,
    )


class ReportService:
    def __init__(self, api: JiraAPI, config: ReportConfig):
        self.api = api
        self.config = config

    @classmethod
    def from_config(cls, config: ReportConfig) -> ReportService:
        config.validate()
        return cls(api_from_config(config), config)

    # ------------------ Query ------------------
    def build_query(self) -> tuple[str, str]:
        """Return ``(jql, filter_name)`` for the configured query mode."""
        query_type = self.config.query_type
        if query_type == QueryType.PROJECT_HOURS:
            return project_hours_jql(self.config.jira_project, self.config.lookback_hours), ""
        if query_type == QueryType.CUSTOM_JQL:
            return self.config.custom_jql, ""
        if query_type == QueryType.FILTER:
            saved = self.api.get_filter(self.config.filter_id)
            return saved.jql, saved.name
        raise InvalidQueryTypeError(str(query_type))

    # ------------------ Pipeline ------------------
    def generate(
        self,
        now: datetime | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> Report:
        now = as_utc(now) if now else datetime.now(UTC)
        lookback_time = now - timedelta(hours=self.config.lookback_hours)

        if progress:
            progress("Querying Jira for recently updated issues", None, None)
        try:
            jql, filter_name = self.build_query()
            logger.info("Searching issues with JQL: %s", jql)
            page = self.api.search_page(
                jql,
                max_results=MAX_SEARCH_RESULTS,
                fields=SEARCH_FIELDS,
                expand=SEARCH_EXPAND,
            )
        except (JiraRequestError, InvalidQueryTypeError) as exc:
            raise SearchIssuesError(str(exc)) from exc
        logger.info("Search returned %d issue(s) (total %d, last page: %s)", len(page.issues), page.total, page.is_last)

        try:
            resolver = HierarchyResolver(self.api, lookback_time, now=now, progress=progress)
            tree = resolver.resolve(page.issues)
            if progress:
                progress("Assembling report", None, None)
            document = assemble(
                tree.epic_groups,
                tree.standalone,
                now,
                self.config.timezone,
                subtitle=build_subtitle(self.config, filter_name),
            )
            return Report(
                document=document,
                markdown=render_markdown(document),
                html=render_html(document),
                card=render_adaptive_card(document),
            )
        except Exception as exc:
            raise GenerateReportError(str(exc)) from exc

    def publish(self, report: Report) -> None:
        """Post ``report`` to the configured webhook in the configured payload format."""
        publisher = WebhookPublisher(self.config.webhook_url, timeout=self.config.request_timeout)
        if self.config.payload_format == PayloadFormat.HTML:
            publisher.publish_html(report.html)
        else:
            publisher.publish_card(report.card)
