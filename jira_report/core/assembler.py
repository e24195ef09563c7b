"""Turn a resolved issue tree into a sorted, presentation-agnostic ReportDocument."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, tzinfo

import pytz

from .config import (
    DEFAULT_TIMEZONE,
    ELLIPSIS,
    MAX_CONTENT_LENGTH,
    REPORT_DATE_FORMAT,
    REPORT_TITLE_PREFIX,
    UPDATE_TIME_FORMAT,
    QueryType,
    ReportConfig,
)
from .mappers import as_utc
from .models import EpicGroup, EpicSection, IssueSection, IssueUpdate, ReportDocument, Update, UpdateLine

logger = logging.getLogger(__name__)


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the pytz zone for ``name``, falling back to UTC for empty or unknown names."""
    if not name:
        return pytz.UTC
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, falling back to %s", name, DEFAULT_TIMEZONE)
        return pytz.UTC


def truncate_text(text: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    text = text or ""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def build_subtitle(config: ReportConfig, filter_name: str = "") -> str:
    query_type = config.query_type
    if query_type == QueryType.CUSTOM_JQL:
        return f"From custom JQL: {config.custom_jql}"
    if query_type == QueryType.FILTER:
        return f"From saved filter: {filter_name or '#' + config.filter_id}"
    return f"From last updates in the last {config.lookback_hours} hours in project {config.jira_project}"


def _by_recency(issues: Iterable[IssueUpdate]) -> list[IssueUpdate]:
    return sorted(issues, key=lambda i: i.last_updated, reverse=True)


def _line(update: Update, tz: tzinfo) -> UpdateLine:
    return UpdateLine(
        time_label=update.time.astimezone(tz).strftime(UPDATE_TIME_FORMAT),
        author=update.author,
        kind=update.kind,
        text=truncate_text(update.content),
        time_spent=update.time_spent,
    )


def _issue_section(issue: IssueUpdate, tz: tzinfo) -> IssueSection:
    return IssueSection(
        key=issue.key,
        issuetype=issue.issuetype,
        status=issue.status,
        summary=issue.summary,
        url=issue.url,
        last_updated=issue.last_updated,
        lines=[_line(u, tz) for u in issue.updates],
        subtasks=[_issue_section(sub, tz) for sub in _by_recency(issue.subtasks)],
    )


def assemble(
    epic_groups: Mapping[str, EpicGroup],
    standalone: Iterable[IssueUpdate],
    now: datetime,
    timezone: str | None,
    subtitle: str = "",
) -> ReportDocument:
    tz = resolve_timezone(timezone)
    local_now = as_utc(now).astimezone(tz)

    epics = [
        EpicSection(
            key=group.key,
            status=group.status,
            summary=group.summary,
            url=group.url,
            issues=[_issue_section(i, tz) for i in _by_recency(group.issues)],
        )
        for _, group in sorted(epic_groups.items())
    ]
    return ReportDocument(
        title=f"{REPORT_TITLE_PREFIX} {local_now.strftime(REPORT_DATE_FORMAT)}",
        subtitle=subtitle,
        generated_at=local_now,
        timezone=str(tz),
        epics=epics,
        standalone=[_issue_section(i, tz) for i in _by_recency(standalone)],
    )
