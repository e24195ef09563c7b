"""Mapping raw Jira issue JSON into IssueRecord instances (and reports into DataFrames)."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pandas as pd

from .adf import parse_body
from .models import ActivityModel, IssueRecord, IssueSection, ReportDocument


def parse_jira_timestamp(value: Any) -> datetime | None:
    """Parse a Jira timestamp (``2024-09-01T10:00:00.000+0000``) into an aware datetime.

    Returns None when the value is empty or cannot be parsed.
    """
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; aware ones are returned unchanged."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _name(value: Any, attr: str = "name") -> str:
    if isinstance(value, dict):
        return value.get(attr) or ""
    return ""


def _activity(raw: dict[str, Any], body_key: str) -> ActivityModel:
    return ActivityModel(
        author=_name(raw.get("author"), "displayName"),
        created=raw.get("created"),
        body=parse_body(raw.get(body_key)),
        time_spent=raw.get("timeSpent"),
    )


def map_issue(raw: dict[str, Any]) -> IssueRecord:
    fields = raw.get("fields") or {}
    parent = fields.get("parent")
    parent_key = parent.get("key") if isinstance(parent, dict) else None

    comments_raw = (fields.get("comment") or {}).get("comments") or []
    worklogs_raw = (fields.get("worklog") or {}).get("worklogs") or []

    return IssueRecord(
        key=raw.get("key") or "",
        summary=fields.get("summary") or "",
        status=_name(fields.get("status")),
        issuetype=_name(fields.get("issuetype")),
        parent_key=parent_key or None,
        comments=[_activity(c, "body") for c in comments_raw if isinstance(c, dict)],
        worklogs=[_activity(w, "comment") for w in worklogs_raw if isinstance(w, dict)],
    )


def document_to_dataframe(document: ReportDocument) -> pd.DataFrame:
    """Flatten a report into one row per update line (issues without lines get one empty row)."""
    rows: list[dict[str, Any]] = []

    def walk(section: IssueSection, epic: str, parent: str) -> None:
        base = {
            "epic": epic,
            "parent": parent,
            "key": section.key,
            "issuetype": section.issuetype,
            "status": section.status,
            "summary": section.summary,
            "last_updated": section.last_updated,
        }
        if not section.lines:
            rows.append({**base, "time": "", "author": "", "kind": "", "time_spent": "", "content": ""})
        for line in section.lines:
            rows.append(
                {
                    **base,
                    "time": line.time_label,
                    "author": line.author,
                    "kind": line.kind,
                    "time_spent": line.time_spent or "",
                    "content": line.text,
                }
            )
        for sub in section.subtasks:
            walk(sub, epic, section.key)

    for epic in document.epics:
        for issue in epic.issues:
            walk(issue, epic.key, "")
    for issue in document.standalone:
        walk(issue, "", "")
    return pd.DataFrame(
        rows,
        columns=[
            "epic",
            "parent",
            "key",
            "issuetype",
            "status",
            "summary",
            "last_updated",
            "time",
            "author",
            "kind",
            "time_spent",
            "content",
        ],
    )
