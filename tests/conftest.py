"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import jira_report` works. Also provides an in-memory
``JiraAPI`` stand-in and a raw issue factory shared by the test modules.
"""

from __future__ import annotations

import copy
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jira_report.core.errors import JiraRequestError  # noqa: E402
from jira_report.core.jira_client import (  # noqa: E402
    IssueTypeStatuses,
    JiraAPI,
    ProjectInfo,
    ProjectPage,
    SavedFilter,
    SearchPage,
)

NOW = datetime(2024, 9, 2, 12, 0, tzinfo=UTC)


def jira_ts(dt: datetime) -> str:
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.000+0000")


def adf(text: str) -> dict:
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }


class FakeJiraAPI(JiraAPI):
    def __init__(
        self,
        issues=None,
        search=None,
        failing=(),
        saved_filter=None,
        search_error=None,
        projects=(),
        statuses=None,
    ):
        self.server = "https://example.atlassian.net"
        self.issues = issues or {}
        self.search = search or []
        self.failing = set(failing)
        self.saved_filter = saved_filter
        self.search_error = search_error
        self.calls: list[tuple[str, tuple | None]] = []
        self.search_calls: list[dict] = []
        self.projects = list(projects)
        self.statuses = statuses or {}

    def search_page(self, jql, max_results=None, fields=None, expand=None):
        self.search_calls.append({"jql": jql, "max_results": max_results, "fields": fields, "expand": expand})
        if self.search_error:
            raise JiraRequestError(self.search_error)
        return SearchPage(issues=copy.deepcopy(self.search), total=len(self.search), is_last=True)

    def fetch_issue_raw(self, issue_key, *, fields=None, expand=None, properties=None):
        self.calls.append((issue_key, tuple(fields) if fields else None))
        if issue_key in self.failing or issue_key not in self.issues:
            raise JiraRequestError(f"Failed to fetch issue {issue_key}: 404")
        return copy.deepcopy(self.issues[issue_key])

    def get_filter(self, filter_id):
        if self.saved_filter is None:
            raise JiraRequestError(f"Failed to get filter {filter_id}: 404")
        return self.saved_filter

    def get_projects(self, expand=None):
        return list(self.projects)

    def search_projects(self, query="", start_at=0, max_results=None):
        matches = [p for p in self.projects if query.lower() in p.name.lower()]
        return ProjectPage(projects=matches, total=len(matches))

    def get_project_statuses(self, project_key):
        if project_key not in self.statuses:
            raise JiraRequestError(f"Statuses for {project_key} failed 404: not found")
        return self.statuses[project_key]


def make_issue(
    key,
    issuetype="Task",
    *,
    status="In Progress",
    summary=None,
    parent=None,
    comments=(),
    worklogs=(),
):
    """Build a raw issue dict shaped like the Jira v3 REST payload.

    ``comments`` items are ``(created, author, body)``; ``worklogs`` items are
    ``(created, author, time_spent, comment)``. ``created`` may be a datetime or
    a raw string.
    """

    def _ts(value):
        return jira_ts(value) if isinstance(value, datetime) else value

    fields = {
        "summary": summary or f"Summary of {key}",
        "status": {"name": status},
        "issuetype": {"name": issuetype},
        "comment": {
            "comments": [
                {"author": {"displayName": author}, "created": _ts(created), "body": body}
                for created, author, body in comments
            ]
        },
        "worklog": {
            "worklogs": [
                {
                    "author": {"displayName": author},
                    "created": _ts(created),
                    "timeSpent": spent,
                    "comment": comment,
                }
                for created, author, spent, comment in worklogs
            ]
        },
    }
    if parent:
        fields["parent"] = {"key": parent}
    return {"key": key, "fields": fields}


@pytest.fixture
def now():
    return NOW


__all__ = [
    "FakeJiraAPI",
    "IssueTypeStatuses",
    "NOW",
    "ProjectInfo",
    "SavedFilter",
    "adf",
    "jira_ts",
    "make_issue",
]
