"""Jira API client wrapper (REST v3: single-page JQL search, issue get, saved filters, projects)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import requests
from jira import JIRA, JIRAError

from .config import DEFAULT_SEARCH_RESULTS, MAX_SEARCH_RESULTS
from .errors import JiraRequestError


@dataclass(slots=True)
class SearchPage:
    issues: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    is_last: bool = True


@dataclass(frozen=True, slots=True)
class SavedFilter:
    jql: str
    name: str


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    id: str
    key: str
    name: str
    project_type: str = ""
    archived: bool = False

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ProjectInfo:
        return cls(
            id=str(raw.get("id") or ""),
            key=raw.get("key") or "",
            name=raw.get("name") or "",
            project_type=raw.get("projectTypeKey") or "",
            archived=bool(raw.get("archived", False)),
        )


@dataclass(slots=True)
class ProjectPage:
    projects: list[ProjectInfo] = field(default_factory=list)
    start_at: int = 0
    total: int = 0
    is_last: bool = True


@dataclass(frozen=True, slots=True)
class IssueTypeStatuses:
    """Workflow statuses available to one issue type of a project."""

    issuetype: str
    statuses: tuple[str, ...] = ()


def clamp_max_results(value: int | None) -> int:
    if value is None or value <= 0 or value > MAX_SEARCH_RESULTS:
        return DEFAULT_SEARCH_RESULTS
    return value


def _csv(values: Sequence[str] | None) -> str | None:
    if not values:
        return None
    return ",".join(values)


def _raw(resource: Any) -> dict[str, Any]:
    if hasattr(resource, "raw"):
        return resource.raw
    if isinstance(resource, dict):
        return resource
    raise JiraRequestError(f"Unexpected payload type: {type(resource)!r}")


class JiraAPI:
    def __init__(self, server: str, username: str, token: str, *, timeout: float | None = None):
        self.server = server.rstrip("/")
        options = {"server": self.server, "rest_api_version": "3"}
        if username:
            self.client = JIRA(
                basic_auth=(username, token), options=options, timeout=timeout, get_server_info=False
            )
        else:
            # Bare personal access token
            self.client = JIRA(token_auth=token, options=options, timeout=timeout, get_server_info=False)

    def browse_url(self, issue_key: str) -> str:
        return f"{self.server}/browse/{issue_key}"

    def _get_json(self, path: str, params: dict[str, Any] | None, action: str) -> Any:
        """GET ``path`` through the client session and decode the JSON body."""
        session = getattr(self.client, "_session", None)
        if session is None:
            raise JiraRequestError("JIRA session unavailable")
        try:
            resp = session.get(f"{self.server}{path}", params=params)
        except (JIRAError, requests.RequestException) as exc:
            raise JiraRequestError(f"{action} request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise JiraRequestError(f"{action} failed {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise JiraRequestError(f"{action} returned a non-JSON body: {resp.text[:200]}") from exc

    # ------------------ Issues ------------------
    def search_page(
        self,
        jql: str,
        max_results: int | None = None,
        fields: Sequence[str] | None = None,
        expand: Sequence[str] | None = None,
    ) -> SearchPage:
        """Run one JQL search request and return its single page of raw issues."""
        params: dict[str, Any] = {"jql": jql, "maxResults": clamp_max_results(max_results)}
        if fields:
            params["fields"] = _csv(fields)
        if expand:
            params["expand"] = _csv(expand)
        data = self._get_json("/rest/api/3/search/jql", params, "Search")
        issues = data.get("issues", []) or []
        total = data.get("total")
        is_last = data.get("isLast")
        if is_last is None:
            is_last = not data.get("nextPageToken")
        return SearchPage(
            issues=issues,
            total=total if isinstance(total, int) else len(issues),
            is_last=bool(is_last),
        )

    def fetch_issue_raw(
        self,
        issue_key: str,
        *,
        fields: Sequence[str] | None = None,
        expand: Sequence[str] | None = None,
        properties: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        try:
            issue = self.client.issue(
                issue_key,
                fields=_csv(fields),
                expand=_csv(expand),
                properties=_csv(properties),
            )
        except (JIRAError, requests.RequestException) as exc:
            raise JiraRequestError(f"Failed to fetch issue {issue_key}: {exc}") from exc
        return _raw(issue)

    def get_filter(self, filter_id: str) -> SavedFilter:
        try:
            saved = self.client.filter(filter_id)
        except (JIRAError, requests.RequestException) as exc:
            raise JiraRequestError(f"Failed to get filter {filter_id}: {exc}") from exc
        raw = getattr(saved, "raw", None) or {}
        return SavedFilter(jql=raw.get("jql") or "", name=raw.get("name") or "")

    # ------------------ Projects (read-only) ------------------
    def get_projects(self, expand: Sequence[str] | None = None) -> list[ProjectInfo]:
        """All projects visible to the authenticated user."""
        try:
            projects = self.client.projects(expand=_csv(expand))
        except (JIRAError, requests.RequestException) as exc:
            raise JiraRequestError(f"Failed to list projects: {exc}") from exc
        return [ProjectInfo.from_raw(_raw(p)) for p in projects]

    def get_project(self, project_key: str, expand: Sequence[str] | None = None) -> ProjectInfo:
        try:
            project = self.client.project(project_key, expand=_csv(expand))
        except (JIRAError, requests.RequestException) as exc:
            raise JiraRequestError(f"Failed to get project {project_key}: {exc}") from exc
        return ProjectInfo.from_raw(_raw(project))

    def search_projects(self, query: str = "", start_at: int = 0, max_results: int | None = None) -> ProjectPage:
        params: dict[str, Any] = {"startAt": max(0, start_at), "maxResults": clamp_max_results(max_results)}
        if query:
            params["query"] = query
        data = self._get_json("/rest/api/3/project/search", params, "Project search")
        values = data.get("values", []) or []
        total = data.get("total")
        return ProjectPage(
            projects=[ProjectInfo.from_raw(v) for v in values],
            start_at=data.get("startAt", params["startAt"]),
            total=total if isinstance(total, int) else len(values),
            is_last=bool(data.get("isLast", True)),
        )

    def get_recent_projects(self) -> list[ProjectInfo]:
        """Up to 20 projects the user viewed most recently."""
        data = self._get_json("/rest/api/3/project/recent", None, "Recent projects")
        return [ProjectInfo.from_raw(p) for p in data or []]

    def get_project_statuses(self, project_key: str) -> list[IssueTypeStatuses]:
        data = self._get_json(f"/rest/api/3/project/{project_key}/statuses", None, f"Statuses for {project_key}")
        return [
            IssueTypeStatuses(
                issuetype=item.get("name") or "",
                statuses=tuple(s.get("name") or "" for s in item.get("statuses", []) or []),
            )
            for item in data or []
        ]
