"""Domain data models: raw issue records, activity updates and the report tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from .config import EPIC_ISSUE_TYPE

# Sentinel for "no activity" timestamps
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

UpdateKind = Literal["comment", "worklog"]


# =============================================================================
# Rich-text bodies
# =============================================================================
@dataclass(frozen=True, slots=True)
class PlainText:
    text: str


@dataclass(frozen=True, slots=True)
class StructuredDocument:
    """Atlassian Document Format tree (nested ``content`` nodes with typed leaves)."""

    node: dict[str, Any]


RichText = PlainText | StructuredDocument


# =============================================================================
# Raw issue input
# =============================================================================
@dataclass(slots=True)
class ActivityModel:
    author: str
    created: str | None
    body: RichText
    time_spent: str | None = None


@dataclass(slots=True)
class IssueRecord:
    key: str
    summary: str
    status: str
    issuetype: str
    parent_key: str | None = None
    comments: list[ActivityModel] = field(default_factory=list)
    worklogs: list[ActivityModel] = field(default_factory=list)

    @property
    def is_epic(self) -> bool:
        return self.issuetype == EPIC_ISSUE_TYPE


# =============================================================================
# Resolved tree
# =============================================================================
@dataclass(frozen=True, slots=True)
class Update:
    time: datetime
    author: str
    kind: UpdateKind
    content: str
    time_spent: str | None = None


@dataclass(slots=True)
class IssueUpdate:
    key: str
    summary: str
    status: str
    issuetype: str
    url: str
    updates: list[Update] = field(default_factory=list)
    last_updated: datetime = EPOCH
    subtasks: list[IssueUpdate] = field(default_factory=list)
    added_to_report: bool = False


@dataclass(slots=True)
class EpicGroup:
    key: str
    summary: str
    status: str
    url: str
    issues: list[IssueUpdate] = field(default_factory=list)


@dataclass(slots=True)
class ResolvedTree:
    epic_groups: dict[str, EpicGroup] = field(default_factory=dict)
    standalone: list[IssueUpdate] = field(default_factory=list)


# =============================================================================
# Presentation-agnostic document
# =============================================================================
@dataclass(frozen=True, slots=True)
class UpdateLine:
    time_label: str
    author: str
    kind: UpdateKind
    text: str
    time_spent: str | None = None

    @property
    def action(self) -> str:
        if self.kind == "worklog":
            return f"log work {self.time_spent or ''}".rstrip()
        return "commented"

    def describe(self) -> str:
        return f"{self.time_label} → {self.author} {self.action}: {self.text}"


@dataclass(slots=True)
class IssueSection:
    key: str
    issuetype: str
    status: str
    summary: str
    url: str
    last_updated: datetime
    lines: list[UpdateLine] = field(default_factory=list)
    subtasks: list[IssueSection] = field(default_factory=list)


@dataclass(slots=True)
class EpicSection:
    key: str
    status: str
    summary: str
    url: str
    issues: list[IssueSection] = field(default_factory=list)


@dataclass(slots=True)
class ReportDocument:
    title: str
    subtitle: str
    generated_at: datetime
    timezone: str
    epics: list[EpicSection] = field(default_factory=list)
    standalone: list[IssueSection] = field(default_factory=list)

    def iter_issue_keys(self) -> list[str]:
        """Every issue key in display order (epics first, then standalone)."""
        keys: list[str] = []

        def walk(section: IssueSection) -> None:
            keys.append(section.key)
            for sub in section.subtasks:
                walk(sub)

        for epic in self.epics:
            for issue in epic.issues:
                walk(issue)
        for issue in self.standalone:
            walk(issue)
        return keys

    @property
    def is_empty(self) -> bool:
        return not self.epics and not self.standalone
