"""HierarchyResolver: rebuild the Epic -> Task/Story -> Subtask tree from a flat search page.

The search only returns issues that were touched recently. To show them in
context the resolver looks up ancestors on demand:

* an issue whose parent is an Epic goes into that epic's group;
* an issue whose parent is a Task/Story is a subtask and is nested under the
  parent, which is fetched (with its own recent activity) when it was not part
  of the search result, and placed into the grandparent epic's group if any;
* everything else lands in the standalone bucket.

Each issue key is placed at most once. All resolution state lives on the
resolver instance and is reset on every :meth:`HierarchyResolver.resolve` call,
so one instance must not be shared between concurrent runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from .config import ANCESTOR_FIELDS, PARENT_ACTIVITY_FIELDS, SEARCH_EXPAND
from .errors import JiraRequestError
from .extractor import extract_updates
from .jira_client import JiraAPI
from .mappers import as_utc, map_issue
from .models import EpicGroup, IssueRecord, IssueUpdate, ResolvedTree

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


class HierarchyResolver:
    def __init__(
        self,
        api: JiraAPI,
        lookback_time: datetime,
        *,
        now: datetime | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.api = api
        self.lookback_time = as_utc(lookback_time)
        self.now = as_utc(now) if now else datetime.now(UTC)
        self._progress = progress
        self._reset()

    def _reset(self) -> None:
        self._processed: dict[str, IssueUpdate] = {}
        self._epic_groups: dict[str, EpicGroup] = {}
        self._standalone: list[IssueUpdate] = []
        self._ancestors: dict[str, IssueRecord] = {}

    # ------------------ Public API ------------------
    def resolve(self, raw_issues: Iterable[dict[str, Any]]) -> ResolvedTree:
        self._reset()
        raw_list = list(raw_issues)
        total = len(raw_list)
        for idx, raw in enumerate(raw_list, start=1):
            record = map_issue(raw)
            if self._progress:
                self._progress(f"Resolving {record.key}", idx, total)

            existing = self._processed.get(record.key)
            if existing is not None and existing.added_to_report:
                logger.debug("Skipping %s: already placed in report", record.key)
                continue

            issue_update = self._build_issue_update(record)
            if not issue_update.updates:
                logger.debug("Skipping %s: no activity after %s", record.key, self.lookback_time)
                continue

            self._processed[record.key] = issue_update
            self._place(record, issue_update)

        return ResolvedTree(epic_groups=self._epic_groups, standalone=self._standalone)

    # ------------------ Placement ------------------
    def _place(self, record: IssueRecord, issue_update: IssueUpdate) -> None:
        if issue_update.added_to_report:
            return
        if not record.parent_key:
            self._add_top_level(issue_update, None)
            return

        parent = self._lookup(record.parent_key)
        if parent is None:
            # Unknown parent: keep the issue visible rather than dropping it
            self._add_top_level(issue_update, None)
            return
        if parent.is_epic:
            self._add_top_level(issue_update, parent.key)
            return

        self._add_subtask(issue_update, parent.key, self._find_epic(parent))

    def _find_epic(self, parent: IssueRecord) -> str | None:
        if not parent.parent_key:
            return None
        grandparent = self._lookup(parent.parent_key)
        if grandparent is not None and grandparent.is_epic:
            return grandparent.key
        return None

    def _add_top_level(self, issue_update: IssueUpdate, epic_key: str | None) -> None:
        group = self._ensure_epic_group(epic_key) if epic_key else None
        if group is not None:
            group.issues.append(issue_update)
        else:
            self._standalone.append(issue_update)
        issue_update.added_to_report = True

    def _add_subtask(self, subtask: IssueUpdate, parent_key: str, epic_key: str | None) -> None:
        parent = self._processed.get(parent_key)
        if parent is None:
            parent = self._synthesize_parent(parent_key)
            if parent is None:
                self._add_top_level(subtask, None)
                return
            self._processed[parent_key] = parent

        parent.subtasks.append(subtask)
        if not parent.added_to_report:
            self._add_top_level(parent, epic_key)
        # Subtasks are only ever shown nested under their parent
        subtask.added_to_report = True

    def _ensure_epic_group(self, epic_key: str) -> EpicGroup | None:
        group = self._epic_groups.get(epic_key)
        if group is not None:
            return group
        epic = self._lookup(epic_key)
        if epic is None:
            return None
        group = EpicGroup(
            key=epic_key,
            summary=epic.summary,
            status=epic.status,
            url=self.api.browse_url(epic_key),
        )
        self._epic_groups[epic_key] = group
        return group

    # ------------------ Lookups ------------------
    def _lookup(self, issue_key: str) -> IssueRecord | None:
        """Fetch the minimal ancestor projection for ``issue_key`` (memoized per run)."""
        cached = self._ancestors.get(issue_key)
        if cached is not None:
            return cached
        try:
            raw = self.api.fetch_issue_raw(issue_key, fields=ANCESTOR_FIELDS)
        except JiraRequestError as exc:
            logger.warning("Ancestor lookup for %s failed: %s", issue_key, exc)
            return None
        record = map_issue(raw)
        if not record.key:
            record.key = issue_key
        self._ancestors[issue_key] = record
        return record

    def _synthesize_parent(self, parent_key: str) -> IssueUpdate | None:
        """Fetch a parent task that was not in the search result, with its own activity."""
        try:
            raw = self.api.fetch_issue_raw(parent_key, fields=PARENT_ACTIVITY_FIELDS, expand=SEARCH_EXPAND)
        except JiraRequestError as exc:
            logger.warning("Parent fetch for %s failed: %s", parent_key, exc)
            return None
        record = map_issue(raw)
        if not record.key:
            record.key = parent_key
        parent = self._build_issue_update(record)
        if not parent.updates:
            # Only the child carries the signal; treat the parent as just touched
            parent.last_updated = self.now
        logger.debug("Synthesized parent %s (%d own updates)", parent_key, len(parent.updates))
        return parent

    def _build_issue_update(self, record: IssueRecord) -> IssueUpdate:
        updates, last_updated = extract_updates(record, self.lookback_time)
        return IssueUpdate(
            key=record.key,
            summary=record.summary,
            status=record.status,
            issuetype=record.issuetype,
            url=self.api.browse_url(record.key),
            updates=updates,
            last_updated=last_updated,
        )


def resolve_hierarchy(
    api: JiraAPI,
    raw_issues: Iterable[dict[str, Any]],
    lookback_time: datetime,
    *,
    now: datetime | None = None,
) -> ResolvedTree:
    return HierarchyResolver(api, lookback_time, now=now).resolve(raw_issues)
