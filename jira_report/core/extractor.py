"""Recent-activity extraction: comments and worklogs newer than the lookback cutoff."""

from __future__ import annotations

from datetime import datetime

from .adf import body_to_text
from .mappers import as_utc, parse_jira_timestamp
from .models import EPOCH, ActivityModel, IssueRecord, Update, UpdateKind


def _collect(items: list[ActivityModel], kind: UpdateKind, lookback_time: datetime) -> list[Update]:
    out: list[Update] = []
    for item in items:
        created = parse_jira_timestamp(item.created)
        if created is None or created <= lookback_time:
            continue
        out.append(
            Update(
                time=created,
                author=item.author,
                kind=kind,
                content=body_to_text(item.body),
                time_spent=item.time_spent if kind == "worklog" else None,
            )
        )
    return out


def extract_updates(issue: IssueRecord, lookback_time: datetime) -> tuple[list[Update], datetime]:
    """Return the issue's updates strictly after ``lookback_time`` plus the latest update time.

    Items whose timestamp cannot be parsed are dropped. Updates come back in
    ascending time order; the timestamp is :data:`EPOCH` when nothing qualifies.
    """
    lookback_time = as_utc(lookback_time)
    updates = _collect(issue.comments, "comment", lookback_time)
    updates.extend(_collect(issue.worklogs, "worklog", lookback_time))
    updates.sort(key=lambda u: u.time)
    last_updated = updates[-1].time if updates else EPOCH
    return updates, last_updated
