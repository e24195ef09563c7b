"""Microsoft Teams AdaptiveCard rendering of a ReportDocument.

Cards are built as plain dicts ready for ``json.dumps``; optional properties
are omitted rather than sent empty.
"""

from __future__ import annotations

from typing import Any

from jira_report.core.config import CARD_STANDALONE_SECTION_TITLE, status_emoji
from jira_report.core.models import EpicSection, IssueSection, ReportDocument

CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
CARD_VERSION = "1.5"
CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"


def new_card() -> dict[str, Any]:
    return {
        "type": "AdaptiveCard",
        "$schema": CARD_SCHEMA,
        "version": CARD_VERSION,
        "body": [],
        "msteams": {"width": "Full"},
    }


def text_block(text: str, size: str = "", weight: str = "", *, wrap: bool = True) -> dict[str, Any]:
    block: dict[str, Any] = {"type": "TextBlock", "text": text}
    if size:
        block["size"] = size
    if weight:
        block["weight"] = weight
    if wrap:
        block["wrap"] = True
    return block


def container(items: list[dict[str, Any]], spacing: str = "", style: str = "") -> dict[str, Any]:
    element: dict[str, Any] = {"type": "Container", "items": items}
    if spacing:
        element["spacing"] = spacing
    if style:
        element["style"] = style
    return element


def teams_message(card: dict[str, Any]) -> dict[str, Any]:
    """Wrap a card in the message envelope expected by Teams incoming webhooks."""
    return {
        "type": "message",
        "attachments": [{"contentType": CARD_CONTENT_TYPE, "content": card}],
    }


def _link(key: str, url: str) -> str:
    return f"[{key}]({url})" if url else key


def _issue_header(issue: IssueSection) -> str:
    return (
        f"{issue.issuetype} | {_link(issue.key, issue.url)} | "
        f"{status_emoji(issue.status)} {issue.status} | {issue.summary}"
    )


def _epic_blocks(epic: EpicSection) -> list[dict[str, Any]]:
    header = f"{_link(epic.key, epic.url)} | {status_emoji(epic.status)} {epic.status} | {epic.summary}"
    blocks = [text_block(header, "Large", "Bolder")]
    for issue in epic.issues:
        blocks.extend(_issue_blocks(issue))
    return blocks


def _issue_blocks(issue: IssueSection) -> list[dict[str, Any]]:
    blocks = [text_block(_issue_header(issue), "Medium", "Bolder")]
    number = 1
    for line in issue.lines:
        blocks.append(text_block(f"{number}. {line.describe()}", "Default"))
        number += 1
    for sub in issue.subtasks:
        blocks.append(_subtask_container(sub, f"{number}."))
        number += 1
    return blocks


def _subtask_container(sub: IssueSection, marker: str) -> dict[str, Any]:
    items = [text_block(f"{marker} {_issue_header(sub)}", "Default", "Bolder")]
    items.extend(text_block(f"- {line.describe()}", "Default") for line in sub.lines)
    # Deeper descendants nest as further containers under their own parent
    items.extend(_subtask_container(child, "-") for child in sub.subtasks)
    return container(items, spacing="Small")


def render_adaptive_card(document: ReportDocument) -> dict[str, Any]:
    card = new_card()
    body = card["body"]
    body.append(text_block(document.title, "ExtraLarge", "Bolder"))
    if document.subtitle:
        body.append(text_block(f"> {document.subtitle}", "Medium"))

    for epic in document.epics:
        body.extend(_epic_blocks(epic))

    if document.standalone:
        body.append(text_block(CARD_STANDALONE_SECTION_TITLE, "Large", "Bolder"))
        for issue in document.standalone:
            body.extend(_issue_blocks(issue))
    return card
