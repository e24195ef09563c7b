"""Plain-text extraction for comment and worklog bodies.

Jira Cloud returns rich text as Atlassian Document Format (ADF): a JSON tree of
nodes, each with a ``type`` and optionally ``content`` (child nodes) or, for
leaves of type ``text``, a ``text`` string. Server-style deployments and some
legacy fields return a plain string instead.
"""

from __future__ import annotations

import json
from typing import Any

from .models import PlainText, RichText, StructuredDocument


def parse_body(raw: Any) -> RichText:
    """Wrap a raw body value into the :data:`RichText` variant."""
    if raw is None:
        return PlainText("")
    if isinstance(raw, str):
        return PlainText(raw)
    if isinstance(raw, dict):
        return StructuredDocument(raw)
    try:
        return PlainText(json.dumps(raw))
    except (TypeError, ValueError):
        return PlainText(str(raw))


def body_to_text(body: RichText) -> str:
    if isinstance(body, PlainText):
        return body.text
    return _extract_text(body.node)


def _extract_text(node: dict[str, Any]) -> str:
    if node.get("type") == "text" and isinstance(node.get("text"), str):
        return node["text"]

    content = node.get("content")
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for child in content:
        if not isinstance(child, dict):
            continue
        extracted = _extract_text(child)
        if extracted:
            parts.append(extracted)
    return " ".join(parts).strip()
