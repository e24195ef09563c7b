"""Webhook delivery for rendered reports (Teams AdaptiveCard or Workflow HTML body)."""

from __future__ import annotations

import logging
from typing import Any

import requests

from jira_report.visual.adaptive_card import teams_message

from .config import DEFAULT_REQUEST_TIMEOUT
from .errors import PublishError

logger = logging.getLogger(__name__)


class WebhookPublisher:
    def __init__(self, webhook_url: str, *, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def publish(self, payload: dict[str, Any]) -> None:
        """POST ``payload`` as JSON; any 2xx status is success, everything else raises PublishError."""
        try:
            resp = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PublishError(str(exc)) from exc
        if not (200 <= resp.status_code < 300):
            raise PublishError(f"webhook returned status {resp.status_code}: {resp.text[:200]}")
        logger.info("Report posted to webhook (status %s)", resp.status_code)

    def publish_card(self, card: dict[str, Any]) -> None:
        self.publish(teams_message(card))

    def publish_html(self, html_report: str) -> None:
        # Teams Workflows accept HTML in a plain "body" field
        self.publish({"body": html_report})
