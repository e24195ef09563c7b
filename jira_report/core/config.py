"""Central configuration, constants, and the validated report settings."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError, InvalidQueryTypeError, MissingSettingError

# =============================================================================
# Jira Connection Settings
# =============================================================================
DEFAULT_TIMEZONE = "UTC"
DEFAULT_LOOKBACK_HOURS = 24
DEFAULT_REQUEST_TIMEOUT = 60.0

# Search endpoint page bounds (server-side ceiling and default)
MAX_SEARCH_RESULTS = 100
DEFAULT_SEARCH_RESULTS = 50

# =============================================================================
# Field Projections
# =============================================================================
SEARCH_FIELDS: Sequence[str] = (
    "summary",
    "status",
    "issuetype",
    "parent",
    "updated",
    "created",
    "comment",
    "worklog",
)
SEARCH_EXPAND: Sequence[str] = ("changelog",)

# Minimal projection used to classify ancestors
ANCESTOR_FIELDS: Sequence[str] = ("issuetype", "status", "summary", "parent")

# Projection used when a parent task must contribute its own activity
PARENT_ACTIVITY_FIELDS: Sequence[str] = ("summary", "status", "issuetype", "parent", "comment", "worklog")

EPIC_ISSUE_TYPE = "Epic"

# =============================================================================
# Report Presentation
# =============================================================================
REPORT_TITLE_PREFIX = "Daily Report"
REPORT_DATE_FORMAT = "%d-%b-%Y"
UPDATE_TIME_FORMAT = "%H:%M"
MAX_CONTENT_LENGTH = 200
ELLIPSIS = "..."
STANDALONE_SECTION_TITLE = "Anything else"
CARD_STANDALONE_SECTION_TITLE = "Everything else"

STATUS_EMOJI: dict[str, str] = {
    "to do": "📋",
    "open": "📋",
    "new": "📋",
    "created": "📋",
    "in progress": "🔄",
    "in review": "🔄",
    "in development": "🔄",
    "done": "✅",
    "closed": "✅",
    "resolved": "✅",
    "completed": "✅",
    "blocked": "🚫",
    "on hold": "🚫",
    "testing": "🧪",
    "qa": "🧪",
    "review": "🧪",
}
DEFAULT_STATUS_EMOJI = "📝"


def status_emoji(status: str | None) -> str:
    if not status:
        return DEFAULT_STATUS_EMOJI
    return STATUS_EMOJI.get(status.strip().lower(), DEFAULT_STATUS_EMOJI)


class QueryType(StrEnum):
    PROJECT_HOURS = "project_hours"
    CUSTOM_JQL = "custom_jql"
    FILTER = "filter"


class PayloadFormat(StrEnum):
    CARD = "card"
    HTML = "html"


# Environment variable -> config attribute. Earlier names win.
ENV_VARS: dict[str, Sequence[str]] = {
    "jira_host": ("JIRA_HOST", "JIRA_SERVER"),
    "jira_username": ("JIRA_USERNAME", "JIRA_EMAIL"),
    "jira_password": ("JIRA_PASSWORD", "JIRA_API_TOKEN"),
    "webhook_url": ("WEBHOOK_URL", "TEAMS_WEBHOOK_URL"),
    "timezone": ("REPORT_TIMEZONE", "TIMEZONE"),
    "query_type": ("QUERY_TYPE",),
    "jira_project": ("JIRA_PROJECT",),
    "lookback_hours": ("LOOKBACK_HOURS",),
    "custom_jql": ("CUSTOM_JQL",),
    "filter_id": ("FILTER_ID",),
    "payload_format": ("PAYLOAD_FORMAT",),
    "request_timeout": ("REQUEST_TIMEOUT",),
}


@dataclass(slots=True)
class ReportConfig:
    jira_host: str = ""
    jira_username: str = ""
    jira_password: str = ""
    webhook_url: str = ""
    timezone: str = DEFAULT_TIMEZONE

    # Query configuration - one of the three modes
    query_type: str = QueryType.PROJECT_HOURS
    jira_project: str = ""
    lookback_hours: int = DEFAULT_LOOKBACK_HOURS
    custom_jql: str = ""
    filter_id: str = ""

    payload_format: str = PayloadFormat.CARD
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def host(self) -> str:
        return self.jira_host.rstrip("/")

    def validate_connection(self) -> None:
        """Only the settings needed to talk to Jira: host and credential."""
        if not self.jira_host:
            raise MissingSettingError("JIRA_HOST")
        if not self.jira_password:
            raise MissingSettingError("JIRA_PASSWORD")

    def validate(self) -> None:
        """Raise a :class:`ConfigError` describing the first invalid setting.

        Host, credential and webhook URL are always required; the remaining
        required fields depend on ``query_type``.
        """
        self.validate_connection()
        if not self.webhook_url:
            raise MissingSettingError("WEBHOOK_URL")

        try:
            query_type = QueryType(self.query_type)
        except ValueError:
            raise InvalidQueryTypeError(str(self.query_type)) from None

        if query_type is QueryType.PROJECT_HOURS:
            if not self.jira_project:
                raise MissingSettingError("JIRA_PROJECT")
        elif query_type is QueryType.CUSTOM_JQL:
            if not self.custom_jql:
                raise MissingSettingError("CUSTOM_JQL", "when using custom JQL query type")
        elif query_type is QueryType.FILTER:
            if not self.filter_id:
                raise MissingSettingError("FILTER_ID", "when using filter query type")

        if self.lookback_hours <= 0:
            raise ConfigError(f"LOOKBACK_HOURS must be positive, got {self.lookback_hours}")
        if self.payload_format not in {p.value for p in PayloadFormat}:
            raise ConfigError(f"unknown payload format: {self.payload_format!r}")

    # ------------------ Loaders ------------------
    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ReportConfig:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        return cls()._merged(values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ReportConfig:
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        # Allow an optional top-level [report] section
        section = data.get("report", data)
        if not isinstance(section, dict):
            raise ConfigError(f"'report' section of {path} must be a mapping")
        return cls.from_mapping({str(k).lower(): v for k, v in section.items()})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, base: ReportConfig | None = None) -> ReportConfig:
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for attr, names in ENV_VARS.items():
            for name in names:
                raw = env.get(name)
                if raw:
                    values[attr] = raw.strip()
                    break
        return (base or cls())._merged(values)

    def with_overrides(self, **overrides: Any) -> ReportConfig:
        return self._merged({k: v for k, v in overrides.items() if v is not None})

    def _merged(self, values: Mapping[str, Any]) -> ReportConfig:
        coerced = dict(values)
        try:
            if "lookback_hours" in coerced:
                coerced["lookback_hours"] = int(coerced["lookback_hours"])
            if "request_timeout" in coerced:
                coerced["request_timeout"] = float(coerced["request_timeout"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid numeric setting: {exc}") from exc
        for key in ("query_type", "payload_format"):
            if key in coerced:
                coerced[key] = str(coerced[key]).strip().lower()
        if "filter_id" in coerced:
            coerced["filter_id"] = str(coerced["filter_id"]).strip()
        return replace(self, **coerced)
