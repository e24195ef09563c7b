"""Exception hierarchy for configuration, Jira access, generation and publishing."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for every error raised by the report pipeline."""


# =============================================================================
# Configuration
# =============================================================================
class ConfigError(ReportError):
    pass


class MissingSettingError(ConfigError):
    def __init__(self, setting: str, reason: str = ""):
        self.setting = setting
        message = f"{setting} is required"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class InvalidQueryTypeError(ConfigError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"invalid query type: {value!r}")


# =============================================================================
# Jira transport
# =============================================================================
class JiraRequestError(ReportError):
    pass


# =============================================================================
# Pipeline phases
# =============================================================================
class SearchIssuesError(ReportError):
    def __init__(self, detail: str = ""):
        super().__init__(f"failed to search issues: {detail}" if detail else "failed to search issues")


class GenerateReportError(ReportError):
    def __init__(self, detail: str = ""):
        super().__init__(f"failed to generate report: {detail}" if detail else "failed to generate report")


class PublishError(ReportError):
    def __init__(self, detail: str = ""):
        super().__init__(f"failed to post to webhook: {detail}" if detail else "failed to post to webhook")
