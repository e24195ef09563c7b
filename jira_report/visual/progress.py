"""Progress banner for Streamlit pages driven by ReportService callbacks."""

from __future__ import annotations

import streamlit as st

from jira_report.core.models import ReportDocument


class ProgressReporter:
    """Status line plus progress bar for one report generation run.

    Search and assembly steps arrive without a total and only update the
    status line; per-issue resolution steps also move the bar.
    """

    def __init__(self, title: str):
        self._box = st.status(title, expanded=False)
        self._bar = st.progress(0.0)
        self._done = False

    def callback(self, message: str, current: int | None = None, total: int | None = None) -> None:
        if self._done:
            return
        self._box.update(label=message)
        if current is not None and total:
            self._bar.progress(min(current / total, 1.0), text=f"{current}/{total} issues")

    def complete(self, document: ReportDocument) -> None:
        issues = len(document.iter_issue_keys())
        self._bar.progress(1.0)
        self._box.update(
            label=f"{document.title}: {issues} issue(s) in {len(document.epics)} epic(s)",
            state="complete",
        )
        self._done = True

    def error(self, message: str) -> None:
        self._box.update(label=message, state="error")
        st.error(message)
        self._done = True
