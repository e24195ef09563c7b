"""Convenience launcher for the Streamlit report preview.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``jira_report/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

from importlib import import_module
from pathlib import Path

import streamlit as st

from jira_report.app import main

st.set_page_config(layout="wide")


def _auto_init_report_service():
    """Initialize ReportService from Streamlit secrets / environment if complete."""
    if "report_service" in st.session_state:
        return

    from jira_report.core.errors import ConfigError
    from jira_report.core.service import ReportService
    from jira_report.pages.setup import secrets_config

    config = secrets_config()
    try:
        st.session_state["report_service"] = ReportService.from_config(config)
        st.session_state["report_config"] = config
        st.sidebar.success("Jira settings loaded from secrets.")
    except ConfigError as exc:
        st.sidebar.warning(f"Incomplete settings ({exc}). Please use the Setup page.")


PAGES_DIR = Path(__file__).parent / "jira_report" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"jira_report.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover
        print(f"Failed importing page {mod_name}: {e}")

_auto_init_report_service()

if __name__ == "__main__":
    main()
