"""Convenience launcher for the daily report CLI.

Usage:
  python run_report.py --project PROJ --hours 24 --dry-run

Reads JIRA_HOST, JIRA_USERNAME, JIRA_PASSWORD and WEBHOOK_URL from the
environment (or a ``--config`` YAML file).
"""

import sys

from jira_report.cli import main

if __name__ == "__main__":
    sys.exit(main())
