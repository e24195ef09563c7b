"""Command line entry point: generate the daily report, print it, post it to the webhook."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from jira_report.core.config import PayloadFormat, QueryType, ReportConfig
from jira_report.core.errors import ConfigError, JiraRequestError, PublishError, ReportError
from jira_report.core.jira_client import JiraAPI
from jira_report.core.service import Report, ReportService, api_from_config

log = logging.getLogger("jira_report")

EXIT_OK = 0
EXIT_GENERATE_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_PUBLISH_FAILED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jira-daily-report",
        description="Post a digest of recent Jira comments and worklogs to a Teams webhook.",
    )
    parser.add_argument("--config", help="YAML file with report settings (env vars override it)")
    query = parser.add_mutually_exclusive_group()
    query.add_argument("--project", help="Project key; selects project + hours query mode")
    query.add_argument("--jql", help="Custom JQL query")
    query.add_argument("--filter-id", help="Saved filter ID")
    parser.add_argument("--hours", type=int, help="Lookback window in hours (default 24)")
    parser.add_argument("--timezone", help="IANA timezone for report times (default UTC)")
    parser.add_argument(
        "--format",
        choices=["markdown", "html", "card"],
        default="markdown",
        help="Console output format",
    )
    parser.add_argument(
        "--payload",
        choices=[p.value for p in PayloadFormat],
        help="Webhook payload: AdaptiveCard message or Workflow HTML body",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the report without posting it")
    parser.add_argument(
        "--list-projects",
        nargs="?",
        const="",
        metavar="QUERY",
        help="List visible projects (optionally matching QUERY) and exit",
    )
    parser.add_argument("--project-statuses", metavar="KEY", help="List workflow statuses per issue type of a project and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def load_config(args: argparse.Namespace) -> ReportConfig:
    base = ReportConfig.from_yaml(args.config) if args.config else None
    config = ReportConfig.from_env(base=base)
    overrides: dict[str, object] = {
        "lookback_hours": args.hours,
        "timezone": args.timezone,
        "payload_format": args.payload,
    }
    if args.project:
        overrides.update(query_type=QueryType.PROJECT_HOURS, jira_project=args.project)
    elif args.jql:
        overrides.update(query_type=QueryType.CUSTOM_JQL, custom_jql=args.jql)
    elif args.filter_id:
        overrides.update(query_type=QueryType.FILTER, filter_id=args.filter_id)
    return config.with_overrides(**overrides)


def format_output(report: Report, fmt: str) -> str:
    if fmt == "html":
        return report.html
    if fmt == "card":
        return json.dumps(report.card, indent=2, ensure_ascii=False)
    return report.markdown


def browse_projects(api: JiraAPI, args: argparse.Namespace) -> int:
    """Print project listings for ``--list-projects`` / ``--project-statuses``."""
    try:
        if args.project_statuses:
            for item in api.get_project_statuses(args.project_statuses):
                print(f"{item.issuetype}: {', '.join(item.statuses)}")
            return EXIT_OK
        if args.list_projects:
            projects = api.search_projects(args.list_projects).projects
        else:
            projects = api.get_projects()
    except JiraRequestError as exc:
        log.error("%s", exc)
        return EXIT_GENERATE_FAILED
    for project in projects:
        print(f"{project.key}\t{project.name}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
    )

    browsing = args.list_projects is not None or bool(args.project_statuses)
    try:
        config = load_config(args)
        if browsing:
            return browse_projects(api_from_config(config), args)
        service = ReportService.from_config(config)
    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    try:
        report = service.generate()
    except ReportError as exc:
        log.error("%s", exc)
        return EXIT_GENERATE_FAILED

    print(format_output(report, args.format))

    if args.dry_run:
        log.info("Dry run: skipping webhook post")
        return EXIT_OK
    try:
        service.publish(report)
    except PublishError as exc:
        log.error("%s", exc)
        return EXIT_PUBLISH_FAILED
    log.info("Daily report posted successfully")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
