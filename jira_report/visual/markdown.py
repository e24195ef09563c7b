"""Markdown rendering of a ReportDocument (console output and chat fallbacks)."""

from __future__ import annotations

from jira_report.core.config import STANDALONE_SECTION_TITLE
from jira_report.core.models import IssueSection, ReportDocument, UpdateLine


def _update_text(line: UpdateLine) -> str:
    return f"{line.time_label} **{line.author}** {line.action}: {line.text}"


def _subtask_lines(sub: IssueSection, marker: str, indent: str) -> list[str]:
    out = [f"{indent}{marker} **[{sub.issuetype} | {sub.key} {sub.status}: {sub.summary}]({sub.url})**"]
    out.extend(f"{indent}   - {_update_text(line)}" for line in sub.lines)
    for child in sub.subtasks:
        out.extend(_subtask_lines(child, "-", indent + "   "))
    return out


def _issue_lines(issue: IssueSection) -> list[str]:
    out = [f"### [{issue.issuetype} | {issue.key} {issue.status}: {issue.summary}]({issue.url})", ""]
    number = 1
    for line in issue.lines:
        out.append(f"{number}. {_update_text(line)}")
        number += 1
    # Subtasks continue the numbering of their parent's updates
    for sub in issue.subtasks:
        out.extend(_subtask_lines(sub, f"{number}.", ""))
        number += 1
    out.append("")
    return out


def render_markdown(document: ReportDocument) -> str:
    lines = [f"# {document.title}", ""]
    if document.subtitle:
        lines.extend([document.subtitle, ""])

    for epic in document.epics:
        lines.extend([f"## [{epic.key} {epic.status}: {epic.summary}]({epic.url})", ""])
        for issue in epic.issues:
            lines.extend(_issue_lines(issue))

    if document.standalone:
        lines.extend([f"## {STANDALONE_SECTION_TITLE}", ""])
        for issue in document.standalone:
            lines.extend(_issue_lines(issue))

    return "\n".join(lines).rstrip() + "\n"
