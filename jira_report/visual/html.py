"""HTML rendering of a ReportDocument as nested ordered lists."""

from __future__ import annotations

from html import escape

from jira_report.core.config import STANDALONE_SECTION_TITLE
from jira_report.core.models import IssueSection, ReportDocument, UpdateLine


def _update_item(line: UpdateLine, indent: str) -> str:
    return (
        f"{indent}<li>{escape(line.time_label)} {escape(line.author)} "
        f"{escape(line.action)}: {escape(line.text)}</li>"
    )


def _issue_link(issue: IssueSection) -> str:
    label = f"[{issue.issuetype} | {issue.key} {issue.status}: {issue.summary}]"
    return f'<a href="{escape(issue.url)}">{escape(label)}</a>'


def _issue_block(issue: IssueSection) -> list[str]:
    out = [
        "      <li>",
        f"        <h3>{_issue_link(issue)}</h3>",
        "        <ol>",
    ]
    out.extend(_update_item(line, "          ") for line in issue.lines)
    for sub in issue.subtasks:
        out.extend(_subtask_item(sub, "          "))
    out.extend(["        </ol>", "      </li>"])
    return out


def _subtask_item(sub: IssueSection, indent: str) -> list[str]:
    out = [f"{indent}<li><strong>{_issue_link(sub)}</strong>"]
    if sub.lines or sub.subtasks:
        out.append(f"{indent}  <ul>")
        out.extend(_update_item(line, indent + "    ") for line in sub.lines)
        for child in sub.subtasks:
            out.extend(_subtask_item(child, indent + "    "))
        out.append(f"{indent}  </ul>")
    out.append(f"{indent}</li>")
    return out


def render_html(document: ReportDocument) -> str:
    out = [f"<h1>{escape(document.title)}</h1>"]
    if document.subtitle:
        out.append(f"<p>{escape(document.subtitle)}</p>")
    out.append("<ol>")

    for epic in document.epics:
        header = f"{epic.key} {epic.status}: {epic.summary}"
        out.extend(
            [
                "  <li>",
                f'    <h2><a href="{escape(epic.url)}">{escape(header)}</a></h2>',
                "    <ol>",
            ]
        )
        for issue in epic.issues:
            out.extend(_issue_block(issue))
        out.extend(["    </ol>", "  </li>"])

    if document.standalone:
        out.extend(["  <li>", f"    <h2>{escape(STANDALONE_SECTION_TITLE)}</h2>", "    <ol>"])
        for issue in document.standalone:
            out.extend(_issue_block(issue))
        out.extend(["    </ol>", "  </li>"])

    out.append("</ol>")
    return "\n".join(out) + "\n"
