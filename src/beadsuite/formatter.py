"""Render an IssueRecord as an editable Markdown document with YAML-style front-matter."""

from __future__ import annotations

from .constants import (
    ALWAYS_RENDERED_SECTIONS,
    DEFAULT_PRIORITY,
    FRONTMATTER_DELIMITER,
    NEW_ISSUE_ID,
    SECTION_HEADINGS,
)
from .models import IssueRecord

NULL_TIMESTAMP = "null"


def _one_line(value: str) -> str:
    # front-matter values must fit on one line
    return " ".join(value.splitlines())


def _block_sequence(key: str, values: tuple[str, ...]) -> list[str]:
    if not values:
        return []
    return [f"{key}:", *(f"  - {_one_line(v)}" for v in values)]


def _frontmatter(issue: IssueRecord) -> list[str]:
    lines = [
        FRONTMATTER_DELIMITER,
        f"id: {_one_line(issue.id or NEW_ISSUE_ID)}",
        f"title: {_one_line(issue.title or '')}",
        f"type: {issue.issue_type or ''}",
        f"status: {issue.status or ''}",
        f"priority: {issue.priority if issue.priority is not None else DEFAULT_PRIORITY}",
    ]
    if issue.parent:
        lines.append(f"parent: {_one_line(issue.parent)}")
    lines.extend(_block_sequence("dependencies", issue.dependencies))
    if issue.assignee:
        lines.append(f"assignee: {_one_line(issue.assignee)}")
    lines.extend(_block_sequence("labels", issue.labels))
    lines.append(f"created_at: {issue.created_at or NULL_TIMESTAMP}")
    lines.append(f"updated_at: {issue.updated_at or NULL_TIMESTAMP}")
    lines.append(f"closed_at: {issue.closed_at or NULL_TIMESTAMP}")
    lines.append(FRONTMATTER_DELIMITER)
    return lines


def _section(heading: str, body: str | None) -> list[str]:
    lines = [f"# {heading}", ""]
    if body:
        # one physical line per embedded newline, no escaping
        lines.extend(body.split("\n"))
        lines.append("")
    return lines


def format_issue(issue: IssueRecord) -> list[str]:
    """Return the document for ``issue`` as a list of lines (no trailing newlines).

    Description, Acceptance Criteria and Design always get a heading so there
    is somewhere to type; Notes only appears when it has content.
    """
    lines = _frontmatter(issue)
    lines.append("")
    for field_name, heading in SECTION_HEADINGS.items():
        body: str | None = getattr(issue, field_name)
        if field_name in ALWAYS_RENDERED_SECTIONS or body:
            lines.extend(_section(heading, body))
    return lines


def format_issue_text(issue: IssueRecord) -> str:
    return "\n".join(format_issue(issue)) + "\n"


__all__ = ["format_issue", "format_issue_text", "NULL_TIMESTAMP"]
