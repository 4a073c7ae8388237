from __future__ import annotations

from collections.abc import Iterable

from .constants import DEFAULT_PRIORITY, SECTION_FIELDS
from .models import ChangeSet, IssueRecord, SetChange


def _set_change(original: Iterable[str], modified: Iterable[str]) -> SetChange | None:
    orig, mod = set(original), set(modified)
    change = SetChange(add=tuple(sorted(mod - orig)), remove=tuple(sorted(orig - mod)))
    return change if change else None


def _normalize(value: str | None) -> str | None:
    return value if value else None


def _effective_priority(issue: IssueRecord) -> int:
    return issue.priority if issue.priority is not None else DEFAULT_PRIORITY


def _metadata_changes(original: IssueRecord, modified: IssueRecord) -> dict[str, str | int]:
    metadata: dict[str, str | int] = {}
    # a missing title key in the edited document means "not touched"
    if modified.title is not None and modified.title != original.title:
        metadata["title"] = modified.title
    if _effective_priority(modified) != _effective_priority(original):
        metadata["priority"] = _effective_priority(modified)
    orig_assignee = _normalize(original.assignee)
    mod_assignee = _normalize(modified.assignee)
    if orig_assignee != mod_assignee:
        metadata["assignee"] = mod_assignee or ""
    return metadata


def _section_changes(original: IssueRecord, modified: IssueRecord) -> dict[str, str]:
    sections: dict[str, str] = {}
    for name in SECTION_FIELDS:
        orig_value: str | None = getattr(original, name)
        mod_value: str | None = getattr(modified, name)
        if orig_value != mod_value:
            sections[name] = mod_value if mod_value is not None else ""
    return sections


def diff_issues(original: IssueRecord, modified: IssueRecord) -> ChangeSet:
    """Compare two records and return only what changed.

    ``id`` and the timestamps are never compared. Label/dependency partitions
    are sorted so identical inputs always yield an identical ChangeSet.
    """
    status = None
    if modified.status and modified.status != original.status:
        status = modified.status

    parent = None
    orig_parent = _normalize(original.parent)
    mod_parent = _normalize(modified.parent)
    if orig_parent != mod_parent:
        parent = mod_parent or ""

    return ChangeSet(
        metadata=_metadata_changes(original, modified),
        status=status,
        labels=_set_change(original.labels, modified.labels),
        dependencies=_set_change(original.dependencies, modified.dependencies),
        parent=parent,
        sections=_section_changes(original, modified),
    )


def describe_changes(changes: ChangeSet) -> list[str]:  # human-readable summary lines
    lines: list[str] = []
    for key, value in changes.metadata.items():
        if key == "assignee" and value == "":
            lines.append("assignee: removed")
        else:
            lines.append(f"{key}: {value}")
    if changes.status is not None:
        lines.append(f"status: {changes.status}")
    if changes.parent is not None:
        lines.append("parent: removed" if changes.parent == "" else f"parent: {changes.parent}")
    for label, change in (("labels", changes.labels), ("dependencies", changes.dependencies)):
        if not change:
            continue
        if change.add:
            lines.append(f"{label} added: {', '.join(change.add)}")
        if change.remove:
            lines.append(f"{label} removed: {', '.join(change.remove)}")
    for name, text in changes.sections.items():
        lines.append(f"{name}: cleared" if text == "" else f"{name}: changed")
    return lines


__all__ = ["diff_issues", "describe_changes"]
