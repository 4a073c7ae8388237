from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    DEFAULT_PRIORITY,
    DEP_TYPE_BLOCKS,
    DEP_TYPE_PARENT_CHILD,
    NEW_ISSUE_ID,
)
from .errors import ValidationError


@dataclass(frozen=True)
class IssueRecord:
    """Canonical in-memory representation of one bd issue.

    Optional text fields distinguish ``None`` (absent) from ``""`` (present
    but empty); the differ relies on that to tell "left alone" from
    "cleared". ``labels`` and ``dependencies`` keep display order but are
    compared as sets. Records are never mutated; build a new one with
    ``dataclasses.replace``.
    """

    id: str | None = None
    title: str | None = None
    issue_type: str | None = None
    status: str | None = None
    priority: int | None = None
    assignee: str | None = None
    labels: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    parent: str | None = None
    description: str | None = None
    acceptance_criteria: str | None = None
    design: str | None = None
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None

    @property
    def is_new(self) -> bool:
        return not self.id or self.id == NEW_ISSUE_ID

    @classmethod
    def from_json(cls, payload: Any) -> IssueRecord:  # noqa: C901 - explicit field mapping
        """Build a record from one object of ``bd show --json`` / ``bd list --json``."""
        if not isinstance(payload, Mapping):
            raise ValidationError("Issue JSON must be an object")
        issue_id = payload.get("id")
        if not isinstance(issue_id, str) or not issue_id:
            raise ValidationError("Issue JSON has no id")

        parent: str | None = None
        blocks: list[str] = []
        deps_any = payload.get("dependencies")
        if isinstance(deps_any, list):
            for dep in deps_any:
                if isinstance(dep, str):
                    blocks.append(dep)
                    continue
                if not isinstance(dep, Mapping):
                    continue
                dep_id = dep.get("id") or dep.get("depends_on_id")
                if not isinstance(dep_id, str) or not dep_id:
                    continue
                dep_type = dep.get("dependency_type") or dep.get("type")
                if dep_type == DEP_TYPE_PARENT_CHILD:
                    if parent is None:
                        parent = dep_id
                elif dep_type == DEP_TYPE_BLOCKS:
                    blocks.append(dep_id)
        parent_any = payload.get("parent")
        if parent is None and isinstance(parent_any, str) and parent_any:
            parent = parent_any

        priority_any = payload.get("priority")
        priority: int | None
        if isinstance(priority_any, bool):
            priority = None
        elif isinstance(priority_any, int):
            priority = priority_any
        elif isinstance(priority_any, str) and priority_any.strip().isdigit():
            priority = int(priority_any.strip())
        else:
            priority = None

        labels_any = payload.get("labels")
        labels = _unique(str(x) for x in labels_any) if isinstance(labels_any, list) else ()

        return cls(
            id=issue_id,
            title=_opt_str(payload.get("title")),
            issue_type=_opt_str(payload.get("issue_type")),
            status=_opt_str(payload.get("status")),
            priority=priority,
            assignee=_opt_str(payload.get("assignee")) or None,
            labels=labels,
            dependencies=_unique(blocks),
            parent=parent,
            description=_opt_str(payload.get("description")),
            acceptance_criteria=_opt_str(payload.get("acceptance_criteria")),
            design=_opt_str(payload.get("design")),
            notes=_opt_str(payload.get("notes")),
            created_at=_opt_str(payload.get("created_at")),
            updated_at=_opt_str(payload.get("updated_at")),
            closed_at=_opt_str(payload.get("closed_at")),
        )


@dataclass(frozen=True)
class SetChange:
    add: tuple[str, ...] = ()
    remove: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.add or self.remove)

    def to_dict(self) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        if self.add:
            out["add"] = list(self.add)
        if self.remove:
            out["remove"] = list(self.remove)
        return out


@dataclass(frozen=True)
class ChangeSet:
    """Sparse result of comparing two records.

    Every attribute left at its default means "unchanged". ``parent == ""``
    and ``metadata["assignee"] == ""`` are removal sentinels; an empty string
    in ``sections`` clears that section.
    """

    metadata: Mapping[str, str | int] = field(default_factory=dict)
    status: str | None = None
    labels: SetChange | None = None
    dependencies: SetChange | None = None
    parent: str | None = None
    sections: Mapping[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        if self.status is not None:
            out["status"] = self.status
        if self.labels:
            out["labels"] = self.labels.to_dict()
        if self.dependencies:
            out["dependencies"] = self.dependencies.to_dict()
        if self.parent is not None:
            out["parent"] = self.parent
        if self.sections:
            out["sections"] = dict(self.sections)
        return out


def new_issue_record(issue_type: str, template: Mapping[str, Any] | None = None) -> IssueRecord:
    """Record backing a blank "new issue" document, pre-filled from a bd template."""
    tpl: Mapping[str, Any] = template or {}
    priority_any = tpl.get("priority")
    priority = DEFAULT_PRIORITY
    if isinstance(priority_any, int) and not isinstance(priority_any, bool):
        priority = priority_any
    labels_any = tpl.get("labels")
    return IssueRecord(
        id=NEW_ISSUE_ID,
        title=_opt_str(tpl.get("title")) or "",
        issue_type=issue_type,
        status="open",
        priority=priority,
        assignee=_opt_str(tpl.get("assignee")) or None,
        labels=_unique(str(x) for x in labels_any) if isinstance(labels_any, list) else (),
        description=_opt_str(tpl.get("description")) or "",
        acceptance_criteria=_opt_str(tpl.get("acceptance_criteria")) or "",
        design=_opt_str(tpl.get("design")) or "",
        notes=_opt_str(tpl.get("notes")) or "",
    )


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for v in values:
        if v:
            seen.setdefault(v, None)
    return tuple(seen)


__all__ = ["IssueRecord", "SetChange", "ChangeSet", "new_issue_record"]
