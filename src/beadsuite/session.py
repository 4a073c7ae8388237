"""Edit/save pipeline tying documents, diffs and bd commands together.

Every entry point either returns the new document or raises; callers only
overwrite the document the user is editing after a successful return.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .bd_client import BdClient
from .commands import BdCommand, build_create_command, generate_update_commands
from .constants import ISSUE_TYPES, NEW_ISSUE_ID
from .diffing import diff_issues
from .errors import ValidationError
from .formatter import format_issue
from .logging import get_logger
from .models import ChangeSet, IssueRecord, new_issue_record
from .parser import parse_document


@dataclass
class SavePlan:
    changes: ChangeSet
    commands: list[BdCommand] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.commands


@dataclass
class SaveResult:
    issue_id: str
    commands: list[BdCommand]
    issue: IssueRecord | None
    lines: list[str]

    @property
    def changed(self) -> bool:
        return bool(self.commands)


def render_issue(client: BdClient, issue_id: str) -> list[str]:
    return format_issue(client.get_issue(issue_id))


def new_issue_document(
    client: BdClient, issue_type: str, template: Mapping[str, Any] | None = None
) -> list[str]:
    """Document for a new issue of ``issue_type``; fetches bd's template unless given one."""
    if issue_type not in ISSUE_TYPES:
        raise ValidationError(
            f"Invalid issue type '{issue_type}'. Must be one of: {', '.join(ISSUE_TYPES)}"
        )
    if template is None:
        template = client.fetch_template(issue_type)
    return format_issue(new_issue_record(issue_type, template))


def plan_update(original: IssueRecord, lines: Iterable[str]) -> SavePlan:
    """Diff an edited document against ``original`` and build the commands.

    The baseline is ``original`` as it was shown in the document, so
    sections rendered as empty headings compare equal to empty edits.
    """
    if not original.id:
        raise ValidationError("Cannot plan an update for an issue without an id")
    modified = parse_document(lines)
    if modified.id and modified.id != original.id:
        raise ValidationError(
            f"Document id {modified.id} does not match issue {original.id}"
        )
    baseline = parse_document(format_issue(original))
    changes = diff_issues(baseline, modified)
    commands = generate_update_commands(original.id, changes, original_parent=original.parent)
    return SavePlan(changes=changes, commands=commands)


def save_issue(client: BdClient, issue_id: str, lines: Iterable[str]) -> SaveResult:
    """Apply the edits in ``lines`` to ``issue_id`` and return the reloaded document."""
    edited = list(lines)
    # parse first so a malformed document never costs a bd round-trip
    parse_document(edited)
    original = client.get_issue(issue_id)
    plan = plan_update(original, edited)
    logger = get_logger()
    if plan.is_empty:
        logger.info("no changes to save", issue_id=issue_id)
        return SaveResult(issue_id, [], original, format_issue(original))
    client.apply(plan.commands)
    logger.log_issue_action("update", issue_id, dry_run=client.cfg.dry_run, commands=len(plan.commands))
    if client.cfg.mock or client.cfg.dry_run:
        return SaveResult(issue_id, plan.commands, None, edited)
    reloaded = client.get_issue(issue_id)
    return SaveResult(issue_id, plan.commands, reloaded, format_issue(reloaded))


def create_issue(client: BdClient, lines: Iterable[str]) -> SaveResult:
    """Create the issue described by a new-issue document."""
    record = parse_document(lines)
    title = (record.title or "").strip()
    if not title or title == NEW_ISSUE_ID:
        raise ValidationError("Title is required")
    command = build_create_command(record)
    issue_id = client.create_issue(record)
    if client.cfg.mock or client.cfg.dry_run:
        return SaveResult(issue_id, [command], None, format_issue(record))
    created = client.get_issue(issue_id)
    return SaveResult(issue_id, [command], created, format_issue(created))


__all__ = [
    "SavePlan",
    "SaveResult",
    "render_issue",
    "new_issue_document",
    "plan_update",
    "save_issue",
    "create_issue",
]
