"""Translate ChangeSets and new records into bd command lines.

Commands are built as argument vectors. ``BdCommand.to_shell`` is the only
place a single shell string is produced, and ``shell_quote`` is the only
quoting rule: wrap in single quotes, break out for embedded single quotes
with ``'\\''``. Inside single quotes ``"``, ``$``, ``&``, ``|``, ``>`` and
newlines need no treatment, so they pass through byte-for-byte.

Update ordering is fixed because bd commands do not commute:

1. parent add/change (``dep add --type parent-child``)
2. parent removal (``dep remove`` against the previous parent)
3. dependency removals
4. dependency additions (``--type blocks``)
5. label removals
6. label additions
7. status (``close`` / ``reopen`` / ``update --status``)
8. one combined ``update`` carrying every metadata and section flag
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .constants import DEP_TYPE_BLOCKS, DEP_TYPE_PARENT_CHILD
from .errors import ValidationError
from .models import ChangeSet, IssueRecord

DEFAULT_PROGRAM = "bd"

# Flag names for the combined update, in emission order.
METADATA_FLAGS = (
    ("title", "--title"),
    ("priority", "--priority"),
    ("assignee", "--assignee"),
)
SECTION_FLAGS = (
    ("description", "--description"),
    ("acceptance_criteria", "--acceptance"),
    ("design", "--design"),
    ("notes", "--notes"),
)


def shell_quote(value: str) -> str:
    return "'" + value.replace("'", "'\\''") + "'"


@dataclass(frozen=True)
class BdCommand:
    verb: tuple[str, ...]
    args: tuple[str, ...] = ()
    options: tuple[tuple[str, str], ...] = ()

    @property
    def argv(self) -> tuple[str, ...]:
        flat: list[str] = [*self.verb, *self.args]
        for flag, value in self.options:
            flat.extend((flag, value))
        return tuple(flat)

    def option(self, flag: str) -> str | None:
        for name, value in self.options:
            if name == flag:
                return value
        return None

    def to_shell(self, program: str = DEFAULT_PROGRAM) -> str:
        parts = [program, *self.verb, *(shell_quote(a) for a in self.args)]
        for flag, value in self.options:
            parts.extend((flag, shell_quote(value)))
        return " ".join(parts)


def render_shell(commands: Iterable[BdCommand], program: str = DEFAULT_PROGRAM) -> list[str]:
    return [c.to_shell(program) for c in commands]


def _dep_add(issue_id: str, other: str, dep_type: str) -> BdCommand:
    return BdCommand(("dep", "add"), (issue_id, other), (("--type", dep_type),))


def _parent_commands(
    issue_id: str, changes: ChangeSet, original_parent: str | None
) -> list[BdCommand]:
    if changes.parent is None:
        return []
    if changes.parent:
        commands = [_dep_add(issue_id, changes.parent, DEP_TYPE_PARENT_CHILD)]
        if original_parent and original_parent != changes.parent:
            commands.append(BdCommand(("dep", "remove"), (issue_id, original_parent)))
        return commands
    if not original_parent:
        raise ValidationError(
            f"Parent removal for {issue_id} needs the previous parent id (original_parent)"
        )
    return [BdCommand(("dep", "remove"), (issue_id, original_parent))]


def _combined_update(issue_id: str, changes: ChangeSet) -> BdCommand | None:
    options: list[tuple[str, str]] = []
    for key, flag in METADATA_FLAGS:
        if key in changes.metadata:
            options.append((flag, str(changes.metadata[key])))
    for key, flag in SECTION_FLAGS:
        if key in changes.sections:
            options.append((flag, changes.sections[key]))
    if not options:
        return None
    return BdCommand(("update",), (issue_id,), tuple(options))


def status_command(issue_id: str, status: str) -> BdCommand:
    if status == "closed":
        return BdCommand(("close",), (issue_id,))
    if status == "open":
        return BdCommand(("reopen",), (issue_id,))
    return BdCommand(("update",), (issue_id,), (("--status", status),))


def generate_update_commands(
    issue_id: str,
    changes: ChangeSet,
    *,
    original_parent: str | None = None,
) -> list[BdCommand]:
    """Return the ordered commands that apply ``changes`` to ``issue_id``.

    A ChangeSet only says that the parent was removed or replaced; the id of
    the edge to drop is not part of it, so callers pass the previous parent as
    ``original_parent``. On a re-parent the new edge is added before the old
    one is removed.
    """
    commands = _parent_commands(issue_id, changes, original_parent)
    if changes.dependencies:
        commands += [BdCommand(("dep", "remove"), (issue_id, d)) for d in changes.dependencies.remove]
        commands += [_dep_add(issue_id, d, DEP_TYPE_BLOCKS) for d in changes.dependencies.add]
    if changes.labels:
        commands += [BdCommand(("label", "remove"), (issue_id, lbl)) for lbl in changes.labels.remove]
        commands += [BdCommand(("label", "add"), (issue_id, lbl)) for lbl in changes.labels.add]
    if changes.status is not None:
        commands.append(status_command(issue_id, changes.status))
    update = _combined_update(issue_id, changes)
    if update is not None:
        commands.append(update)
    return commands


def _csv(values: Sequence[str]) -> str:
    return ",".join(values)


def build_create_command(issue: IssueRecord) -> BdCommand:
    if not issue.title:
        raise ValidationError("Title is required")
    if not issue.issue_type:
        raise ValidationError("Issue type is required")
    options: list[tuple[str, str]] = [("--type", issue.issue_type)]
    if issue.priority is not None:
        options.append(("--priority", str(issue.priority)))
    if issue.description:
        options.append(("--description", issue.description))
    if issue.acceptance_criteria:
        options.append(("--acceptance", issue.acceptance_criteria))
    if issue.design:
        options.append(("--design", issue.design))
    if issue.labels:
        options.append(("--labels", _csv(issue.labels)))
    if issue.parent:
        options.append(("--parent", issue.parent))
    if issue.dependencies:
        options.append(("--deps", _csv([f"{DEP_TYPE_BLOCKS}:{d}" for d in issue.dependencies])))
    return BdCommand(("create",), (issue.title,), tuple(options))


__all__ = [
    "BdCommand",
    "DEFAULT_PROGRAM",
    "shell_quote",
    "render_shell",
    "status_command",
    "generate_update_commands",
    "build_create_command",
]
