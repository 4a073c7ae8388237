from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import yaml

from .constants import (
    FRONTMATTER_DELIMITER,
    MAX_PRIORITY,
    MIN_PRIORITY,
    SECTION_HEADINGS,
)
from .errors import TranscriptionError, ValidationError
from .models import IssueRecord

_KEY_RE = re.compile(r"^([A-Za-z0-9_]+):\s*(.*)$")
_ITEM_RE = re.compile(r"^\s*-\s+(.+)$")

_HEADING_TO_FIELD = {f"# {heading}": name for name, heading in SECTION_HEADINGS.items()}

_LIST_KEYS = ("labels", "dependencies")

_RESOLVER = yaml.resolver.Resolver()
_NULL_TAG = "tag:yaml.org,2002:null"


@dataclass
class _Frontmatter:
    scalars: dict[str, str] = field(default_factory=dict)
    lists: dict[str, list[str]] = field(default_factory=lambda: {k: [] for k in _LIST_KEYS})
    priority_line: int | None = None


def _load_value(raw: str) -> Any:
    # only list and nullable values go through the loader; titles stay raw text
    try:
        return yaml.load(raw, Loader=yaml.BaseLoader)  # nosec B506 - BaseLoader: plain str values
    except yaml.YAMLError:
        return raw


def _is_null(raw: str) -> bool:
    return _RESOLVER.resolve(yaml.ScalarNode, raw, (True, False)) == _NULL_TAG


def _inline_list(raw: str) -> list[str]:
    loaded = _load_value(raw)
    if isinstance(loaded, list):
        return [str(v).strip() for v in loaded if str(v).strip()]
    return [raw]


def _nullable_scalar(raw: str | None) -> str | None:
    if raw is None or _is_null(raw):
        return None
    loaded = _load_value(raw)
    return loaded if isinstance(loaded, str) and loaded else raw


def _read_frontmatter(lines: list[str]) -> tuple[_Frontmatter, int]:  # noqa: C901 - line state machine
    """Collect front-matter keys; return them with the index of the first body line."""
    i = 0
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i >= len(lines) or lines[i].strip() != FRONTMATTER_DELIMITER:
        raise ValidationError(
            f"Missing front-matter: document must start with a '{FRONTMATTER_DELIMITER}' line"
        )
    opened_at = i + 1
    i += 1
    fm = _Frontmatter()
    in_list: str | None = None
    while i < len(lines):
        line = lines[i]
        if line.strip() == FRONTMATTER_DELIMITER:
            return fm, i + 1
        item = _ITEM_RE.match(line)
        if item and in_list:
            value = item.group(1).strip()
            if value not in fm.lists[in_list]:
                fm.lists[in_list].append(value)
            i += 1
            continue
        kv = _KEY_RE.match(line)
        if kv:
            key, value = kv.group(1), kv.group(2).strip()
            if key in _LIST_KEYS:
                in_list = key
                for v in _inline_list(value) if value else []:
                    if v not in fm.lists[key]:
                        fm.lists[key].append(v)
            else:
                in_list = None
                fm.scalars[key] = value
                if key == "priority":
                    fm.priority_line = i + 1
        i += 1
    raise TranscriptionError(
        f"Unterminated front-matter: no closing '{FRONTMATTER_DELIMITER}' line", line=opened_at
    )


def _parse_priority(fm: _Frontmatter) -> int | None:
    raw = fm.scalars.get("priority")
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise TranscriptionError(
            f"Invalid priority {raw!r}: expected an integer {MIN_PRIORITY}-{MAX_PRIORITY}",
            line=fm.priority_line,
        ) from exc
    if not MIN_PRIORITY <= value <= MAX_PRIORITY:
        raise TranscriptionError(
            f"Invalid priority {value}: expected {MIN_PRIORITY}-{MAX_PRIORITY}",
            line=fm.priority_line,
        )
    return value


def _trim_one_blank(block: list[str]) -> list[str]:
    if block and not block[0].strip():
        block = block[1:]
    if block and not block[-1].strip():
        block = block[:-1]
    return block


def _read_sections(lines: list[str], start: int) -> dict[str, str]:
    sections: dict[str, str] = {}
    current: str | None = None
    block: list[str] = []
    for line in lines[start:]:
        name = _HEADING_TO_FIELD.get(line.rstrip())
        if name is not None:
            if current is not None:
                sections[current] = "\n".join(_trim_one_blank(block))
            current, block = name, []
        elif current is not None:
            block.append(line)
    if current is not None:
        sections[current] = "\n".join(_trim_one_blank(block))
    return sections


def parse_document(lines: Iterable[str]) -> IssueRecord:
    """Parse a formatted issue document back into an IssueRecord.

    Sections whose heading is missing come back as ``None``; a heading with no
    content comes back as ``""``. Unknown front-matter keys are ignored.
    """
    lines_list = [line.rstrip("\r\n") for line in lines]
    fm, body_start = _read_frontmatter(lines_list)
    priority = _parse_priority(fm)
    scalars = fm.scalars

    def nullable(key: str) -> str | None:
        return _nullable_scalar(scalars.get(key))

    sections = _read_sections(lines_list, body_start)
    return IssueRecord(
        id=scalars.get("id") or None,
        title=scalars.get("title"),
        issue_type=scalars.get("type") or None,
        status=scalars.get("status") or None,
        priority=priority,
        assignee=nullable("assignee"),
        labels=tuple(fm.lists["labels"]),
        dependencies=tuple(fm.lists["dependencies"]),
        parent=nullable("parent"),
        description=sections.get("description"),
        acceptance_criteria=sections.get("acceptance_criteria"),
        design=sections.get("design"),
        notes=sections.get("notes"),
        created_at=nullable("created_at"),
        updated_at=nullable("updated_at"),
        closed_at=nullable("closed_at"),
    )


def parse_text(text: str) -> IssueRecord:
    return parse_document(text.splitlines())


__all__ = ["parse_document", "parse_text"]
