"""Argument parsing and client-side filtering for issue listings.

``bd list``/``bd ready`` return everything they know about; narrowing by
status, type, priority and assignee happens here after the JSON comes back.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .constants import ISSUE_TYPES, PLURAL_MAP, QUERY_STATUSES, STATUSES
from .errors import ValidationError
from .models import IssueRecord

ALL = "all"

# Query-only states that map onto their own bd subcommand.
_STATE_SUBCOMMANDS = {"ready": "ready", "stale": "stale"}


@dataclass(frozen=True)
class ListFilter:
    status: str | None = None
    issue_type: str | None = None
    priority: int | None = None
    assignee: str | None = None

    @property
    def subcommand(self) -> str:
        return _STATE_SUBCOMMANDS.get(self.status or "", "list")

    def matches(self, issue: IssueRecord) -> bool:
        if self.status and self.status not in QUERY_STATUSES and issue.status != self.status:
            return False
        if self.issue_type and self.issue_type != ALL and issue.issue_type != self.issue_type:
            return False
        if self.priority is not None and issue.priority != self.priority:
            return False
        return not (self.assignee and issue.assignee != self.assignee)


def _normalize(word: str) -> str:
    lowered = word.lower()
    return PLURAL_MAP.get(lowered, lowered)


def _invalid(word: str) -> ValidationError:
    return ValidationError(f"invalid or duplicate argument '{word}'")


def parse_list_args(words: Iterable[str]) -> ListFilter:
    """Parse ``[status] [type]`` words in any order.

    ``all`` is taken as the status first and as the type when the status is
    already set, so ``all all`` means everything.
    """
    status: str | None = None
    issue_type: str | None = None
    for word in words:
        normalized = _normalize(word)
        if normalized in STATUSES and status is None:
            status = normalized
        elif (normalized in ISSUE_TYPES or normalized == ALL) and issue_type is None:
            issue_type = normalized
        else:
            raise _invalid(word)
    return ListFilter(status=status, issue_type=issue_type)


def parse_ready_args(words: Iterable[str]) -> ListFilter:
    issue_type: str | None = None
    for word in words:
        normalized = _normalize(word)
        if normalized in ISSUE_TYPES and issue_type is None:
            issue_type = normalized
        else:
            raise _invalid(word)
    return ListFilter(status="ready", issue_type=issue_type)


__all__ = ["ListFilter", "parse_list_args", "parse_ready_args"]
