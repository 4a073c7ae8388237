from __future__ import annotations

from typing import Any

from beadsuite.diffing import diff_issues
from beadsuite.formatter import format_issue
from beadsuite.models import IssueRecord
from beadsuite.parser import parse_document

DIFFABLE = (
    "title",
    "issue_type",
    "status",
    "priority",
    "assignee",
    "parent",
    "description",
    "acceptance_criteria",
    "design",
    "notes",
)


def _full_record() -> IssueRecord:
    return IssueRecord(
        id="bd-a1f.2",
        title="Title with 'quotes' and $vars",
        issue_type="feature",
        status="blocked",
        priority=0,
        assignee="alex",
        labels=("ui", "backend"),
        dependencies=("bd-3", "bd-4"),
        parent="bd-a1f",
        description="line one\n\nline three",
        acceptance_criteria="- a\n- b",
        design="```\ncode: block\n```",
        notes="multi\nline\nnotes",
        created_at="2025-01-01T00:00:00Z",
        updated_at="2025-01-02T00:00:00Z",
        closed_at="2025-01-03T00:00:00Z",
    )


def test_round_trip_reproduces_every_diffable_field() -> None:
    original = _full_record()
    parsed = parse_document(format_issue(original))
    for name in DIFFABLE:
        assert getattr(parsed, name) == getattr(original, name), name
    assert set(parsed.labels) == set(original.labels)
    assert set(parsed.dependencies) == set(original.dependencies)
    assert parsed.id == original.id
    assert parsed.closed_at == original.closed_at


def test_round_trip_diff_is_empty() -> None:
    original = _full_record()
    assert diff_issues(original, parse_document(format_issue(original))).is_empty()


def test_round_trip_from_bd_json(issue_json: dict[str, Any]) -> None:
    record = IssueRecord.from_json(issue_json)
    parsed = parse_document(format_issue(record))
    assert parsed.description == record.description
    # absent notes stay absent
    assert parsed.notes is None
    assert diff_issues(record, parsed).is_empty()
