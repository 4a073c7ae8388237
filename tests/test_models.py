from __future__ import annotations

from typing import Any

import pytest

from beadsuite.errors import ValidationError
from beadsuite.models import ChangeSet, IssueRecord, SetChange, new_issue_record


def test_from_json_splits_parent_and_blockers(issue_json: dict[str, Any]) -> None:
    issue = IssueRecord.from_json(issue_json)
    assert issue.parent == "bd-1"
    assert issue.dependencies == ("bd-7",)
    assert issue.issue_type == "bug"
    assert issue.notes is None
    assert issue.design == ""


def test_from_json_depends_on_id_and_plain_strings() -> None:
    issue = IssueRecord.from_json(
        {
            "id": "bd-2",
            "dependencies": [
                "bd-8",
                {"depends_on_id": "bd-9", "type": "blocks"},
                {"depends_on_id": "bd-5", "type": "related"},
                {"id": "bd-3", "dependency_type": "parent-child"},
                {"id": "bd-4", "dependency_type": "parent-child"},
            ],
        }
    )
    assert issue.dependencies == ("bd-8", "bd-9")
    assert issue.parent == "bd-3"


def test_from_json_parent_key_fallback() -> None:
    assert IssueRecord.from_json({"id": "bd-2", "parent": "bd-1"}).parent == "bd-1"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(3, 3), ("4", 4), (True, None), ("high", None), (None, None)],
)
def test_from_json_priority(raw: Any, expected: int | None) -> None:
    assert IssueRecord.from_json({"id": "bd-2", "priority": raw}).priority == expected


def test_from_json_empty_assignee_is_absent() -> None:
    assert IssueRecord.from_json({"id": "bd-2", "assignee": ""}).assignee is None


@pytest.mark.parametrize("payload", [[], "bd-1", {"title": "no id"}, {"id": ""}])
def test_from_json_rejects_bad_payload(payload: Any) -> None:
    with pytest.raises(ValidationError):
        IssueRecord.from_json(payload)


def test_is_new() -> None:
    assert IssueRecord().is_new
    assert IssueRecord(id="(new)").is_new
    assert not IssueRecord(id="bd-1").is_new


def test_new_issue_record_defaults() -> None:
    record = new_issue_record("task")
    assert record.id == "(new)"
    assert record.title == ""
    assert record.priority == 2
    assert record.status == "open"
    assert (record.description, record.acceptance_criteria, record.design) == ("", "", "")


def test_new_issue_record_uses_template() -> None:
    record = new_issue_record("bug", {"priority": 0, "labels": ["triage"], "design": "tbd"})
    assert record.priority == 0
    assert record.labels == ("triage",)
    assert record.design == "tbd"


def test_changeset_to_dict_is_sparse() -> None:
    assert ChangeSet().to_dict() == {}
    assert ChangeSet().is_empty()
    changes = ChangeSet(
        metadata={"assignee": ""},
        labels=SetChange(add=("a",)),
        dependencies=SetChange(),
        parent="",
    )
    assert changes.to_dict() == {
        "metadata": {"assignee": ""},
        "labels": {"add": ["a"]},
        "parent": "",
    }
    assert not changes.is_empty()
