from __future__ import annotations

import pytest

from beadsuite.errors import ValidationError
from beadsuite.filters import ListFilter, parse_list_args, parse_ready_args
from beadsuite.models import IssueRecord


@pytest.mark.parametrize(
    ("words", "status", "issue_type"),
    [
        ([], None, None),
        (["open", "bugs"], "open", "bug"),
        (["ready"], "ready", None),
        (["features"], None, "feature"),
        (["task"], None, "task"),
        (["all", "tasks"], "all", "task"),
        (["in_progress", "all"], "in_progress", "all"),
        (["all", "all"], "all", "all"),
        (["Epics", "CLOSED"], "closed", "epic"),
    ],
)
def test_parse_list_args(words: list[str], status: str | None, issue_type: str | None) -> None:
    flt = parse_list_args(words)
    assert (flt.status, flt.issue_type) == (status, issue_type)


@pytest.mark.parametrize("words", [["foobar"], ["open", "closed"], ["bug", "bugs"], ["open", "bug", "x"]])
def test_parse_list_args_rejects(words: list[str]) -> None:
    with pytest.raises(ValidationError, match="invalid or duplicate argument"):
        parse_list_args(words)


def test_parse_list_args_error_names_the_word() -> None:
    with pytest.raises(ValidationError, match="'Nope'"):
        parse_list_args(["open", "Nope"])


def test_parse_ready_args() -> None:
    assert parse_ready_args(["chores"]) == ListFilter(status="ready", issue_type="chore")
    assert parse_ready_args([]).issue_type is None
    with pytest.raises(ValidationError):
        parse_ready_args(["open"])
    with pytest.raises(ValidationError):
        parse_ready_args(["bug", "task"])


@pytest.mark.parametrize(
    ("status", "subcommand"),
    [(None, "list"), ("open", "list"), ("all", "list"), ("ready", "ready"), ("stale", "stale")],
)
def test_subcommand(status: str | None, subcommand: str) -> None:
    assert ListFilter(status=status).subcommand == subcommand


def test_matches() -> None:
    issue = IssueRecord(id="bd-1", status="open", issue_type="bug", priority=1, assignee="sam")
    assert ListFilter().matches(issue)
    assert ListFilter(status="open", issue_type="bug", priority=1, assignee="sam").matches(issue)
    assert ListFilter(status="all", issue_type="all").matches(issue)
    assert ListFilter(status="ready").matches(issue)
    assert not ListFilter(status="closed").matches(issue)
    assert not ListFilter(issue_type="task").matches(issue)
    assert not ListFilter(priority=0).matches(issue)
    assert not ListFilter(assignee="kim").matches(issue)
