"""Pytest configuration for beadsuite tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`). No test talks to a
real ``bd``: clients are built with a fake runner that replays canned
``CompletedProcess`` results and records every argument vector.
"""

from __future__ import annotations

import json
import subprocess
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Ensure pytest-asyncio plugin is loaded explicitly so @pytest.mark.asyncio tests run
pytest_plugins = ["pytest_asyncio"]

from beadsuite.logging import configure_logging  # noqa: E402


Responder = Callable[[list[str]], "subprocess.CompletedProcess[str]"]


def completed(
    argv: list[str], stdout: Any = None, *, code: int = 0, stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    """Build a CompletedProcess; non-string stdout is JSON encoded."""
    text = stdout if isinstance(stdout, str) else json.dumps(stdout)
    return subprocess.CompletedProcess(argv, code, stdout=text, stderr=stderr)


class FakeRunner:
    """Stand-in for ``subprocess.run`` keyed on the bd subcommand words."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict[str, Any]] = []
        self._routes: list[tuple[tuple[str, ...], Responder]] = []
        self._lock = threading.Lock()

    def route(self, prefix: tuple[str, ...], responder: Responder) -> None:
        self._routes.append((prefix, responder))

    def reply(self, prefix: tuple[str, ...], stdout: Any = None, *, code: int = 0, stderr: str = "") -> None:
        self.route(prefix, lambda argv: completed(argv, stdout, code=code, stderr=stderr))

    def __call__(self, argv: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        with self._lock:
            self.calls.append(list(argv))
            self.kwargs.append(kwargs)
        words = tuple(argv[1:])
        # most specific route wins
        for prefix, responder in sorted(self._routes, key=lambda r: -len(r[0])):
            if words[: len(prefix)] == prefix:
                return responder(list(argv))
        return completed(list(argv), {})


@pytest.fixture(autouse=True)
def _fresh_logger() -> None:
    # the global logger binds sys.stderr when built; rebuild it under this test's capture
    configure_logging(level="WARNING")


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def issue_json() -> dict[str, Any]:
    return {
        "id": "bd-42",
        "title": "Fix login redirect",
        "issue_type": "bug",
        "status": "open",
        "priority": 1,
        "assignee": "sam",
        "labels": ["auth", "web"],
        "dependencies": [
            {"id": "bd-1", "dependency_type": "parent-child"},
            {"id": "bd-7", "dependency_type": "blocks"},
        ],
        "description": "Users land on /home after login.\nExpected: original page.",
        "acceptance_criteria": "- redirect preserved",
        "design": "",
        "created_at": "2025-01-02T10:00:00Z",
        "updated_at": "2025-01-03T11:00:00Z",
    }
