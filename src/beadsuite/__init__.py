"""beadsuite - edit bd (beads) issues as Markdown documents.

High-level public API (stable):

from beadsuite import BdClient, format_issue, parse_document, diff_issues

client = BdClient()
lines = format_issue(client.get_issue("bd-42"))
# ... user edits ``lines`` ...
plan = plan_update(client.get_issue("bd-42"), lines)
for command in plan.commands:
    print(command.to_shell())

The document/diff/command layers are pure; only BdClient runs ``bd``.
"""

from __future__ import annotations

from .bd_client import BdClient, BdClientConfig
from .commands import BdCommand, build_create_command, generate_update_commands, shell_quote
from .config import SuiteConfig, load_config
from .diffing import describe_changes, diff_issues
from .errors import (
    BeadsuiteError,
    CommandFailedError,
    ConfigError,
    SubprocessError,
    TranscriptionError,
    ValidationError,
)
from .formatter import format_issue, format_issue_text
from .models import ChangeSet, IssueRecord, SetChange, new_issue_record
from .parser import parse_document, parse_text
from .session import create_issue, new_issue_document, plan_update, render_issue, save_issue

# Version constant (keep in sync with pyproject.toml)
__version__ = "0.1.0"

__all__ = [
    "BdClient",
    "BdClientConfig",
    "BdCommand",
    "BeadsuiteError",
    "ChangeSet",
    "CommandFailedError",
    "ConfigError",
    "IssueRecord",
    "SetChange",
    "SubprocessError",
    "SuiteConfig",
    "TranscriptionError",
    "ValidationError",
    "__version__",
    "build_create_command",
    "create_issue",
    "describe_changes",
    "diff_issues",
    "format_issue",
    "format_issue_text",
    "generate_update_commands",
    "load_config",
    "new_issue_document",
    "new_issue_record",
    "parse_document",
    "parse_text",
    "plan_update",
    "render_issue",
    "save_issue",
    "shell_quote",
]
