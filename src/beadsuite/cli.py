"""beadsuite CLI.

Subcommands:
  show    -> render an issue as an editable document
  new     -> render a blank document for a new issue (from bd's template)
  diff    -> show what saving an edited document would change, and the bd commands
  save    -> apply an edited document to bd and rewrite it from the reloaded issue
  create  -> create an issue from a new-issue document
  list    -> list issues, filtered by [status] [type]
  ready   -> list ready (unblocked) issues, filtered by [type]

Documents go to stdout; logging goes to stderr.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import Any

from .bd_client import BdClient
from .commands import render_shell
from .config import CONFIG_DEFAULT, SuiteConfig
from .diffing import describe_changes
from .errors import BeadsuiteError, classify_error
from .filters import ListFilter, parse_list_args, parse_ready_args
from .models import IssueRecord
from .runtime import build_client, execute_command, prepare_config
from .session import create_issue, new_issue_document, plan_update, render_issue, save_issue

QUIET_ENV = "BEADSUITE_QUIET"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _add_filter_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--priority", type=int, choices=range(0, 5), help="Only this priority")
    parser.add_argument("--assignee", help="Only issues assigned to this user")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table")


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands.

    Keep ordering stable for help output readability.
    """
    p = _FormatterArgumentParser(
        prog="beadsuite", description="Edit bd issues as Markdown documents"
    )
    p.add_argument(
        "--config",
        default=None,
        help=f"Config file (default: {CONFIG_DEFAULT} if present)",
    )
    p.add_argument("--bd", help="bd executable to run (overrides config)")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Log bd commands instead of running them",
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help=f"Suppress informational logging (env: {QUIET_ENV}=1)",
    )
    p.add_argument("--verbose", action="store_true", help="Log every bd invocation")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    show = sub.add_parser("show", help="Render an issue as a document")
    show.add_argument("issue_id")
    show.add_argument("-o", "--output", help="Write the document here instead of stdout")

    new = sub.add_parser("new", help="Render a blank document for a new issue")
    new.add_argument("issue_type", help="bug, feature, task, epic or chore")
    new.add_argument("-o", "--output", help="Write the document here instead of stdout")

    diff = sub.add_parser("diff", help="Show the changes and bd commands a save would run")
    diff.add_argument("issue_id")
    diff.add_argument("document", help="Edited document path ('-' for stdin)")
    diff.add_argument("--json", action="store_true", help="Emit the change set as JSON")

    save = sub.add_parser("save", help="Apply an edited document to bd")
    save.add_argument("issue_id")
    save.add_argument("document", help="Edited document path")
    save.add_argument(
        "--no-rewrite",
        action="store_true",
        help="Leave the document untouched after a successful save",
    )

    create = sub.add_parser("create", help="Create an issue from a new-issue document")
    create.add_argument("document", help="New-issue document path")
    create.add_argument(
        "--no-rewrite",
        action="store_true",
        help="Leave the document untouched after creation",
    )

    lst = sub.add_parser("list", help="List issues: [status] [type]")
    lst.add_argument("words", nargs="*", help="e.g. 'open bugs', 'ready', 'all tasks'")
    _add_filter_options(lst)

    ready = sub.add_parser("ready", help="List ready issues: [type]")
    ready.add_argument("words", nargs="*", help="e.g. 'features'")
    _add_filter_options(ready)
    return p


def _print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)


def _read_document(path: str) -> list[str]:
    if path == "-":
        return sys.stdin.read().splitlines()
    return Path(path).read_text(encoding="utf-8").splitlines()


def _write_document(path: str, lines: list[str]) -> None:
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")


def _emit_document(lines: list[str], output: str | None) -> None:
    if output:
        _write_document(output, lines)
        print(f"[beadsuite] wrote {output}", file=sys.stderr)
    else:
        _print_lines(lines)


def _cmd_show(client: BdClient, args: argparse.Namespace) -> int:
    _emit_document(render_issue(client, args.issue_id), args.output)
    return 0


def _cmd_new(client: BdClient, args: argparse.Namespace) -> int:
    _emit_document(new_issue_document(client, args.issue_type.lower()), args.output)
    return 0


def _cmd_diff(client: BdClient, args: argparse.Namespace) -> int:
    lines = _read_document(args.document)
    original = client.get_issue(args.issue_id)
    plan = plan_update(original, lines)
    shell = render_shell(plan.commands, client.cfg.binary)
    if args.json:
        print(json.dumps({"changes": plan.changes.to_dict(), "commands": shell}, indent=2))
        return 0
    if plan.is_empty:
        print("no changes")
        return 0
    _print_lines(describe_changes(plan.changes))
    print()
    _print_lines(shell)
    return 0


def _cmd_save(client: BdClient, args: argparse.Namespace) -> int:
    # read before anything runs so a missing file fails without touching bd
    lines = _read_document(args.document)
    result = save_issue(client, args.issue_id, lines)
    if not result.changed:
        print(f"[save] {result.issue_id}: no changes")
        return 0
    print(f"[save] {result.issue_id}: applied {len(result.commands)} command(s)")
    if result.issue is not None and not args.no_rewrite:
        _write_document(args.document, result.lines)
    return 0


def _cmd_create(client: BdClient, args: argparse.Namespace) -> int:
    lines = _read_document(args.document)
    result = create_issue(client, lines)
    print(f"[create] {result.issue_id}")
    if result.issue is not None and not args.no_rewrite:
        _write_document(args.document, result.lines)
    return 0


def _issue_row(issue: IssueRecord) -> str:
    priority = issue.priority if issue.priority is not None else "-"
    return (
        f"{issue.id:<12} P{priority} {issue.issue_type or '-':<8} "
        f"{issue.status or '-':<12} {issue.title or ''}"
    )


def _emit_issues(issues: list[IssueRecord], as_json: bool) -> None:
    if as_json:
        payload = [
            {
                "id": i.id,
                "title": i.title,
                "type": i.issue_type,
                "status": i.status,
                "priority": i.priority,
                "assignee": i.assignee,
            }
            for i in issues
        ]
        print(json.dumps(payload, indent=2))
        return
    if not issues:
        print("no issues")
        return
    _print_lines(_issue_row(i) for i in issues)


def _with_options(flt: ListFilter, args: argparse.Namespace) -> ListFilter:
    return replace(flt, priority=args.priority, assignee=args.assignee)


def _cmd_list(client: BdClient, args: argparse.Namespace) -> int:
    flt = _with_options(parse_list_args(args.words), args)
    _emit_issues(client.list_issues(flt), args.json)
    return 0


def _cmd_ready(client: BdClient, args: argparse.Namespace) -> int:
    flt = _with_options(parse_ready_args(args.words), args)
    _emit_issues(client.ready_issues(flt), args.json)
    return 0


def _build_handlers(args: argparse.Namespace, client: BdClient) -> dict[str, Any]:
    return {
        "show": lambda: _cmd_show(client, args),
        "new": lambda: _cmd_new(client, args),
        "diff": lambda: _cmd_diff(client, args),
        "save": lambda: _cmd_save(client, args),
        "create": lambda: _cmd_create(client, args),
        "list": lambda: _cmd_list(client, args),
        "ready": lambda: _cmd_ready(client, args),
    }


def _report_error(command: str, exc: BaseException) -> None:
    info = classify_error(exc)
    print(f"[{command}] {info.category} error: {info.message}", file=sys.stderr)


def main(argv: list[str] | None = None, *, client: BdClient | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get(QUIET_ENV) == "1":
        args.quiet = True
    try:
        cfg: SuiteConfig = prepare_config(args)
    except BeadsuiteError as exc:
        _report_error(args.cmd, exc)
        return 1
    bd = client or build_client(cfg)
    handlers = _build_handlers(args, bd)
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    try:
        with bd:
            return execute_command(handler, args, args.cmd)
    except (BeadsuiteError, OSError) as exc:
        _report_error(args.cmd, exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
