"""bd CLI execution layer.

Encapsulates every ``bd`` subprocess call so the document/diff/command code
stays pure. Design points:

 - Every invocation carries ``--json`` exactly once and stdout is parsed as JSON
 - Non-zero exit -> SubprocessError with exit code and stderr
 - Exit 0 with non-JSON stdout -> SubprocessError "Failed to parse JSON output"
 - Synchronous ``execute``, callback-based ``execute_async`` (worker thread,
   callback invoked exactly once) and the ``run`` coroutine
 - Mock mode (log MOCK action, never shell out, fabricate ids/records) and
   dry-run mode (reads still run; mutating commands are only logged)
 - ``apply`` runs a command list strictly in order and stops at the first
   failure; nothing already applied is rolled back and nothing is retried
"""

from __future__ import annotations

import asyncio
import functools
import json
import re
import subprocess  # nosec B404 - bd is invoked with controlled argument vectors
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from .commands import DEFAULT_PROGRAM, BdCommand, build_create_command, shell_quote
from .constants import DEFAULT_PRIORITY, ISSUE_TYPES, NEW_ISSUE_ID
from .errors import CommandFailedError, SubprocessError, ValidationError
from .filters import ListFilter
from .logging import StructuredLogger, get_logger
from .models import IssueRecord

JSON_FLAG = "--json"
_PLAIN_WORD_RE = re.compile(r"^[A-Za-z0-9_./:=@%+,-]+$")

Runner = Callable[..., "subprocess.CompletedProcess[str]"]
ResultCallback = Callable[[Any, "Exception | None"], None]


@dataclass
class BdClientConfig:
    binary: str = DEFAULT_PROGRAM
    cwd: str | None = None  # bd finds .beads/ from here, like git finds .git/
    mock: bool = False
    dry_run: bool = False
    timeout: float | None = None
    max_workers: int = 2


def prepare_command(binary: str, args: Sequence[str] | BdCommand) -> list[str]:
    """Prefix ``binary`` and make sure ``--json`` appears exactly once.

    Argument values pass through verbatim, even a value that reads ``--json``.
    A ``BdCommand`` never carries the flag, so it is always appended; a raw
    vector that already ends with it is left alone.
    """
    if isinstance(args, BdCommand):
        return [binary, *args.argv, JSON_FLAG]
    cmd = [binary, *args]
    if len(cmd) == 1 or cmd[-1] != JSON_FLAG:
        cmd.append(JSON_FLAG)
    return cmd


def render_argv(cmd: Sequence[str]) -> str:
    return " ".join(a if _PLAIN_WORD_RE.match(a) else shell_quote(a) for a in cmd)


def parse_result(returncode: int, stdout: str | None, stderr: str | None) -> Any:
    if returncode != 0:
        err = stderr.strip() if stderr else ""
        raise SubprocessError(
            f"bd command failed (exit code {returncode}): {err or 'no error output'}",
            exit_code=returncode,
            stderr=stderr,
        )
    try:
        return json.loads(stdout or "")
    except json.JSONDecodeError as exc:
        raise SubprocessError(f"Failed to parse JSON output: {exc}", exit_code=0) from exc


def extract_created_id(payload: Any) -> str:
    """Return the id from ``bd create --json`` output (already decoded or raw text)."""
    if isinstance(payload, str):
        if not payload.strip():
            raise SubprocessError("Empty output from bd create")
        payload = parse_result(0, payload, None)
    if not isinstance(payload, Mapping):
        raise SubprocessError("No id field in JSON output: expected an object")
    issue_id = payload.get("id")
    if not isinstance(issue_id, str) or not issue_id:
        raise SubprocessError("No id field in JSON output")
    return issue_id


def _default_template(issue_type: str) -> dict[str, Any]:
    return {
        "title": "",
        "type": issue_type,
        "priority": DEFAULT_PRIORITY,
        "description": "",
        "acceptance_criteria": "",
        "design": "",
    }


class BdClient:
    """Thin wrapper around bd operations.

    Errors surface as ``SubprocessError``; the runner is injectable so tests
    never need a real ``bd`` on PATH.
    """

    # Deterministic fabricated ids for issues "created" in mock mode
    _mock_counter: int = 1000

    def __init__(self, cfg: BdClientConfig | None = None, runner: Runner | None = None) -> None:
        self.cfg = cfg or BdClientConfig()
        self._runner: Runner = runner or subprocess.run
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> BdClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def _logger(self) -> StructuredLogger:
        # looked up per call so configure_logging after construction takes effect
        return get_logger()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # --- internal helpers -------------------------------------------------
    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=max(1, self.cfg.max_workers), thread_name_prefix="bd"
            )
        return self._executor

    def _invoke(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return self._runner(  # nosec B603 - argument vector, no shell
                cmd,
                capture_output=True,
                text=True,
                cwd=self.cfg.cwd,
                timeout=self.cfg.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise SubprocessError(f"bd executable not found: {cmd[0]}", argv=cmd) from exc
        except subprocess.TimeoutExpired as exc:
            raise SubprocessError(f"bd command timed out after {exc.timeout}s", argv=cmd) from exc

    # --- execution --------------------------------------------------------
    def execute(self, args: Sequence[str] | BdCommand) -> Any:
        """Run ``bd <args> --json`` and return the decoded JSON payload."""
        cmd = prepare_command(self.cfg.binary, args)
        if isinstance(args, BdCommand):
            shell = f"{args.to_shell(self.cfg.binary)} {JSON_FLAG}"
        else:
            shell = render_argv(cmd)
        if self.cfg.mock:
            self._logger.log_command(shell, mock=True)
            return None
        self._logger.log_command(shell)
        proc = self._invoke(cmd)
        try:
            return parse_result(proc.returncode, proc.stdout, proc.stderr)
        except SubprocessError as exc:
            exc.argv = tuple(cmd)
            raise

    def execute_async(
        self, args: Sequence[str] | BdCommand, callback: ResultCallback
    ) -> Future[None]:
        """Run on a worker thread; ``callback(result, error)`` fires exactly once.

        The returned future resolves after the callback has run.
        """
        if not callable(callback):
            raise TypeError("execute_async: callback must be callable")
        arg_list = args if isinstance(args, BdCommand) else list(args)

        def _run_and_notify() -> None:
            try:
                result = self.execute(arg_list)
            except Exception as exc:  # delivered to the callback, not dropped
                callback(None, exc)
                return
            callback(result, None)

        return self._get_executor().submit(_run_and_notify)

    async def run(self, args: Sequence[str] | BdCommand) -> Any:
        loop = asyncio.get_running_loop()
        arg_list = args if isinstance(args, BdCommand) else list(args)
        return await loop.run_in_executor(
            self._get_executor(), functools.partial(self.execute, arg_list)
        )

    def run_command(self, command: BdCommand) -> Any:
        """Run a mutating command; in dry-run mode it is only logged."""
        if self.cfg.dry_run and not self.cfg.mock:
            self._logger.log_command(command.to_shell(self.cfg.binary), dry_run=True)
            return None
        return self.execute(command)

    def apply(self, commands: Iterable[BdCommand]) -> list[Any]:
        """Execute ``commands`` in order; stop at the first failure."""
        applied: list[BdCommand] = []
        results: list[Any] = []
        for index, command in enumerate(commands):
            try:
                results.append(self.run_command(command))
            except SubprocessError as exc:
                self._logger.log_error(
                    "bd command failed",
                    error=str(exc),
                    command=command.to_shell(self.cfg.binary),
                    index=index,
                )
                raise CommandFailedError(command, index, applied, exc) from exc
            applied.append(command)
        return results

    # --- issue operations -------------------------------------------------
    def get_issue(self, issue_id: str) -> IssueRecord:
        if not isinstance(issue_id, str) or not issue_id.strip():
            raise ValidationError("Invalid issue ID")
        if self.cfg.mock:
            self._logger.log_command(f"{self.cfg.binary} show {issue_id}", mock=True)
            return IssueRecord(id=issue_id)
        try:
            result = self.execute(["show", issue_id])
        except SubprocessError as exc:
            raise SubprocessError(
                f"Failed to fetch issue {issue_id}: {exc}", exit_code=exc.exit_code, stderr=exc.stderr
            ) from exc
        payload = result[0] if isinstance(result, list) and result else result
        if not isinstance(payload, Mapping) or not payload.get("id"):
            raise SubprocessError(f"Invalid issue data for {issue_id}")
        return IssueRecord.from_json(payload)

    def _query(self, args: list[str], flt: ListFilter | None) -> list[IssueRecord]:
        result = self.execute(args)
        if result is None:
            return []
        if not isinstance(result, list):
            raise SubprocessError(f"Expected a JSON array from bd {args[0]}")
        records = [IssueRecord.from_json(item) for item in result]
        if flt is not None:
            records = [r for r in records if flt.matches(r)]
        return records

    def list_issues(self, flt: ListFilter | None = None) -> list[IssueRecord]:
        return self._query([flt.subcommand if flt else "list"], flt)

    def ready_issues(self, flt: ListFilter | None = None) -> list[IssueRecord]:
        return self._query(["ready"], flt)

    def fetch_template(self, issue_type: str) -> dict[str, Any]:
        """Fetch bd's template for ``issue_type``; fall back to empty sections.

        Only a failed bd invocation (no template defined) falls back; a JSON
        parse failure still propagates.
        """
        if issue_type not in ISSUE_TYPES:
            raise ValidationError(
                f"Invalid issue type '{issue_type}'. Must be one of: {', '.join(ISSUE_TYPES)}"
            )
        try:
            result = self.execute(["template", "show", issue_type])
        except SubprocessError as exc:
            if exc.exit_code is None or exc.exit_code == 0:
                raise
            self._logger.debug("no bd template, using default", issue_type=issue_type)
            return _default_template(issue_type)
        if not isinstance(result, Mapping):
            return _default_template(issue_type)
        return dict(result)

    def create_issue(self, issue: IssueRecord) -> str:
        command = build_create_command(issue)
        payload = self.run_command(command)
        if self.cfg.mock and not self.cfg.dry_run:
            BdClient._mock_counter += 1
            return f"bd-mock{BdClient._mock_counter}"
        if payload is None and self.cfg.dry_run:
            return NEW_ISSUE_ID
        issue_id = extract_created_id(payload)
        self._logger.log_issue_action("create", issue_id)
        return issue_id


__all__ = [
    "BdClient",
    "BdClientConfig",
    "JSON_FLAG",
    "prepare_command",
    "render_argv",
    "parse_result",
    "extract_created_id",
]
