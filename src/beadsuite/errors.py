"""Error taxonomy for beadsuite.

Every failure the library reports on purpose derives from ``BeadsuiteError``
so callers (the CLI, an editor integration) can catch one type, show the
message to the person editing the document and leave their edits untouched.

Categories:
- ValidationError     -> missing/invalid input (create without title, bad issue type,
                         document without front-matter)
- TranscriptionError  -> structurally inconsistent document (unterminated
                         front-matter, unparseable priority)
- SubprocessError     -> bd exited non-zero, produced non-JSON output, or could
                         not be launched
- CommandFailedError  -> a SubprocessError raised while applying a command list;
                         carries the failing command and what was already applied
- ConfigError         -> unreadable configuration

Nothing here is retried automatically: bd mutations are not idempotent (a
retried ``create`` duplicates the issue).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .commands import BdCommand


class BeadsuiteError(Exception):
    """Base class for all errors raised deliberately by beadsuite."""


class ValidationError(BeadsuiteError, ValueError):
    pass


class TranscriptionError(BeadsuiteError, ValueError):
    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"line {line}: {message}" if line is not None else message)


class SubprocessError(BeadsuiteError, RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        stderr: str | None = None,
        argv: Sequence[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr
        self.argv = tuple(argv) if argv is not None else None


class CommandFailedError(SubprocessError):
    """A command in an ordered list failed; earlier commands stay applied."""

    def __init__(
        self,
        command: BdCommand,
        index: int,
        applied: Sequence[BdCommand],
        cause: SubprocessError,
    ) -> None:
        super().__init__(
            f"command {index + 1} failed ({command.to_shell()}): {cause}",
            exit_code=cause.exit_code,
            stderr=cause.stderr,
            argv=cause.argv,
        )
        self.command = command
        self.index = index
        self.applied = tuple(applied)


class ConfigError(BeadsuiteError, RuntimeError):
    pass


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    details: dict[str, Any] | None = None


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception onto a reporting category."""
    msg = str(exc) if exc else ""
    name = exc.__class__.__name__
    if isinstance(exc, CommandFailedError):
        details: dict[str, Any] = {
            "index": exc.index,
            "command": exc.command.to_shell(),
            "applied": len(exc.applied),
        }
        if exc.exit_code is not None:
            details["exit_code"] = exc.exit_code
        return ErrorInfo("apply", msg, name, details=details)
    if isinstance(exc, SubprocessError):
        details = {"exit_code": exc.exit_code} if exc.exit_code is not None else None
        return ErrorInfo("subprocess", msg, name, details=details)
    if isinstance(exc, TranscriptionError):
        details = {"line": exc.line} if exc.line is not None else None
        return ErrorInfo("transcription", msg, name, details=details)
    if isinstance(exc, ValidationError):
        return ErrorInfo("validation", msg, name)
    if isinstance(exc, ConfigError):
        return ErrorInfo("config", msg, name)
    return ErrorInfo("generic", msg, name)


__all__ = [
    "BeadsuiteError",
    "ValidationError",
    "TranscriptionError",
    "SubprocessError",
    "CommandFailedError",
    "ConfigError",
    "ErrorInfo",
    "classify_error",
]
