"""Runtime helpers for beadsuite CLI orchestration."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from .bd_client import BdClient, BdClientConfig
from .config import SuiteConfig, load_config
from .logging import configure_logging, get_logger


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def _default_loader(path: str | None) -> SuiteConfig:
    # the implicit default file is optional; an explicit --config is not
    return load_config(path, required=path is not None)


def prepare_config(
    args: Any, *, loader: Callable[[str | None], SuiteConfig] = _default_loader
) -> SuiteConfig:
    """Load SuiteConfig for the given argparse namespace and apply CLI overrides."""
    if not hasattr(args, "config"):
        raise AttributeError("Command namespace is missing 'config' attribute")
    cfg = loader(args.config)
    if getattr(args, "bd", None):
        cfg.bd_binary = args.bd
    if getattr(args, "dry_run", False):
        cfg.dry_run_default = True
    level = "ERROR" if getattr(args, "quiet", False) else cfg.logging_level
    if getattr(args, "verbose", False):
        level = "DEBUG"
    configure_logging(json_logging=cfg.logging_json_enabled, level=level)
    return cfg


def build_client(cfg: SuiteConfig) -> BdClient:
    return BdClient(
        BdClientConfig(
            binary=cfg.bd_binary,
            cwd=cfg.bd_cwd,
            mock=cfg.mock,
            dry_run=cfg.dry_run_default,
            timeout=cfg.bd_timeout,
        )
    )


def execute_command(handler: _HandlerCallable, args: Any, command: str) -> int:
    """Execute a command handler, logging its duration and exit code."""
    logger = get_logger()
    start = time.monotonic()
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
    except SystemExit as exc:  # pragma: no cover - allow propagation
        exit_code = int(exc.code or 0)
        raise
    except Exception:
        exit_code = 1
        raise
    finally:
        duration_ms = max(0.0, time.monotonic() - start) * 1000
        logger.log_performance(f"cli_{command}", duration_ms, exit_code=exit_code)
    return exit_code


__all__ = ["prepare_config", "build_client", "execute_command"]
