from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

CONFIG_DEFAULT = "beadsuite.config.yaml"
MOCK_ENV = "BEADSUITE_MOCK"


@dataclass
class SuiteConfig:
    source_file: Path | None
    bd_binary: str
    bd_cwd: str | None
    bd_timeout: float | None
    dry_run_default: bool
    mock: bool
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str
    # Environment configuration
    env_load_dotenv: bool
    env_dotenv_path: str | None


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith("$"):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name, value)  # Fallback to original if not found
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return cast(dict[str, Any], value)


def _optional_float(value: Any, key: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Config value {key} must be a number, got {value!r}") from exc


def _load_raw(p: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"Configuration in {p} must be a mapping")
    return cast(dict[str, Any], loaded)


def _load_env_file(dotenv_path: str | None, source: Path | None) -> bool:
    if dotenv_path:
        candidate = Path(dotenv_path)
        if source is not None and not candidate.is_absolute():
            candidate = source.parent / candidate
        if not candidate.exists():
            raise ConfigError(f"dotenv file not found: {candidate}")
        found = str(candidate)
    else:
        found = find_dotenv(usecwd=True)
        if not found:
            return False
    # existing environment wins over .env
    return load_dotenv(dotenv_path=found, override=False)


def load_config(path: str | Path | None = None, *, required: bool = True) -> SuiteConfig:
    """Load configuration from ``path``.

    With ``required=False`` a missing file yields the defaults; an explicitly
    requested file that does not exist is a ConfigError.
    """
    p = Path(path) if path is not None else Path(CONFIG_DEFAULT)
    if p.exists():
        raw = _load_raw(p)
        source: Path | None = p
    elif required:
        raise ConfigError(f"Configuration file not found: {p}")
    else:
        raw, source = {}, None

    bd = _section(raw, "bd")
    behavior = _section(raw, "behavior")
    logging_config = _section(raw, "logging")
    env_config = _section(raw, "environment")

    env_load_dotenv = bool(env_config.get("load_dotenv", True))
    env_dotenv_path = env_config.get("dotenv_path")
    if env_load_dotenv:
        _load_env_file(env_dotenv_path, source)

    bd_binary = _resolve_env_var(bd.get("binary", "$BEADSUITE_BD"))
    if not isinstance(bd_binary, str) or not bd_binary or bd_binary.startswith("$"):
        bd_binary = "bd"
    bd_cwd = _resolve_env_var(bd.get("cwd"))
    if bd_cwd is not None and source is not None and not Path(bd_cwd).is_absolute():
        bd_cwd = str(source.parent / bd_cwd)

    return SuiteConfig(
        source_file=source,
        bd_binary=bd_binary,
        bd_cwd=bd_cwd,
        bd_timeout=_optional_float(bd.get("timeout"), "bd.timeout"),
        dry_run_default=bool(behavior.get("dry_run_default", False)),
        mock=os.environ.get(MOCK_ENV) == "1" or bool(behavior.get("mock", False)),
        # Logging configuration
        logging_json_enabled=bool(logging_config.get("json_enabled", False)),
        logging_level=str(logging_config.get("level", "WARNING")),
        # Environment configuration
        env_load_dotenv=env_load_dotenv,
        env_dotenv_path=env_dotenv_path,
    )


__all__ = ["SuiteConfig", "load_config", "ConfigError", "CONFIG_DEFAULT"]
