from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from beadsuite.config import load_config
from beadsuite.errors import ConfigError

FULL_CONFIG = textwrap.dedent(
    """\
    bd:
      binary: /opt/beads/bin/bd
      cwd: project
      timeout: 15
    behavior:
      dry_run_default: true
    logging:
      json_enabled: true
      level: DEBUG
    environment:
      load_dotenv: false
    """
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so values written by load_dotenv are undone after the test
    for name in ("BEADSUITE_MOCK", "BEADSUITE_BD", "BD_PATH"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_load_full_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "beadsuite.config.yaml"
    cfg_path.write_text(FULL_CONFIG)
    cfg = load_config(cfg_path)
    assert cfg.source_file == cfg_path
    assert cfg.bd_binary == "/opt/beads/bin/bd"
    assert cfg.bd_cwd == str(tmp_path / "project")
    assert cfg.bd_timeout == 15.0
    assert cfg.dry_run_default is True
    assert cfg.mock is False
    assert cfg.logging_json_enabled is True
    assert cfg.logging_level == "DEBUG"
    assert cfg.env_load_dotenv is False


def test_missing_optional_config_gives_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    cfg = load_config(required=False)
    assert cfg.source_file is None
    assert cfg.bd_binary == "bd"
    assert cfg.bd_cwd is None
    assert cfg.bd_timeout is None
    assert cfg.dry_run_default is False
    assert cfg.logging_level == "WARNING"


def test_missing_required_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("bd: [unclosed\n")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(cfg_path)


def test_non_mapping_section_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("bd: just-a-string\n")
    with pytest.raises(ConfigError, match="'bd' must be a mapping"):
        load_config(cfg_path)


def test_bad_timeout_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("bd:\n  timeout: soon\n")
    with pytest.raises(ConfigError, match="bd.timeout"):
        load_config(cfg_path)


def test_env_var_references(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BD_PATH", "/custom/bd")
    cfg_path = tmp_path / "c.yaml"
    cfg_path.write_text("bd:\n  binary: $BD_PATH\nenvironment:\n  load_dotenv: false\n")
    assert load_config(cfg_path).bd_binary == "/custom/bd"


def test_unresolved_binary_reference_falls_back_to_bd(tmp_path: Path) -> None:
    cfg_path = tmp_path / "c.yaml"
    cfg_path.write_text("bd:\n  binary: $BD_PATH\nenvironment:\n  load_dotenv: false\n")
    assert load_config(cfg_path).bd_binary == "bd"


def test_mock_env_flag(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BEADSUITE_MOCK", "1")
    assert load_config(required=False).mock is True


def test_dotenv_file_is_loaded_without_overriding(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "beads.env").write_text("BEADSUITE_BD=/from/dotenv/bd\nBEADSUITE_MOCK=1\n")
    cfg_path = tmp_path / "c.yaml"
    cfg_path.write_text("environment:\n  dotenv_path: beads.env\n")
    monkeypatch.setenv("BEADSUITE_MOCK", "0")
    cfg = load_config(cfg_path)
    assert cfg.bd_binary == "/from/dotenv/bd"
    assert cfg.mock is False


def test_missing_dotenv_file_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "c.yaml"
    cfg_path.write_text("environment:\n  dotenv_path: nowhere.env\n")
    with pytest.raises(ConfigError, match="dotenv file not found"):
        load_config(cfg_path)
