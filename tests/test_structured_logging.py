import json
import logging

from beadsuite.logging import StructuredLogger, configure_logging, get_logger


def _lines(text):
    return [line for line in text.strip().split("\n") if line]


def test_structured_logger_json_format(capsys):
    logger = StructuredLogger(name="beadsuite.test.json", json_logging=True, level="INFO")
    logger.log_operation("render", issue_id="bd-1", lines=12)

    log_lines = _lines(capsys.readouterr().err)
    assert len(log_lines) == 1
    entry = json.loads(log_lines[0])
    assert entry["level"] == "INFO"
    assert entry["message"] == "Operation: render"
    assert entry["operation"] == "render"
    assert entry["issue_id"] == "bd-1"
    assert entry["lines"] == 12
    assert "timestamp" in entry


def test_structured_logger_plain_format(capsys):
    logger = StructuredLogger(name="beadsuite.test.plain", json_logging=False, level="INFO")
    logger.log_issue_action("update", "bd-7", dry_run=True)
    err = capsys.readouterr().err
    assert "issue update bd-7 [DRY]" in err
    assert not err.lstrip().startswith("{")


def test_log_command_levels(capsys):
    logger = StructuredLogger(name="beadsuite.test.cmd", json_logging=True, level="INFO")
    logger.log_command("bd list --json")
    logger.log_command("bd close 'bd-1'", dry_run=True)
    logger.log_command("bd show 'bd-1' --json", mock=True)
    entries = [json.loads(line) for line in _lines(capsys.readouterr().err)]
    # RUN is debug-only
    assert [e["message"] for e in entries] == [
        "DRY-RUN bd close 'bd-1'",
        "MOCK bd show 'bd-1' --json",
    ]
    assert entries[0]["command"] == "bd close 'bd-1'"


def test_set_level():
    logger = StructuredLogger(name="beadsuite.test.level", level="WARNING")
    assert logger.level == logging.WARNING
    logger.set_level("debug")
    assert logger.level == logging.DEBUG


def test_timed_operation_logs_performance(capsys):
    logger = StructuredLogger(name="beadsuite.test.timed", json_logging=True, level="INFO")
    with logger.timed_operation("save", issue_id="bd-3"):
        pass
    entries = [json.loads(line) for line in _lines(capsys.readouterr().err)]
    assert entries[-1]["operation"] == "save"
    assert entries[-1]["duration_ms"] >= 0


def test_configure_logging_replaces_global():
    configured = configure_logging(json_logging=False, level="ERROR")
    assert get_logger() is configured
    assert configured.level == logging.ERROR
