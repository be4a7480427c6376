from __future__ import annotations

import json
import logging

import pytest

from swkit.logger import (
    Logger,
    logging_level,
    new_custom,
    new_custom_with_file,
    new_logger,
)


def _entries(path):
    return [json.loads(line) for line in path.read_text().splitlines() if line]


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("panic", logging.CRITICAL),
        ("fatal", logging.CRITICAL),
        ("error", logging.ERROR),
        ("warn", logging.WARNING),
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
        ("", logging.WARNING),
        ("verbose", logging.WARNING),
    ],
)
def test_logging_level(name, expected):
    assert logging_level(name) == expected


def test_file_logger_writes_message_and_fields(tmp_path):
    path = tmp_path / "agent.log"
    log = new_custom_with_file("info", str(path)).with_fields("version", "0.4.0", "sha256", "abc")
    log.info("loading %s configuration", "dev")
    [entry] = _entries(path)
    assert entry["msg"] == "loading dev configuration"
    assert entry["version"] == "0.4.0"
    assert entry["sha256"] == "abc"
    assert entry["level"] == "INFO"
    assert "timestamp" in entry


def test_level_filters_lower_entries(tmp_path):
    path = tmp_path / "agent.log"
    log = new_custom_with_file("error", str(path))
    log.debug("d")
    log.info("i")
    log.error("e")
    entries = _entries(path)
    assert [e["msg"] for e in entries] == ["e"]
    assert entries[0]["level"] == "ERROR"


def test_unknown_level_defaults_to_warning(tmp_path):
    path = tmp_path / "agent.log"
    log = new_custom_with_file("bogus", str(path))
    log.debug("d")
    log.info("i")
    log.error("e")
    assert [e["msg"] for e in _entries(path)] == ["e"]


def test_debug_level_keeps_debug(tmp_path):
    path = tmp_path / "agent.log"
    log = new_custom_with_file("debug", str(path))
    log.debug("d")
    log.info("i")
    assert [e["msg"] for e in _entries(path)] == ["d", "i"]


def test_with_fields_without_args_returns_same_logger():
    log = new_custom("info")
    assert log.with_fields() is log


def test_with_fields_odd_args_raises():
    with pytest.raises(ValueError):
        new_custom("info").with_fields("version")


def test_with_fields_non_string_key_raises():
    with pytest.raises(TypeError):
        new_custom("info").with_fields(1, "x")


def test_request_and_correlation_ids_are_added():
    log = new_custom("info").with_fields(request_id="r-1", correlation_id="c-2")
    assert log.fields == {"request_id": "r-1", "correlation_id": "c-2"}


def test_with_fields_leaves_parent_untouched():
    parent = new_custom("info").with_fields("a", 1)
    child = parent.with_fields("b", 2)
    assert parent.fields == {"a": 1}
    assert child.fields == {"a": 1, "b": 2}


def test_custom_base_receives_fields():
    base = logging.Logger("test-base", logging.DEBUG)
    handler = _ListHandler()
    base.addHandler(handler)
    Logger(base, {"svc": "meta"}).error("failed: %s", "boom")
    [record] = handler.records
    assert record.getMessage() == "failed: boom"
    assert record.levelno == logging.ERROR
    assert record._swkit_fields == {"svc": "meta"}


def test_new_logger_writes_json_to_stderr(capsys):
    new_logger().with_fields("version", "0.4.0").info("hello")
    entry = json.loads(capsys.readouterr().err.strip())
    assert entry["msg"] == "hello"
    assert entry["version"] == "0.4.0"
    assert entry["level"] == "info"
    assert "ts" in entry


def test_new_custom_writes_to_stderr(capsys):
    new_custom("debug").debug("probe %d", 7)
    entry = json.loads(capsys.readouterr().err.strip())
    assert entry["msg"] == "probe 7"
    assert "timestamp" in entry