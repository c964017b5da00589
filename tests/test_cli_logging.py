from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from quadhash.cli import app
from quadhash.core.hashers import identity_int_hash
from quadhash.core.table import QuadraticHashTable


def test_json_formatter_with_exc_and_stack() -> None:
    formatter = app.JsonFormatter()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.getLogger("test").makeRecord(
            "test", logging.ERROR, __file__, 0, "failure", (), sys.exc_info(), func="func"
        )
    record.stack_info = "trace info"
    payload = json.loads(formatter.format(record))
    assert payload["level"] == "ERROR"
    assert payload["msg"] == "failure"
    assert "exc_info" in payload
    assert payload["stack"]


def test_configure_logging_json_and_file(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    try:
        app.configure_logging(use_json=True, log_file=str(log_file), max_bytes=1_024)
        logger = logging.getLogger("quadhash")
        table = QuadraticHashTable(5, primary_hash=identity_int_hash)
        for key in range(3):
            table.insert(key, key)
        handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].maxBytes == 1_024
        for handler in logger.handlers:
            handler.flush()
        lines = log_file.read_text(encoding="utf-8").splitlines()
        records = [json.loads(line) for line in lines]
        assert any(
            record["logger"] == "quadhash" and record["msg"].startswith("Rehash: capacity 5 -> 11")
            for record in records
        )
    finally:
        app.configure_logging()


def test_configure_logging_replaces_handlers() -> None:
    app.configure_logging()
    app.configure_logging()
    logger = logging.getLogger("quadhash")
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_emit_success_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(app, "OUTPUT_JSON", True)
    app.emit_success("demo", text="done", data={"value": 5})
    out = capsys.readouterr().out.strip()
    payload = json.loads(out)
    assert payload["ok"] is True
    assert payload["command"] == "demo"
    assert payload["value"] == 5
    assert payload["result"] == "done"


def test_emit_success_text(capsys: pytest.CaptureFixture[str]) -> None:
    app.emit_success("demo", text="done", data={"value": 5})
    assert capsys.readouterr().out == "done\n"
