import json
import logging

import pytest

from context_engine.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_root_handlers():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_logging(capsys, tmp_path):
    configure_logging(level="INFO", json_format=True, log_file=str(tmp_path / "engine.log"))
    logger = logging.getLogger("test.json")
    logger.info("hello json")

    captured = capsys.readouterr()
    record = json.loads(captured.err.strip())
    assert record["message"] == "hello json"
    assert record["level"] == "INFO"
    assert record["logger"] == "test.json"
    assert "timestamp" in record


def test_plain_logging(capsys, tmp_path):
    configure_logging(level="INFO", json_format=False, log_file=str(tmp_path / "engine.log"))
    logger = logging.getLogger("test.plain")
    logger.info("hello plain")

    captured = capsys.readouterr()
    line = captured.err.strip()
    assert "hello plain" in line
    assert "test.plain" in line
    with pytest.raises(json.JSONDecodeError):
        json.loads(line)


def test_log_level_filtering(capsys, tmp_path):
    configure_logging(level="WARNING", json_format=True, log_file=str(tmp_path / "engine.log"))
    logger = logging.getLogger("test.level")
    logger.info("should not appear")
    logger.warning("should appear")

    captured = capsys.readouterr()
    lines = [l for l in captured.err.strip().splitlines() if l]
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["message"] == "should appear"


def test_log_file_created_in_missing_directory(tmp_path):
    log_file = tmp_path / "logs" / "engine.log"
    configure_logging(level="INFO", json_format=True, log_file=str(log_file))
    logging.getLogger("test.file").info("to disk")
    for handler in logging.getLogger().handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert record["message"] == "to disk"


def test_empty_log_file_logs_to_stderr_only(capsys):
    configure_logging(level="INFO", json_format=True, log_file="")
    assert len(logging.getLogger().handlers) == 1
    logging.getLogger("test.stderr").info("only stderr")
    assert "only stderr" in capsys.readouterr().err
