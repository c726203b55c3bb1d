import logging
import os
import sys

from pythonjsonlogger.json import JsonFormatter

# Third-party loggers capped at WARNING
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        )
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")


def configure_logging(
    level: str = "INFO", json_format: bool = True, log_file: str = "data/context_engine.log"
) -> None:
    """Route all engine logs to stderr and, unless ``log_file`` is empty, to a file."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    formatter = _build_formatter(json_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
