"""
Structured logging for the timeline package.

Records emitted while a batch run is in flight carry the run's id, item
count, sort policy and target window, so a failed write can be traced to
the placement it belonged to.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from timeline import config

from .context import current_run

PACKAGE_LOGGER = "timeline"

# LogRecord attributes that are not caller extras
_RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    {
        "timestamp": "2026-03-10T10:30:00.000Z",
        "level": "WARNING",
        "logger": "timeline.engine.batch_positioner",
        "message": "Batch positioning stopped at item 2 of 3",
        "run": {"run_id": "run-abc123", "item_count": 3,
                "sort_policy": "custom_order", "window": "...T16:00/...T19:00"}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run = current_run()
        if run is not None:
            log_obj["run"] = run.as_log_fields()

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line format for a terminal: `[run-0123456 custom_order n=3]`."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        run = current_run()
        prefix = ""
        if run is not None:
            parts = [run.run_id[:12]]
            if run.sort_policy:
                parts.append(run.sort_policy)
            parts.append(f"n={run.item_count}")
            prefix = f"[{' '.join(parts)}] "
        line = f"{timestamp} [{record.levelname}] {record.name}: {prefix}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
) -> logging.Logger:
    """
    Attach a single stderr handler to the `timeline` package logger.

    The host application's root logger is left alone; package records stop
    at the package logger so they are not written twice.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to
            TIMELINE_LOG_LEVEL.
        json_format: Defaults to TIMELINE_LOG_JSON, then JSON unless stderr
            is a terminal.
    """
    if level is None:
        level = config.LOG_LEVEL
    if json_format is None:
        json_format = config.LOG_JSON
    if json_format is None:
        json_format = not sys.stderr.isatty()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.propagate = False

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    package_logger.addHandler(handler)
    return package_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
