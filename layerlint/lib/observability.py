"""Logging utilities for layerlint.

Standard-library logging is the sink: ``setup_logging`` installs a console
handler (plain or JSON) and an optional file handler. Run-level events are
emitted through structlog, which renders into the same handlers.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

import structlog

__all__ = [
    "JSONFormatter",
    "get_structlog_logger",
    "setup_logging",
    "time_stage",
]

_CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_RESERVED_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


class JSONFormatter(logging.Formatter):
    """One JSON object per log line, for log aggregation.

    Attributes passed through ``extra=`` are merged into the object unless
    they are listed in ``exclude_fields`` or clash with a standard key.

    Example output:
        {"ts": "2025-01-15T10:30:00.123Z", "level": "INFO",
         "logger": "layerlint.lib.registry", "msg": "Loaded registry: ...",
         "location": "registry.py:171", "models": 5}
    """

    def __init__(self, exclude_fields: Optional[List[str]] = None) -> None:
        super().__init__()
        self.exclude_fields = frozenset(exclude_fields or ())

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "location": f"{record.filename}:{record.lineno}",
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in self.exclude_fields:
                continue
            payload.setdefault(key, value)

        return json.dumps(payload, default=str)


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"], sort_keys=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


_configure_structlog()


def get_structlog_logger(name: str) -> Any:
    """Return a structlog logger that writes through stdlib logging."""
    return structlog.get_logger(name)


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
    level: Optional[str] = None,
) -> None:
    """Configure the root logger with optional JSON formatting.

    Args:
        verbose: Enable debug-level logging (overrides ``level``)
        json_format: Use JSON output format (for log aggregation)
        log_file: Optional file path to write logs to
        level: Level name such as "INFO" or "WARNING"
    """
    log_level = logging.DEBUG if verbose else _LEVELS.get((level or "INFO").upper(), logging.INFO)

    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S")

    # Reports go to stdout; logs stay on stderr
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(log_level)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)


@contextmanager
def time_stage(timings: Dict[str, float], name: str) -> Generator[None, None, None]:
    """Record how long a lint stage took, in seconds, into ``timings``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        timings[name] = round(time.perf_counter() - start, 4)
