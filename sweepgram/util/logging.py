"""Logging setup shared by the sweepgram CLI and library modules.

Everything logs under the ``sweepgram`` logger. The console gets one short
line per event on stderr; ``--log-json`` adds a JSON-lines file with the same
events plus their structured context (path, line number, record, ...), which
is what scripts watching a long acquisition run should read.

    from sweepgram.util.logging import get_logger
    logger = get_logger(__name__)
    logger.warning("interval changed", extra={"record": 12})

The level comes from the ``level`` argument, else ``SWEEPGRAM_DEBUG=1``, else
``SWEEPGRAM_LOG_LEVEL`` (default INFO).
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ROOT_LOGGER = "sweepgram"

# extra={} fields carried into formatted output
_CONTEXT_KEYS = ("path", "line_no", "record", "reason", "port", "error_type", "duration_ms")

_configured = False


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in _CONTEXT_KEYS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line: time, level, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        event: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event.update(_context(record))
        if record.exc_info:
            event["traceback"] = self.formatException(record.exc_info)
        return json.dumps(event, default=str)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL module: message`` with ANSI level colors on a TTY."""

    COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        name = record.name[len(ROOT_LOGGER) + 1 :] if record.name.startswith(ROOT_LOGGER + ".") else record.name
        line = f"{stamp} {record.levelname:<7} {name}: {record.getMessage()}"
        if self.use_color:
            color = self.COLORS.get(record.levelno, "")
            if color:
                line = f"{color}{line}{self.RESET}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


def _resolve_level(level: Optional[str]) -> int:
    if level is None:
        if os.environ.get("SWEEPGRAM_DEBUG", "").strip().lower() in ("1", "true", "yes"):
            level = "DEBUG"
        else:
            level = os.environ.get("SWEEPGRAM_LOG_LEVEL", "INFO")
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    *,
    level: Optional[str] = None,
    json_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """(Re)install the sweepgram handlers; earlier handlers are closed first."""
    global _configured

    numeric_level = _resolve_level(level)
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(numeric_level)
    root.propagate = False
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    handlers: List[logging.Handler] = []
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ConsoleFormatter(use_color=use_color))
    handlers.append(console)

    json_error: Optional[OSError] = None
    if json_file:
        try:
            jsonl = logging.FileHandler(json_file, mode="a", encoding="utf-8")
        except OSError as exc:
            json_error = exc
        else:
            jsonl.setFormatter(JSONFormatter())
            handlers.append(jsonl)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)
    _configured = True

    if json_error is not None:
        root.warning("JSON log %s unavailable: %s", json_file, json_error, extra={"path": json_file})


def get_logger(name: str) -> logging.Logger:
    """Return ``sweepgram.<name>``, installing default handlers on first use."""
    if not _configured:
        configure_logging()
    if name == "__main__":
        name = "main"
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, message: str, *, error_type: Optional[str] = None, **extra: Any) -> None:
    """Log the exception being handled, with its traceback and context fields."""
    if error_type:
        extra["error_type"] = error_type
    logger.error(message, exc_info=True, extra=extra)
