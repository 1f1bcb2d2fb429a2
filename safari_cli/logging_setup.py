"""Structured logging setup for safari-cli.

Provides JSON and text logging formats with support for --quiet and --verbose
flags. Logs go to stderr so stdout carries only command output.

Context fields attached with log_with_context() travel on the record as
``record.extra`` and are rendered by both formatters.

Note: Named logging_setup.py to avoid conflicts with Python's built-in logging module.
"""

import sys
import json
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timezone

DEFAULT_LEVEL = logging.WARNING


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    extra = getattr(record, "extra", None)
    return extra if isinstance(extra, dict) else {}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, timestamps in UTC.

    Example output:
        {"timestamp": "2025-10-24T23:30:00.123Z", "level": "INFO",
         "logger": "safari_cli.session", "message": "Safari session started",
         "extra": {"session_id": "abc123", "port": 9515}}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _context(record)
        if context:
            entry["extra"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with context fields appended in parentheses.

    Example output:
        2025-10-24 23:30:00 [INFO] safari_cli.session: Safari session started (session_id=abc123)
    """

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _context(record)
        if context:
            text += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        return text


FORMATTERS = {"json": JSONFormatter, "text": TextFormatter}


def resolve_level(level: Optional[str] = None, quiet: bool = False, verbose: bool = False) -> int:
    """Map CLI verbosity flags and a level name to a logging level.

    --quiet wins over --verbose, which wins over an explicit level name.
    Unknown names fall back to WARNING.
    """
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    if not level:
        return DEFAULT_LEVEL
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else DEFAULT_LEVEL


def setup_logging(
    format_type: str = "text",
    level: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Send all logging to a single stderr handler.

    Args:
        format_type: "json" or "text" (anything else is treated as "text")
        level: Level name such as "DEBUG" or "info"; see resolve_level()
        quiet: Only errors
        verbose: Everything down to DEBUG
    """
    log_level = resolve_level(level, quiet, verbose)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(FORMATTERS.get(format_type, TextFormatter)())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("safari_cli").setLevel(log_level)


def log_with_context(
    logger: logging.Logger, level: int, message: str, **extra_fields
) -> None:
    """Log message with extra context fields (rendered by both formatters).

    Example:
        log_with_context(
            logger, logging.INFO, "Safari session started",
            session_id="abc123", port=9515
        )
    """
    logger.log(level, message, extra={"extra": extra_fields} if extra_fields else None, stacklevel=2)
