"""
Logging setup for SentimentIQ Pro.

The server logs one JSON object per line so request context (path, tier,
user id) survives into log aggregation. The CLI logs colored text.
Credentials that end up in a log context are redacted before output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

SERVICE_NAME = "sentimentiq"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Context keys whose values never reach a log line
REDACTED_KEYS = frozenset({"api_key", "apikey", "token", "admin_token", "jwt_secret", "password", "authorization"})


def redact(context: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a log context with credential values replaced."""
    return {
        key: "***" if str(key).lower() in REDACTED_KEYS else value
        for key, value in context.items()
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context attached through LoggerAdapter (or extra={"context": ...})
    is emitted under "context".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = redact(context)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter that colors the level name for terminals."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers share the record, so restore the level name afterwards
        plain = record.levelname
        record.levelname = f"{self.LEVEL_COLORS.get(plain, '')}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def build_formatter(log_format: str, colored: bool = False) -> logging.Formatter:
    """Formatter for "json" or "text" output."""
    if log_format == "json":
        return JSONFormatter()
    if colored:
        return ColoredFormatter(TEXT_FORMAT, TEXT_DATE_FORMAT)
    return logging.Formatter(TEXT_FORMAT, TEXT_DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger. Replaces any handlers already installed.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for the server, "text" for interactive use
        log_file: Optional rotating log file; always written as JSON
        max_bytes: Rotation size
        backup_count: Rotated files kept
        console_enabled: Log to stdout
        colored: Color level names on text console output
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = []

    if console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(build_formatter(log_format, colored=colored))
        root.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        rotating.setFormatter(JSONFormatter())
        root.addHandler(rotating)


def setup_logging_from_config(config: Dict[str, Any], verbose: bool = False) -> None:
    """Configure logging from the 'logging' section of the app config."""
    section = config.get("logging", {}) or {}
    setup_logging(
        level="DEBUG" if verbose else section.get("level", "INFO"),
        log_format=section.get("format", "json"),
        log_file=section.get("file"),
        colored=section.get("colored", True),
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that attaches a fixed context to every record.

    Per-call context passed as extra={"context": {...}} is merged over
    the fixed context.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra or {})
        context.update(extra.pop("context", {}) or {})
        extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger_with_context(name: str, context: Dict[str, Any]) -> LoggerAdapter:
    """
    Logger that tags every message with the given context.

    Example:
        logger = create_logger_with_context(
            "web.request", {"path": "/api/analyze-text", "tier": "pro"}
        )
        logger.info("Comprehensive analysis requested")
    """
    return LoggerAdapter(get_logger(name), context)
