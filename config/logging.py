"""
Clinic Staffing Monitor - Logging Configuration

Structured logging for scrapes and background batches. Every record emitted
inside a LogContext carries the clinic and job it belongs to, so the output
of concurrent clinic scrapes can be told apart.

Usage:
    from config.logging import setup_logging, get_logger, LogContext

    setup_logging()
    logger = get_logger(__name__)

    with LogContext(clinic="Leeds"):
        logger.info("Scrape completed", extra={"shift_count": 12})
"""

import json
import logging
import logging.handlers
import re
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from config.settings import get_settings


# =============================================================================
# Constants
# =============================================================================

# Fields promoted to the top level of JSON records
CONTEXT_FIELDS = ("clinic", "job_id")

# Attributes every LogRecord has; anything else came from extra= or a context
RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
})

# Third-party loggers and the level they are held at
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
    "apscheduler": logging.INFO,
}

SENSITIVE_PATTERNS = [
    # user:password@ in database and proxy URLs
    (re.compile(r'(\w+://[^:/\s"]+:)[^@\s"]+(@)'), r'\1[REDACTED]\2'),
    (re.compile(r'((?:password|secret|token|api_key)["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.I), r'\1[REDACTED]'),
    (re.compile(r'(Bearer\s+)[A-Za-z0-9._-]+', re.I), r'\1[REDACTED]'),
]


def censor_sensitive_data(text: str) -> str:
    """Redact credentials and tokens from a log line."""
    if not isinstance(text, str):
        return text

    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Fields added to a record via extra= or LogContext."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_ATTRS and not key.startswith("_")
    }


# =============================================================================
# Formatters
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: timestamp, level, logger, message, then clinic/job_id when set,
    then any remaining extras under "extra" and exception details under
    "exception". Warnings and above also carry their source location.
    """

    def __init__(self, include_extras: bool = True, censor_sensitive: bool = True):
        super().__init__()
        self.include_extras = include_extras
        self.censor_sensitive = censor_sensitive

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _record_extras(record)
        for key in CONTEXT_FIELDS:
            value = extras.pop(key, None)
            if value is not None:
                entry[key] = value

        if record.levelno >= logging.WARNING:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if self.include_extras and extras:
            entry["extra"] = extras

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        line = json.dumps(entry, default=str, ensure_ascii=False)
        return censor_sensitive_data(line) if self.censor_sensitive else line


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console output.

    Format: TIME LEVEL [clinic] logger: message key=value ...
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, censor_sensitive: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()
        self.censor_sensitive = censor_sensitive

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")

        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        extras = _record_extras(record)
        clinic = extras.pop("clinic", None)
        prefix = f"[{clinic}] " if clinic else ""

        output = f"{timestamp} {level} {prefix}{record.name}: {record.getMessage()}"
        if extras:
            output += " " + " ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info and record.exc_info[0] is not None:
            output += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return censor_sensitive_data(output) if self.censor_sensitive else output


# =============================================================================
# Log Context
# =============================================================================

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class LogContext:
    """
    Attach fields to every record logged inside the block.

    Backed by a ContextVar, so each asyncio task sees only the fields set in
    its own call chain. Nested contexts merge; leaving a block restores the
    outer fields.

    Usage:
        with LogContext(clinic="Bristol", job_id="abc123"):
            logger.info("Processing")
    """

    def __init__(self, **kwargs: Any):
        self.fields = kwargs
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    @classmethod
    def get_context(cls) -> dict[str, Any]:
        return dict(_log_context.get())


class ContextFilter(logging.Filter):
    """Copy LogContext fields onto records; explicit extra= values win."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


# =============================================================================
# Setup
# =============================================================================

def _build_handler(handler: logging.Handler, formatter: logging.Formatter, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure the root logger. Call once at process start.

    Console output uses the configured format (json or text). When a log
    file is configured, it always gets JSON with size-based rotation.

    Args:
        log_level: Override settings log level
        log_file: Override settings log file path
        log_format: Override settings log format (json or text)
    """
    settings = get_settings()

    level = getattr(logging, (log_level or settings.log_level).upper())
    format_type = (log_format or settings.log_format).lower()
    file_path = settings.get_log_file_path() if log_file is None else settings.project_root / log_file

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_formatter = JSONFormatter() if format_type == "json" else ConsoleFormatter()
    root_logger.addHandler(
        _build_handler(logging.StreamHandler(sys.stdout), console_formatter, level)
    )

    if file_path:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            file_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        root_logger.addHandler(_build_handler(rotating, JSONFormatter(), level))

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    get_logger(__name__).info(
        "Logging initialized",
        extra={
            "level": logging.getLevelName(level),
            "file": str(file_path) if file_path else None,
            "format": format_type,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name, typically __name__."""
    return logging.getLogger(name)


__all__ = [
    "setup_logging",
    "get_logger",
    "LogContext",
    "ContextFilter",
    "JSONFormatter",
    "ConsoleFormatter",
    "censor_sensitive_data",
]
