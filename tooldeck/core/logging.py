"""Structured logging for tooldeck.

Provides JSON-formatted logs with file and console output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler


_CONTEXT_FIELDS = ("component", "tool", "call_id", "duration_ms", "success")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for human-readable output."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")
        prefix = f"{color}[{timestamp}] {record.levelname:8}{self.RESET}"

        if hasattr(record, "component"):
            prefix += f" [{record.component}]"

        message = record.getMessage()

        extras = []
        if hasattr(record, "tool"):
            extras.append(f"tool={record.tool}")
        if hasattr(record, "call_id"):
            extras.append(f"call={record.call_id}")
        if hasattr(record, "duration_ms"):
            extras.append(f"time={record.duration_ms:.0f}ms")

        if extras:
            message += f" ({', '.join(extras)})"

        return f"{prefix} {message}"


class ToolDeckLogger:
    """Logger wrapper with convenience methods for tool execution events."""

    def __init__(self, name: str, logger: logging.Logger):
        self._name = name
        self._logger = logger

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs):
        self._log(logging.ERROR, message, exc_info=True, **kwargs)

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs):
        """Log with extra context fields."""
        extra = {}

        # Known fields become record attributes
        for key in _CONTEXT_FIELDS:
            if key in kwargs:
                extra[key] = kwargs.pop(key)

        # Remaining fields go into extra_data
        if kwargs:
            extra["extra_data"] = kwargs

        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    # Convenience methods for common tool events

    def tool_executed(self, name: str, success: bool, duration_ms: float, privileged: bool):
        level = logging.INFO if success else logging.WARNING
        self._logger.log(
            level,
            f"Tool {'executed' if success else 'failed'}: {name}",
            extra={
                "component": "dispatcher",
                "tool": name,
                "success": success,
                "duration_ms": duration_ms,
                "extra_data": {"privileged": privileged},
            }
        )

    def cache_hit(self, name: str, key: str):
        self.debug(f"Cache hit: {name}", component="cache", tool=name, cache_key=key)

    def retry_scheduled(self, name: str, attempt: int, max_attempts: int, error: BaseException):
        self.warning(
            f"Retrying {name} ({attempt}/{max_attempts}): {type(error).__name__}",
            component="retry",
            tool=name,
        )

    def state_discarded(self, call_id: str, version: int, current: Optional[int]):
        self.debug(
            f"Discarding stale result for {call_id}",
            component="store",
            call_id=call_id,
            version=version,
            current_version=current,
        )


# Global logger registry
_loggers: dict[str, ToolDeckLogger] = {}
_initialized = False


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_dir: Optional[Path] = None,
    console_enabled: bool = True
) -> None:
    """Initialize the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_dir: Directory for log files; file logging is off when None
        console_enabled: Write logs to console
    """
    global _initialized

    if _initialized:
        return

    root = logging.getLogger("tooldeck")
    root.setLevel(getattr(logging, level.upper()))
    root.handlers.clear()

    if console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG)

        if format_type == "json":
            console.setFormatter(JSONFormatter())
        else:
            console.setFormatter(ColoredFormatter())

        root.addHandler(console)

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir / "tooldeck.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    _initialized = True


def get_logger(name: str = "tooldeck") -> ToolDeckLogger:
    """Get a tooldeck logger instance."""
    if name not in _loggers:
        logger = logging.getLogger(f"tooldeck.{name}")
        _loggers[name] = ToolDeckLogger(name, logger)
    return _loggers[name]
