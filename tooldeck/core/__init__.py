"""Core package - errors, logging and audit trail."""

from .errors import (
    ToolDeckError,
    ValidationError,
    HandlerNotImplementedError,
    RemoteCallError,
    ToolTimeoutError,
    ToolNotFoundError,
    ConfirmationError,
    RateLimitError,
    format_exception_chain,
)
from .logging import get_logger, setup_logging
from .audit import AuditLogger, MemoryAuditLogger

__all__ = [
    "ToolDeckError",
    "ValidationError",
    "HandlerNotImplementedError",
    "RemoteCallError",
    "ToolTimeoutError",
    "ToolNotFoundError",
    "ConfirmationError",
    "RateLimitError",
    "format_exception_chain",
    "get_logger",
    "setup_logging",
    "AuditLogger",
    "MemoryAuditLogger",
]
