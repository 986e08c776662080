"""tooldeck - validated, dual-environment tool execution with an observable result store."""

from tooldeck.core.errors import (
    ToolDeckError,
    ValidationError,
    HandlerNotImplementedError,
    RemoteCallError,
    ToolTimeoutError,
    ToolNotFoundError,
    ConfirmationError,
)
from tooldeck.models import (
    CacheConfig,
    RetryConfig,
    StreamFrame,
    ToolContext,
    ToolHints,
    ToolStateEntry,
    ConfirmationStatus,
)
from tooldeck.tools import Dispatcher, Tool, ToolBuilder, ToolRegistry, tool
from tooldeck.store import ToolExecutor, ToolStateStore

__version__ = "0.1.0"

__all__ = [
    "ToolDeckError",
    "ValidationError",
    "HandlerNotImplementedError",
    "RemoteCallError",
    "ToolTimeoutError",
    "ToolNotFoundError",
    "ConfirmationError",
    "CacheConfig",
    "RetryConfig",
    "StreamFrame",
    "ToolContext",
    "ToolHints",
    "ToolStateEntry",
    "ConfirmationStatus",
    "Dispatcher",
    "Tool",
    "ToolBuilder",
    "ToolRegistry",
    "tool",
    "ToolExecutor",
    "ToolStateStore",
]
