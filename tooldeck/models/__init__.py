"""Data models for tooldeck."""

from .tool import (
    ToolHints,
    ToolDescriptor,
    ToolRequest,
    CacheConfig,
    RetryConfig,
    ClientFetchConfig,
    ViewState,
    StreamFrame,
)
from .context import CacheEntry, ToolContext, StreamContext, build_context, with_stream
from .state import ConfirmationStatus, ToolStateEntry

__all__ = [
    "ToolHints",
    "ToolDescriptor",
    "ToolRequest",
    "CacheConfig",
    "RetryConfig",
    "ClientFetchConfig",
    "ViewState",
    "StreamFrame",
    "CacheEntry",
    "ToolContext",
    "StreamContext",
    "build_context",
    "with_stream",
    "ConfirmationStatus",
    "ToolStateEntry",
]
