"""Tools package - definitions, validation and dispatch."""

from .validation import Schema, validate_input, validate_output
from .definition import Tool, ToolBuilder, tool
from .dispatcher import Dispatcher
from .registry import ToolRegistry
from .policies import run_with_timeout, with_retry
from .transport import default_request_fn, remote_call

__all__ = [
    "Schema",
    "validate_input",
    "validate_output",
    "Tool",
    "ToolBuilder",
    "tool",
    "Dispatcher",
    "ToolRegistry",
    "run_with_timeout",
    "with_retry",
    "default_request_fn",
    "remote_call",
]
