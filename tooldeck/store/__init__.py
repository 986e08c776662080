"""Store package - observable tool state and the executor that feeds it."""

from .state_store import ToolStateStore
from .executor import ToolExecutor

__all__ = ["ToolStateStore", "ToolExecutor"]
