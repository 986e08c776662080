"""Tool state store entries."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class ConfirmationStatus(str, Enum):
    """Human-in-the-loop status of a tool call."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ToolStateEntry:
    """Observable state of one tool call.

    ``seq_no`` is assigned by the store on the first write for a call id and
    ignored on input. ``merged_into`` names the anchor call when this entry is
    a followup whose output was folded into it.
    """
    output: Any = None
    loading: bool = False
    error: Optional[str] = None
    version: int = 0
    tool_name: Optional[str] = None
    status: Optional[ConfirmationStatus] = None
    entity_id: Optional[str] = None
    tool_input: Any = None
    seq_no: Optional[int] = None
    merged_into: Optional[str] = None

    @property
    def renderable(self) -> bool:
        return self.merged_into is None

    def evolve(self, **changes: Any) -> "ToolStateEntry":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
