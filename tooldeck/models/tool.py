"""Tool metadata models."""

from dataclasses import dataclass
from typing import Any, Callable, Optional
from pydantic import BaseModel, ConfigDict, Field


class ToolHints(BaseModel):
    """Behavioral hints for a tool."""
    model_config = ConfigDict(frozen=True)

    destructive: bool = Field(
        default=False,
        description="Performs irreversible actions (implies confirmation)"
    )
    read_only: bool = Field(default=False, description="Only reads data, never modifies state")
    idempotent: bool = Field(default=False, description="Can be retried without side effects")


class ToolDescriptor(BaseModel):
    """Public description of a tool for catalogs and AI agents.

    Only identity and feature flags. Handlers, schemas and cache-key
    functions must never appear here.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    has_server: bool = False
    has_client: bool = False
    has_view: bool = False
    has_stream: bool = False
    has_cache: bool = False
    confirm: bool = False
    requires_confirmation: bool = False
    auto_respond: bool = False
    hints: ToolHints = Field(default_factory=ToolHints)

    def to_prompt_string(self) -> str:
        """Format this tool for inclusion in LLM prompts."""
        flags = []
        if self.requires_confirmation:
            flags.append("requires confirmation")
        if self.hints.read_only:
            flags.append("read-only")
        if self.has_stream:
            flags.append("streaming")
        flags_note = f" [{', '.join(flags)}]" if flags else ""
        tags_note = f" (tags: {', '.join(self.tags)})" if self.tags else ""
        return f"- {self.name}{flags_note}{tags_note}\n  {self.description or self.name}"


class ToolRequest(BaseModel):
    """Wire body of the execute and confirm endpoints."""
    tool: Optional[str] = None
    input: Any = None


@dataclass(frozen=True)
class CacheConfig:
    """TTL cache policy; ``ttl`` is in seconds."""
    ttl: float
    key: Optional[Callable[[Any], str]] = None

    def __post_init__(self):
        if self.ttl <= 0:
            raise ValueError("cache ttl must be positive")


@dataclass(frozen=True)
class RetryConfig:
    """Retry up to ``max_attempts`` additional times after the first failure."""
    max_attempts: int
    delay: float = 0.0

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError("max_attempts cannot be negative")
        if self.delay < 0:
            raise ValueError("retry delay cannot be negative")


@dataclass(frozen=True)
class ClientFetchConfig:
    """Endpoint used when a restricted caller falls back to a remote call."""
    endpoint: Optional[str] = None


@dataclass(frozen=True)
class ViewState:
    """Render state handed to a tool's view hook."""
    loading: bool = False
    streaming: bool = False
    error: Optional[str] = None
    on_action: Optional[Callable[[Any], Any]] = None


@dataclass(frozen=True)
class StreamFrame:
    """One element of a streamed invocation; the single ``done`` frame is last."""
    partial: Any
    done: bool = False
