"""Tool definitions and the fluent builder that produces them.

A ``Tool`` is immutable: its identity, schemas and handlers are fixed once
built. Configure tools through ``ToolBuilder`` (or the ``tool`` factory)
and call ``build()`` to obtain the definition.

Example:
    doubler = (
        tool("doubler")
        .description("Double a number")
        .input(DoublerIn)
        .output(DoublerOut)
        .server(lambda inp, ctx: {"y": inp.x * 2})
        .cache(ttl=1.0)
        .build()
    )
"""

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Optional, Type, Union

from pydantic import BaseModel

from tooldeck.models.tool import (
    CacheConfig,
    ClientFetchConfig,
    RetryConfig,
    StreamFrame,
    ToolDescriptor,
    ToolHints,
    ViewState,
)
from tooldeck.tools.validation import Schema

Handler = Callable[[Any, Any], Any]
StreamHandler = Callable[[Any, Any], Any]
ViewHook = Callable[[Any, ViewState], Any]
ConfirmSpec = Union[bool, Callable[[Any], bool]]


@dataclass(frozen=True)
class Tool:
    """Immutable capability definition."""
    name: str
    input_schema: Schema
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    output_schema: Optional[Schema] = None
    server_handler: Optional[Handler] = field(default=None, repr=False)
    client_handler: Optional[Handler] = field(default=None, repr=False)
    stream_handler: Optional[StreamHandler] = field(default=None, repr=False)
    view: Optional[ViewHook] = field(default=None, repr=False)
    cache: Optional[CacheConfig] = None
    retry: Optional[RetryConfig] = None
    timeout: Optional[float] = None
    client_fetch: Optional[ClientFetchConfig] = None
    confirm: ConfirmSpec = False
    hints: ToolHints = field(default_factory=ToolHints)
    group_key: Optional[Callable[[Any], str]] = field(default=None, repr=False)
    auto_respond: bool = False

    @property
    def has_server(self) -> bool:
        return self.server_handler is not None

    @property
    def has_client(self) -> bool:
        return self.client_handler is not None

    @property
    def has_stream(self) -> bool:
        return self.stream_handler is not None

    @property
    def has_view(self) -> bool:
        return self.view is not None

    @property
    def has_cache(self) -> bool:
        return self.cache is not None

    @property
    def requires_confirmation(self) -> bool:
        """True when ``confirm`` is set (flag or predicate) or the tool is destructive."""
        return bool(self.confirm) or self.hints.destructive

    def should_confirm(self, tool_input: Any) -> bool:
        """Decide whether this particular input needs human approval."""
        if callable(self.confirm):
            if tool_input is None:
                return False
            return bool(self.confirm(tool_input))
        if self.confirm:
            return True
        return self.hints.destructive

    def get_group_key(self, tool_input: Any) -> Optional[str]:
        """Entity id ``"<name>:<group_key(input)>"``, or None when ungrouped."""
        if self.group_key is None or tool_input is None:
            return None
        return f"{self.name}:{self.group_key(tool_input)}"

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            tags=list(self.tags),
            has_server=self.has_server,
            has_client=self.has_client,
            has_view=self.has_view,
            has_stream=self.has_stream,
            has_cache=self.has_cache,
            confirm=bool(self.confirm),
            requires_confirmation=self.requires_confirmation,
            auto_respond=self.auto_respond,
            hints=self.hints,
        )

    def to_json(self) -> dict[str, Any]:
        """Serializable catalog entry. Never includes handlers or schemas."""
        return self.descriptor().model_dump()

    def to_ai_tool(self) -> dict[str, Any]:
        """Function-calling description for an AI agent.

        Tools that require confirmation get no ``execute`` entry, so the agent
        stops at the call and a human has to approve it first.
        """
        spec: dict[str, Any] = {
            "name": self.name,
            "description": self.description or self.name,
            "parameters": self.input_schema.json_schema(),
        }
        if not self.requires_confirmation:
            async def execute(tool_input: Any) -> Any:
                return await self.run(tool_input, is_privileged=True)

            spec["execute"] = execute
        return spec

    async def run(self, raw_input: Any, **overrides: Any) -> Any:
        """Run through a fresh ``Dispatcher`` with default configuration."""
        from tooldeck.tools.dispatcher import Dispatcher
        return await Dispatcher().run(self, raw_input, **overrides)

    def run_stream(self, raw_input: Any, **overrides: Any) -> AsyncIterator[StreamFrame]:
        from tooldeck.tools.dispatcher import Dispatcher
        return Dispatcher().run_stream(self, raw_input, **overrides)


class ToolBuilder:
    """Fluent builder for ``Tool``. Setting a handler twice replaces it."""

    def __init__(self, name: str):
        if not name:
            raise ValueError("Tool name is required")
        self._name = name
        self._description: Optional[str] = None
        self._input: Optional[Type[BaseModel]] = None
        self._output: Optional[Type[BaseModel]] = None
        self._tags: list[str] = []
        self._cache: Optional[CacheConfig] = None
        self._retry: Optional[RetryConfig] = None
        self._timeout: Optional[float] = None
        self._client_fetch: Optional[ClientFetchConfig] = None
        self._confirm: ConfirmSpec = False
        self._hints = ToolHints()
        self._group_key: Optional[Callable[[Any], str]] = None
        self._auto_respond = False
        self._server: Optional[Handler] = None
        self._client: Optional[Handler] = None
        self._stream: Optional[StreamHandler] = None
        self._view: Optional[ViewHook] = None

    def description(self, text: str) -> "ToolBuilder":
        self._description = text
        return self

    def input(self, model: Type[BaseModel]) -> "ToolBuilder":
        self._input = model
        return self

    def output(self, model: Type[BaseModel]) -> "ToolBuilder":
        self._output = model
        return self

    def tags(self, *tags: str) -> "ToolBuilder":
        self._tags.extend(tags)
        return self

    def cache(self, ttl: float, key: Optional[Callable[[Any], str]] = None) -> "ToolBuilder":
        self._cache = CacheConfig(ttl=ttl, key=key)
        return self

    def retry(self, max_attempts: int, delay: float = 0.0) -> "ToolBuilder":
        self._retry = RetryConfig(max_attempts=max_attempts, delay=delay)
        return self

    def timeout(self, seconds: float) -> "ToolBuilder":
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = seconds
        return self

    def client_fetch(self, endpoint: str) -> "ToolBuilder":
        self._client_fetch = ClientFetchConfig(endpoint=endpoint)
        return self

    def require_confirm(self, value: ConfirmSpec = True) -> "ToolBuilder":
        self._confirm = value
        return self

    def hints(self, **hints: bool) -> "ToolBuilder":
        self._hints = ToolHints(**hints)
        return self

    def group_by(self, fn: Callable[[Any], str]) -> "ToolBuilder":
        self._group_key = fn
        return self

    def auto_respond(self, value: bool = True) -> "ToolBuilder":
        self._auto_respond = value
        return self

    def server(self, handler: Handler) -> "ToolBuilder":
        self._server = handler
        return self

    def client(self, handler: Handler) -> "ToolBuilder":
        self._client = handler
        return self

    def stream(self, handler: StreamHandler) -> "ToolBuilder":
        self._stream = handler
        return self

    def view(self, hook: ViewHook) -> "ToolBuilder":
        self._view = hook
        return self

    def build(self) -> Tool:
        """Produce the immutable ``Tool``."""
        if self._input is None:
            raise ValueError(f'Tool "{self._name}" requires an input schema')

        return Tool(
            name=self._name,
            input_schema=Schema(self._input),
            description=self._description,
            tags=tuple(self._tags),
            output_schema=Schema(self._output) if self._output is not None else None,
            server_handler=self._server,
            client_handler=self._client,
            stream_handler=self._stream,
            view=self._view,
            cache=self._cache,
            retry=self._retry,
            timeout=self._timeout,
            client_fetch=self._client_fetch,
            confirm=self._confirm,
            hints=self._hints,
            group_key=self._group_key,
            auto_respond=self._auto_respond,
        )


def tool(name: str) -> ToolBuilder:
    """Start building a tool named ``name``."""
    return ToolBuilder(name)
