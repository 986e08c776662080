"""Executor - runs tool calls and mirrors their progress into the store.

Each call id carries a version counter. A call bumps and records the
counter before awaiting the tool, and writes its outcome only if the
counter is unchanged when the tool returns, so a slow, superseded call can
never overwrite a newer one. The superseded call still runs to completion;
only its visibility is cancelled.

Tools that require confirmation stay ``pending`` until ``confirm`` or
``reject`` is called, unless the tool's predicate waives confirmation for
the given input.
"""

from typing import Any, Optional

from tooldeck.core.errors import ConfirmationError, ValidationError
from tooldeck.core.logging import get_logger
from tooldeck.models.state import ConfirmationStatus, ToolStateEntry
from tooldeck.store.state_store import ToolStateStore
from tooldeck.tools.definition import Tool
from tooldeck.tools.dispatcher import Dispatcher
from tooldeck.tools.policies import run_with_timeout
from tooldeck.tools.registry import ToolRegistry
from tooldeck.tools.validation import validate_input

logger = get_logger("executor")


class ToolExecutor:
    """Bridges a registry, a dispatcher and a state store for one session.

    Keyword arguments are passed to every dispatcher call as context
    overrides (``is_privileged``, ``cache``, ``request_fn``...). A shared
    cache is created once here, so repeated calls in the session hit it.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        store: ToolStateStore,
        dispatcher: Optional[Dispatcher] = None,
        **context: Any,
    ):
        self._registry = registry
        self._store = store
        self._dispatcher = dispatcher or Dispatcher()
        context.setdefault("cache", {})
        self._context = context
        self._versions: dict[str, int] = {}

    @property
    def store(self) -> ToolStateStore:
        return self._store

    def current_version(self, call_id: str) -> int:
        return self._versions.get(call_id, 0)

    def begin(self, call_id: str) -> int:
        """Claim a new version for ``call_id``; older in-flight calls go stale."""
        version = self._versions.get(call_id, 0) + 1
        self._versions[call_id] = version
        return version

    def is_current(self, call_id: str, version: int) -> bool:
        return self._versions.get(call_id) == version

    def switch_session(self) -> None:
        """Drop every stored call; results still in flight are discarded on arrival.

        Version counters survive the switch, so a reused call id gets a newer
        version than anything started in the previous session.
        """
        for call_id in self._versions:
            self.begin(call_id)
        self._store.clear()

    async def execute(self, tool_name: str, tool_input: Any, call_id: str) -> ToolStateEntry:
        """Run a tool now and record loading, output or error for ``call_id``."""
        tool = self._registry.require(tool_name)
        existing = self._store.get(call_id)

        if existing is not None and existing.status == ConfirmationStatus.PENDING:
            raise ConfirmationError("Tool call is awaiting confirmation", call_id=call_id,
                                    status=existing.status.value)
        if existing is not None and existing.status == ConfirmationStatus.REJECTED:
            raise ConfirmationError("Tool call was rejected", call_id=call_id,
                                    status=existing.status.value)

        previous_output = existing.output if existing is not None else None
        status = existing.status if existing is not None else None
        version = self.begin(call_id)
        base = ToolStateEntry(
            output=previous_output,
            loading=True,
            error=None,
            version=version,
            tool_name=tool_name,
            status=status,
            entity_id=_entity_id(tool, tool_input),
            tool_input=tool_input,
        )
        self._store.set(call_id, base)

        try:
            result = await run_with_timeout(
                self._dispatcher.run(tool, tool_input, **self._context),
                tool.timeout,
                tool.name,
            )
        except Exception as exc:
            logger.warning(f"Tool call failed: {exc}", component="executor", tool=tool_name, call_id=call_id)
            return self._commit(call_id, version, base.evolve(output=previous_output, loading=False,
                                                              error=str(exc) or type(exc).__name__))

        return self._commit(call_id, version, base.evolve(output=result, loading=False, error=None))

    async def retry(self, call_id: str) -> ToolStateEntry:
        """Re-run a recorded call with its last known input."""
        entry = self._store.get(call_id)
        if entry is None or entry.tool_name is None:
            raise KeyError(call_id)
        return await self.execute(entry.tool_name, entry.tool_input, call_id)

    async def request(self, tool_name: str, tool_input: Any, call_id: str) -> ToolStateEntry:
        """Start a call, holding it for approval when the tool asks for it."""
        tool = self._registry.require(tool_name)

        if not tool.requires_confirmation:
            return await self.execute(tool_name, tool_input, call_id)

        if tool.should_confirm(_validated_or_none(tool, tool_input)):
            entry = ToolStateEntry(
                output=None,
                loading=False,
                version=self.current_version(call_id),
                tool_name=tool_name,
                status=ConfirmationStatus.PENDING,
                entity_id=_entity_id(tool, tool_input),
                tool_input=tool_input,
            )
            self._store.set(call_id, entry)
            return self._store.get(call_id)

        # Predicate waived confirmation for this input
        self._mark(call_id, tool_name, tool_input, ConfirmationStatus.CONFIRMED, tool)
        return await self.execute(tool_name, tool_input, call_id)

    async def confirm(self, call_id: str) -> ToolStateEntry:
        """Approve a pending call and execute it."""
        entry = self._pending(call_id)
        self._store.set(call_id, entry.evolve(status=ConfirmationStatus.CONFIRMED))
        return await self.execute(entry.tool_name, entry.tool_input, call_id)

    def reject(self, call_id: str) -> ToolStateEntry:
        """Decline a pending call; it will never execute."""
        entry = self._pending(call_id)
        self._store.set(call_id, entry.evolve(status=ConfirmationStatus.REJECTED, loading=False))
        return self._store.get(call_id)

    def _pending(self, call_id: str) -> ToolStateEntry:
        entry = self._store.get(call_id)
        if entry is None or entry.status != ConfirmationStatus.PENDING:
            status = entry.status.value if entry is not None and entry.status else None
            raise ConfirmationError("Tool call is not awaiting confirmation", call_id=call_id, status=status)
        return entry

    def _mark(self, call_id: str, tool_name: str, tool_input: Any,
              status: ConfirmationStatus, tool: Tool) -> None:
        existing = self._store.get(call_id) or ToolStateEntry(version=self.current_version(call_id))
        self._store.set(call_id, existing.evolve(
            tool_name=tool_name,
            tool_input=tool_input,
            status=status,
            entity_id=_entity_id(tool, tool_input),
        ))

    def _commit(self, call_id: str, version: int, entry: ToolStateEntry) -> ToolStateEntry:
        if not self.is_current(call_id, version):
            logger.state_discarded(call_id, version, self._versions.get(call_id))
            return entry
        self._store.set(call_id, entry)
        return self._store.get(call_id)


def _validated_or_none(tool: Tool, tool_input: Any) -> Any:
    try:
        return validate_input(tool.input_schema, tool_input)
    except ValidationError:
        return None


def _entity_id(tool: Tool, tool_input: Any) -> Optional[str]:
    if tool.group_key is None:
        return None
    return tool.get_group_key(_validated_or_none(tool, tool_input))
