"""Observable store of tool call results.

Maps a call id to its ``ToolStateEntry``. Every write replaces the whole
snapshot (copy-on-write), so a snapshot obtained earlier never changes
underneath its reader. Listeners run synchronously inside ``set``, per-key
listeners first, then broadcast listeners.

Calls sharing an ``entity_id`` describe the same subject. The oldest of
them (lowest ``seq_no``) is the anchor and the only one that renders;
output written to any later call (a followup) is merged into the anchor.
"""

from typing import Callable, Mapping, Optional

from tooldeck.core.logging import get_logger
from tooldeck.models.state import ToolStateEntry

logger = get_logger("store")

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class ToolStateStore:
    """Publish/subscribe container for tool call state."""

    def __init__(self):
        self._state: dict[str, ToolStateEntry] = {}
        self._key_listeners: dict[str, list[Listener]] = {}
        self._global_listeners: list[Listener] = []
        self._seq_counter = 0

    def get(self, call_id: str) -> Optional[ToolStateEntry]:
        return self._state.get(call_id)

    def set(self, call_id: str, entry: ToolStateEntry) -> None:
        state = dict(self._state)
        existing = state.get(call_id)
        if existing is not None and existing.seq_no is not None:
            seq_no = existing.seq_no
        else:
            self._seq_counter += 1
            seq_no = self._seq_counter

        entry = entry.evolve(seq_no=seq_no, merged_into=None)
        changed = [call_id]

        anchor = self._anchor_in(state, entry.entity_id, exclude=call_id)
        if anchor is not None and anchor[1].seq_no < seq_no:
            anchor_id, anchor_entry = anchor
            if entry.output is not None:
                state[anchor_id] = anchor_entry.evolve(output=entry.output, loading=False, error=None)
                changed.append(anchor_id)
            entry = entry.evolve(output=None, loading=False, merged_into=anchor_id)

        state[call_id] = entry
        self._state = state

        for key in changed:
            self._notify_key(key)
        self._notify_global()

    def clear(self) -> None:
        """Drop every entry and restart the sequence (e.g. on thread switch)."""
        previous = list(self._state)
        self._state = {}
        self._seq_counter = 0
        for key in previous:
            self._notify_key(key)
        self._notify_global()

    def subscribe(self, call_id: str, listener: Listener) -> Unsubscribe:
        listeners = self._key_listeners.setdefault(call_id, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            current = self._key_listeners.get(call_id)
            if current and listener in current:
                current.remove(listener)
                if not current:
                    del self._key_listeners[call_id]

        return unsubscribe

    def subscribe_all(self, listener: Listener) -> Unsubscribe:
        self._global_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._global_listeners:
                self._global_listeners.remove(listener)

        return unsubscribe

    def get_snapshot(self) -> Mapping[str, ToolStateEntry]:
        return self._state

    def find_anchor(self, entity_id: str) -> Optional[tuple[str, ToolStateEntry]]:
        """Oldest entry with ``entity_id`` as ``(call_id, entry)``, or None."""
        return self._anchor_in(self._state, entity_id)

    def get_latest_per_entity(self) -> dict[str, ToolStateEntry]:
        """Newest entry per entity id, plus every ungrouped entry."""
        result: dict[str, ToolStateEntry] = {}
        latest: dict[str, tuple[str, ToolStateEntry]] = {}

        for call_id, entry in self._state.items():
            if entry.entity_id:
                current = latest.get(entry.entity_id)
                if current is None or (entry.seq_no or 0) > (current[1].seq_no or 0):
                    latest[entry.entity_id] = (call_id, entry)
            else:
                result[call_id] = entry

        for call_id, entry in latest.values():
            result[call_id] = entry
        return result

    @staticmethod
    def _anchor_in(
        state: Mapping[str, ToolStateEntry],
        entity_id: Optional[str],
        exclude: Optional[str] = None,
    ) -> Optional[tuple[str, ToolStateEntry]]:
        if not entity_id:
            return None
        oldest: Optional[tuple[str, ToolStateEntry]] = None
        for call_id, entry in state.items():
            if call_id == exclude or entry.entity_id != entity_id:
                continue
            if oldest is None or (entry.seq_no or 0) < (oldest[1].seq_no or 0):
                oldest = (call_id, entry)
        return oldest

    def _notify_key(self, call_id: str) -> None:
        for listener in list(self._key_listeners.get(call_id, ())):
            listener()

    def _notify_global(self) -> None:
        for listener in list(self._global_listeners):
            listener()
