"""Tool registry - the set of tools an application exposes.

A registry is an ordinary value owned by whatever composes the dispatcher,
the gateway or the executor. There is no process-wide instance; tests build
their own.
"""

from typing import Iterable, Iterator, Optional

from tooldeck.core.errors import ToolNotFoundError
from tooldeck.core.logging import get_logger
from tooldeck.models.tool import ToolDescriptor
from tooldeck.tools.definition import Tool

logger = get_logger("registry")


class ToolRegistry:
    """Name-indexed collection of tools."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for t in tools:
            self.register(t)

    def register(self, tool: Tool, replace: bool = False) -> Tool:
        """Add a tool. Registering a taken name fails unless ``replace`` is set."""
        if tool.name in self._tools and not replace:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug(f"Tool registered: {tool.name}", component="registry", tool=tool.name)
        return tool

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def require(self, name: str) -> Tool:
        """Like ``get`` but raises ToolNotFoundError for unknown names."""
        found = self._tools.get(name)
        if found is None:
            raise ToolNotFoundError(name)
        return found

    def names(self) -> list[str]:
        return list(self._tools)

    def descriptors(self) -> list[ToolDescriptor]:
        return [t.descriptor() for t in self._tools.values()]

    def find_by_tag(self, tag: str) -> list[Tool]:
        return [t for t in self._tools.values() if tag in t.tags]

    def search(self, query: str) -> list[Tool]:
        """Case-insensitive match against name, description and tags."""
        needle = query.lower().strip()
        if not needle:
            return list(self._tools.values())

        matches = []
        for t in self._tools.values():
            haystack = " ".join([t.name, t.description or "", *t.tags]).lower()
            if needle in haystack:
                matches.append(t)
        return matches

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)
