"""TTL cache helpers for tool results.

The cache mapping itself belongs to the caller; these helpers only read
and write ``CacheEntry`` values in it.
"""

import json
import time
from typing import Any, Optional

from pydantic import BaseModel

from tooldeck.models.context import CacheEntry
from tooldeck.models.tool import CacheConfig

_MISS = object()


def now() -> float:
    return time.monotonic()


def serialize_input(validated: Any) -> str:
    """Canonical JSON for a validated input; equal strings mean equal cache keys."""
    if isinstance(validated, BaseModel):
        validated = validated.model_dump(mode="json")
    return json.dumps(validated, sort_keys=True, separators=(",", ":"), default=str)


def cache_key(tool_name: str, config: CacheConfig, validated: Any) -> str:
    if config.key is not None:
        return config.key(validated)
    return f"{tool_name}:{serialize_input(validated)}"


def lookup(cache: dict[str, CacheEntry], key: str) -> Any:
    """Return the live cached value for ``key`` or the ``MISS`` sentinel."""
    entry: Optional[CacheEntry] = cache.get(key)
    if entry is not None and entry.expiry > now():
        return entry.data
    return _MISS


def store(cache: dict[str, CacheEntry], key: str, data: Any, ttl: float) -> None:
    cache[key] = CacheEntry(data=data, expiry=now() + ttl)


def is_miss(value: Any) -> bool:
    return value is _MISS


def purge_expired(cache: dict[str, CacheEntry]) -> int:
    """Drop expired entries; returns how many were removed."""
    current = now()
    expired = [key for key, entry in cache.items() if entry.expiry <= current]
    for key in expired:
        del cache[key]
    return len(expired)
