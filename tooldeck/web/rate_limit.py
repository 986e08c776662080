"""Sliding-window rate limiter keyed by caller identity (usually the IP)."""

import time
from dataclasses import dataclass, field


@dataclass
class _Window:
    timestamps: list[float] = field(default_factory=list)


class SlidingWindowRateLimiter:
    """Allows ``max_requests`` per ``window`` seconds for each identifier."""

    def __init__(self, max_requests: int = 10, window: float = 10.0):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self._windows: dict[str, _Window] = {}

    def check(self, identifier: str) -> bool:
        """Record a request and return whether it is allowed."""
        now = time.monotonic()
        entry = self._windows.setdefault(identifier, _Window())
        cutoff = now - self.window
        entry.timestamps = [ts for ts in entry.timestamps if ts > cutoff]

        if len(entry.timestamps) >= self.max_requests:
            return False

        entry.timestamps.append(now)
        return True

    def remaining(self, identifier: str) -> int:
        entry = self._windows.get(identifier)
        if entry is None:
            return self.max_requests
        cutoff = time.monotonic() - self.window
        live = [ts for ts in entry.timestamps if ts > cutoff]
        return max(0, self.max_requests - len(live))

    def reset(self, identifier: str) -> None:
        self._windows.pop(identifier, None)

    def cleanup(self) -> int:
        """Forget identifiers with no request inside the window."""
        cutoff = time.monotonic() - self.window
        stale = [key for key, entry in self._windows.items()
                 if not any(ts > cutoff for ts in entry.timestamps)]
        for key in stale:
            del self._windows[key]
        return len(stale)
