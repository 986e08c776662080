"""Audit logging for tool executions.

Records every execution, confirmation and blocked attempt made through the
HTTP entry points.
"""

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from tooldeck.core.logging import get_logger

logger = get_logger("audit")

AUDIT_EVENTS = ("tool_execute", "tool_confirm", "tool_blocked")


class AuditLogger:
    """Logs tool invocations to a JSON lines file, or to the audit logger."""

    def __init__(self, log_dir: str | Path | None = None):
        self.log_file: Optional[Path] = None
        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = log_dir / "audit.jsonl"

    def log_event(self,
                  event: str,
                  tool: str,
                  ip: str,
                  success: bool,
                  duration_ms: Optional[float] = None,
                  error: Optional[str] = None):
        """Log a structured event."""
        if event not in AUDIT_EVENTS:
            raise ValueError(f"Unknown audit event: {event}")

        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "tool": tool,
            "ip": ip,
            "success": success,
        }
        if duration_ms is not None:
            entry["duration_ms"] = round(duration_ms, 2)
        if error:
            entry["error"] = error

        self._write(entry)
        return entry

    def start(self, event: str, tool: str, ip: str) -> "AuditTimer":
        """Begin timing an event; call ``finish`` on the result to log it."""
        return AuditTimer(self, event, tool, ip)

    def _write(self, entry: dict[str, Any]) -> None:
        if self.log_file is None:
            logger.info(json.dumps(entry), component="audit", tool=entry["tool"])
            return

        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.error(f"Failed to write audit log: {e}", component="audit")


class MemoryAuditLogger(AuditLogger):
    """Collects entries in memory for assertions."""

    def __init__(self):
        super().__init__(None)
        self.entries: list[dict[str, Any]] = []

    def _write(self, entry: dict[str, Any]) -> None:
        self.entries.append(entry)


class AuditTimer:
    """Measures the duration of one audited event."""

    def __init__(self, audit: AuditLogger, event: str, tool: str, ip: str):
        self._audit = audit
        self._event = event
        self._tool = tool
        self._ip = ip
        self._start = time.perf_counter()

    def finish(self, success: bool, error: Optional[str] = None) -> dict[str, Any]:
        duration_ms = (time.perf_counter() - self._start) * 1000
        return self._audit.log_event(
            self._event, self._tool, self._ip, success, duration_ms=duration_ms, error=error
        )
