"""Framework-neutral logic behind the execute and confirm endpoints.

The two endpoints are mutually exclusive per tool: the confirm endpoint only
runs tools that require confirmation, and the execute endpoint refuses
them. Both run tools in the privileged environment, rate limit per caller
and audit every outcome.
"""

from dataclasses import dataclass
from typing import Any, Optional

import pydantic
from pydantic_core import to_jsonable_python

from tooldeck.config import RateLimitConfig, get_config
from tooldeck.core.audit import AuditLogger
from tooldeck.core.errors import (
    ConfirmationError,
    RateLimitError,
    ToolDeckError,
    ToolNotFoundError,
    ToolTimeoutError,
    ValidationError,
)
from tooldeck.core.logging import get_logger
from tooldeck.models.tool import ToolRequest
from tooldeck.tools import cache as tool_cache
from tooldeck.tools.definition import Tool
from tooldeck.tools.dispatcher import Dispatcher
from tooldeck.tools.policies import run_with_timeout
from tooldeck.tools.registry import ToolRegistry
from tooldeck.web.rate_limit import SlidingWindowRateLimiter

logger = get_logger("gateway")

# Checked in order; the first matching class wins
_STATUS_CODES = (
    (ValidationError, 400),
    (ConfirmationError, 400),
    (ToolNotFoundError, 404),
    (RateLimitError, 429),
    (ToolTimeoutError, 504),
)


def status_for(error: ToolDeckError) -> int:
    for error_type, status in _STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


@dataclass
class GatewayResponse:
    status_code: int
    body: dict[str, Any]


class ToolGateway:
    """Validates wire requests and runs registered tools server side."""

    def __init__(
        self,
        registry: ToolRegistry,
        dispatcher: Optional[Dispatcher] = None,
        audit: Optional[AuditLogger] = None,
        rate_limits: Optional[RateLimitConfig] = None,
    ):
        limits = rate_limits or get_config().rate_limit
        self._registry = registry
        self._dispatcher = dispatcher or Dispatcher(privileged=True)
        self._audit = audit or AuditLogger()
        self._execute_limiter = SlidingWindowRateLimiter(limits.max_requests, limits.window_seconds)
        self._confirm_limiter = SlidingWindowRateLimiter(
            limits.confirm_max_requests, limits.confirm_window_seconds
        )
        # Server-side result cache shared by every request through this gateway
        self._cache: dict = {}

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def cleanup(self) -> int:
        """Drop expired cache entries and idle rate-limit windows; returns how many."""
        removed = tool_cache.purge_expired(self._cache)
        removed += self._execute_limiter.cleanup()
        removed += self._confirm_limiter.cleanup()
        return removed

    def catalog(self) -> list[dict[str, Any]]:
        return [d.model_dump() for d in self._registry.descriptors()]

    async def execute(self, body: Any, ip: str = "anonymous",
                      headers: Optional[dict[str, str]] = None) -> GatewayResponse:
        return await self._handle(body, ip, headers, confirmation=False)

    async def confirm(self, body: Any, ip: str = "anonymous",
                      headers: Optional[dict[str, str]] = None) -> GatewayResponse:
        return await self._handle(body, ip, headers, confirmation=True)

    async def _handle(self, body: Any, ip: str, headers: Optional[dict[str, str]],
                      confirmation: bool) -> GatewayResponse:
        event = "tool_confirm" if confirmation else "tool_execute"
        try:
            request, tool = self._admit(body, ip, confirmation)
        except ToolDeckError as exc:
            return GatewayResponse(status_for(exc), {"error": exc.message})

        timer = self._audit.start(event, tool.name, ip)
        try:
            result = await run_with_timeout(
                self._dispatcher.collect(
                    tool,
                    request.input,
                    is_privileged=True,
                    cache=self._cache,
                    headers=headers,
                ),
                tool.timeout,
                tool.name,
            )
        except ToolDeckError as exc:
            timer.finish(False, exc.message)
            return GatewayResponse(status_for(exc), {"error": exc.message})
        except Exception as exc:
            # Handler internals stay server side
            logger.exception(f"Tool execution error: {type(exc).__name__}", component="gateway", tool=tool.name)
            timer.finish(False, type(exc).__name__)
            return GatewayResponse(500, {"error": "Tool execution failed"})

        timer.finish(True)
        return GatewayResponse(200, {"result": to_jsonable_python(result)})

    def _admit(self, body: Any, ip: str, confirmation: bool) -> tuple[ToolRequest, Tool]:
        """Parse, rate limit and route a request; raises before anything runs."""
        limiter = self._confirm_limiter if confirmation else self._execute_limiter

        try:
            request = ToolRequest.model_validate(body)
        except pydantic.ValidationError:
            raise ValidationError("Invalid request body", stage="request") from None

        if not limiter.check(ip):
            self._audit.log_event("tool_blocked", request.tool or "unknown", ip, False,
                                  error="Rate limit exceeded")
            raise RateLimitError(identifier=ip)

        if not request.tool:
            raise ValidationError("Missing tool name", fields=["tool"], stage="request")
        if request.input is None:
            raise ValidationError("Missing input", fields=["input"], stage="request")

        tool = self._registry.require(request.tool)

        if confirmation and not tool.requires_confirmation:
            self._audit.log_event("tool_blocked", tool.name, ip, False, error="confirmation not required")
            raise ConfirmationError("This tool does not require confirmation. Use /api/tools/execute.")
        if not confirmation and tool.requires_confirmation:
            self._audit.log_event("tool_blocked", tool.name, ip, False, error="confirmation required")
            raise ConfirmationError("This tool requires confirmation. Use /api/tools/confirm.")

        return request, tool
