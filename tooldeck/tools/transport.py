"""Remote-call fallback for the restricted environment.

When a restricted caller has no client handler, the tool is executed on the
privileged side by POSTing ``{"tool": name, "input": input}`` to an
execution endpoint through ``context.request_fn``.
"""

from typing import Any, Optional

import httpx
from pydantic import BaseModel

from tooldeck.config import get_config
from tooldeck.core.errors import RemoteCallError
from tooldeck.models.context import RequestFn, ToolContext


def default_request_fn(base_url: Optional[str] = None, timeout: Optional[float] = None) -> RequestFn:
    """Build a request function backed by a short-lived ``httpx.AsyncClient``."""
    config = get_config().execution
    base_url = base_url or config.base_url
    timeout = timeout if timeout is not None else config.request_timeout

    async def request(method: str, url: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
            return await client.request(method, url, **kwargs)

    return request


def _error_message(response: Any) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)

    reason = getattr(response, "reason_phrase", "") or str(getattr(response, "status_code", ""))
    return f"Tool execution failed: {reason}"


def _unwrap_result(body: Any) -> Any:
    if isinstance(body, dict):
        if body.get("result") is not None:
            return body["result"]
        if body.get("data") is not None:
            return body["data"]
    return body


async def remote_call(
    tool_name: str,
    validated: Any,
    context: ToolContext,
    endpoint: str,
) -> Any:
    """Execute a tool remotely and return the unwrapped result.

    Non-success responses raise RemoteCallError carrying the server message.
    Failures with no response at all (``httpx.ConnectError`` and friends)
    propagate unchanged.
    """
    request_fn = context.request_fn or default_request_fn()
    payload = validated.model_dump(mode="json") if isinstance(validated, BaseModel) else validated

    response = await request_fn(
        "POST",
        endpoint,
        json={"tool": tool_name, "input": payload},
        headers={"Content-Type": "application/json"},
    )

    if not response.is_success:
        raise RemoteCallError(
            _error_message(response),
            status_code=response.status_code,
            endpoint=endpoint,
        )

    return _unwrap_result(response.json())
