"""Retry and timeout policies around handler invocation."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional

from tooldeck.core.errors import ToolTimeoutError
from tooldeck.core.logging import get_logger
from tooldeck.models.tool import RetryConfig

logger = get_logger("policies")


async def invoke(handler: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async handler and return its result."""
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def with_retry(
    call: Callable[[], Awaitable[Any]],
    retry: Optional[RetryConfig],
    tool_name: str = "",
) -> Any:
    """Run ``call`` once plus up to ``retry.max_attempts`` more times.

    The last exception is re-raised as is once attempts are exhausted.
    """
    if retry is None:
        return await call()

    attempt = 0
    while True:
        try:
            return await call()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if attempt >= retry.max_attempts:
                raise
            attempt += 1
            logger.retry_scheduled(tool_name, attempt, retry.max_attempts, exc)
            if retry.delay:
                await asyncio.sleep(retry.delay)


async def run_with_timeout(
    awaitable: Awaitable[Any],
    timeout: Optional[float],
    tool_name: str = "",
) -> Any:
    """Race ``awaitable`` against ``timeout`` seconds.

    Raises ToolTimeoutError when the clock wins; no timeout means no race.
    """
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise ToolTimeoutError(
            f"Tool {tool_name or 'call'} timed out",
            timeout_seconds=timeout,
        ) from None
