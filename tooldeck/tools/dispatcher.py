"""Dispatcher - validates, routes and executes tool calls.

This module handles:
- Input validation before anything else runs
- Choosing the privileged or restricted environment
- Stripping privileged context fields at the trust boundary
- TTL caching, retries and streaming
- Falling back to a remote call when a restricted caller has no handler
"""

import time
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional

from tooldeck.config import ExecutionConfig, get_config
from tooldeck.core.errors import HandlerNotImplementedError
from tooldeck.core.logging import get_logger
from tooldeck.models.context import ToolContext, build_context
from tooldeck.models.tool import StreamFrame
from tooldeck.tools import cache as tool_cache
from tooldeck.tools.definition import Tool
from tooldeck.tools.policies import invoke, with_retry
from tooldeck.tools.streaming import bridge_stream
from tooldeck.tools.transport import remote_call
from tooldeck.tools.validation import validate_input, validate_output

logger = get_logger("dispatcher")


class Dispatcher:
    """Executes tools against a freshly built context.

    ``privileged`` is the environment used when a call does not say; it
    defaults to the ``TOOLDECK_PRIVILEGED`` setting.
    """

    def __init__(self, config: Optional[ExecutionConfig] = None, privileged: Optional[bool] = None):
        self._config = config or get_config().execution
        self._privileged = self._config.privileged if privileged is None else privileged

    @property
    def privileged(self) -> bool:
        return self._privileged

    def endpoint_for(self, tool: Tool) -> str:
        """Remote endpoint used by the restricted fallback for ``tool``."""
        if tool.client_fetch and tool.client_fetch.endpoint:
            return tool.client_fetch.endpoint
        if tool.requires_confirmation:
            return self._config.confirm_endpoint
        return self._config.execute_endpoint

    def _prepare(self, tool: Tool, raw_input: Any, overrides: dict[str, Any]) -> tuple[Any, ToolContext]:
        validated = validate_input(tool.input_schema, raw_input)
        is_privileged = overrides.pop("is_privileged", None)
        if is_privileged is None:
            is_privileged = self._privileged
        context = build_context(is_privileged=is_privileged, **overrides)
        return validated, context

    async def run(self, tool: Tool, raw_input: Any, **overrides: Any) -> Any:
        """Execute ``tool`` and return its validated output.

        Keyword overrides are context fields: ``is_privileged``, ``cache``,
        ``request_fn``, ``env``, ``headers``, ``cookies``, ``user``,
        ``session`` and ``optimistic``.
        """
        validated, context = self._prepare(tool, raw_input, overrides)

        key = None
        if tool.cache is not None:
            key = tool_cache.cache_key(tool.name, tool.cache, validated)
            cached = tool_cache.lookup(context.cache, key)
            if not tool_cache.is_miss(cached):
                logger.cache_hit(tool.name, key)
                return cached

        start = time.perf_counter()
        try:
            result = await with_retry(
                lambda: self._invoke_handler(tool, validated, context),
                tool.retry,
                tool.name,
            )
            result = validate_output(tool.output_schema, result)
        except Exception:
            logger.tool_executed(tool.name, False, _elapsed_ms(start), context.is_privileged)
            raise

        logger.tool_executed(tool.name, True, _elapsed_ms(start), context.is_privileged)

        if key is not None:
            tool_cache.store(context.cache, key, result, tool.cache.ttl)

        return result

    async def run_stream(self, tool: Tool, raw_input: Any, **overrides: Any) -> AsyncIterator[StreamFrame]:
        """Execute ``tool`` as a stream of partial frames and one final frame.

        Tools without a stream handler yield a single final frame from
        ``run``. Only the final frame is validated against the output schema.
        """
        if tool.stream_handler is None:
            result = await self.run(tool, raw_input, **overrides)
            yield StreamFrame(partial=result, done=True)
            return

        validated, context = self._prepare(tool, raw_input, overrides)

        key = None
        if tool.cache is not None:
            key = tool_cache.cache_key(tool.name, tool.cache, validated)
            cached = tool_cache.lookup(context.cache, key)
            if not tool_cache.is_miss(cached):
                logger.cache_hit(tool.name, key)
                yield StreamFrame(partial=cached, done=True)
                return

        def finalize(result: Any) -> Any:
            result = validate_output(tool.output_schema, result)
            if key is not None:
                tool_cache.store(context.cache, key, result, tool.cache.ttl)
            return result

        start = time.perf_counter()
        try:
            async with aclosing(bridge_stream(tool.stream_handler, validated, context, finalize)) as frames:
                async for frame in frames:
                    yield frame
        except Exception:
            logger.tool_executed(tool.name, False, _elapsed_ms(start), context.is_privileged)
            raise
        logger.tool_executed(tool.name, True, _elapsed_ms(start), context.is_privileged)

    async def collect(self, tool: Tool, raw_input: Any, **overrides: Any) -> Any:
        """Return the final output of ``run_stream``, discarding partial frames.

        Lets one-shot callers (CLI, HTTP gateway) execute stream-only tools.
        """
        final = None
        async with aclosing(self.run_stream(tool, raw_input, **overrides)) as frames:
            async for frame in frames:
                if frame.done:
                    final = frame.partial
        return final

    async def _invoke_handler(self, tool: Tool, validated: Any, context: ToolContext) -> Any:
        if context.is_privileged:
            if tool.server_handler is not None:
                return await invoke(tool.server_handler, validated, context)
            raise HandlerNotImplementedError(
                f'Tool "{tool.name}" has no server implementation',
                tool_name=tool.name,
                environment="privileged",
            )

        # The server handler never runs here; without a local handler the
        # call goes to the privileged side over the request function.
        if tool.client_handler is not None:
            return await invoke(tool.client_handler, validated, context)
        if tool.server_handler is not None:
            return await remote_call(tool.name, validated, context, self.endpoint_for(tool))
        raise HandlerNotImplementedError(
            f'Tool "{tool.name}" has no implementation',
            tool_name=tool.name,
            environment="restricted",
        )


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
