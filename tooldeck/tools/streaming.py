"""Push-to-pull bridge for streaming handlers.

A stream handler pushes partial fragments through ``context.stream`` while
it runs; consumers pull ``StreamFrame`` objects from an async iterator.
"""

import asyncio
import contextlib
from typing import Any, AsyncIterator, Callable

from tooldeck.models.context import ToolContext, with_stream
from tooldeck.models.tool import StreamFrame
from tooldeck.tools.policies import invoke

_FINISHED = object()


async def bridge_stream(
    handler: Callable[..., Any],
    validated: Any,
    context: ToolContext,
    finalize: Callable[[Any], Any],
) -> AsyncIterator[StreamFrame]:
    """Yield partial frames as emitted, then one validated final frame.

    ``finalize`` is applied to the handler's return value (output validation,
    caching). If the handler or ``finalize`` raises, the error reaches the
    consumer after every partial frame emitted before it. Closing the
    iterator early cancels the handler task and waits for it to unwind.
    """
    queue: asyncio.Queue = asyncio.Queue()

    def emit(partial: Any) -> None:
        queue.put_nowait(partial)

    task = asyncio.ensure_future(invoke(handler, validated, with_stream(context, emit)))
    # Runs after the task finishes, so every emitted partial is queued first
    task.add_done_callback(lambda _: queue.put_nowait(_FINISHED))

    try:
        while True:
            item = await queue.get()
            if item is _FINISHED:
                break
            yield StreamFrame(partial=item, done=False)

        result = task.result()
        yield StreamFrame(partial=finalize(result), done=True)
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
