"""Execution context handed to tool handlers."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional


RequestFn = Callable[..., Awaitable[Any]]
"""Async ``(method, url, **kwargs) -> response`` with an httpx-style response."""

OptimisticFn = Callable[[Any], None]
StreamFn = Callable[[Any], None]


@dataclass
class CacheEntry:
    """A cached tool result."""
    data: Any
    expiry: float


@dataclass(frozen=True)
class ToolContext:
    """Per-call bag of capabilities.

    The privileged fields (env, headers, cookies, user, session) are always
    None in the restricted environment, and ``optimistic`` is always None in
    the privileged one. Use ``build_context`` rather than constructing this
    directly so the stripping is applied.
    """
    cache: dict[str, CacheEntry] = field(default_factory=dict)
    request_fn: Optional[RequestFn] = None
    is_privileged: bool = True

    # Privileged only
    env: Optional[dict[str, str]] = None
    headers: Optional[dict[str, str]] = None
    cookies: Optional[dict[str, str]] = None
    user: Optional[dict[str, Any]] = None
    session: Optional[dict[str, Any]] = None

    # Restricted only
    optimistic: Optional[OptimisticFn] = None


@dataclass(frozen=True)
class StreamContext(ToolContext):
    """Context for stream handlers; ``stream(partial)`` pushes a partial frame."""
    stream: Optional[StreamFn] = None


def build_context(
    *,
    is_privileged: bool,
    cache: Optional[dict[str, CacheEntry]] = None,
    request_fn: Optional[RequestFn] = None,
    env: Optional[dict[str, str]] = None,
    headers: Optional[dict[str, str]] = None,
    cookies: Optional[dict[str, str]] = None,
    user: Optional[dict[str, Any]] = None,
    session: Optional[dict[str, Any]] = None,
    optimistic: Optional[OptimisticFn] = None,
) -> ToolContext:
    """Build a fresh context, keeping only the fields allowed in the environment.

    A supplied cache is used as is (it is caller-owned and long-lived);
    otherwise a throwaway dict is created for this call.
    """
    if is_privileged:
        return ToolContext(
            cache=cache if cache is not None else {},
            request_fn=request_fn,
            is_privileged=True,
            env=env,
            headers=headers,
            cookies=cookies,
            user=user,
            session=session,
        )

    return ToolContext(
        cache=cache if cache is not None else {},
        request_fn=request_fn,
        is_privileged=False,
        optimistic=optimistic,
    )


def with_stream(context: ToolContext, stream: StreamFn) -> StreamContext:
    """Extend a context with a stream emitter."""
    return StreamContext(
        cache=context.cache,
        request_fn=context.request_fn,
        is_privileged=context.is_privileged,
        env=context.env,
        headers=context.headers,
        cookies=context.cookies,
        user=context.user,
        session=context.session,
        optimistic=context.optimistic,
        stream=stream,
    )
