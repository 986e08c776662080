"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Add project root to Python path so 'tooldeck' is importable without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from typing import Callable

import httpx
import pytest
from pydantic import BaseModel, Field

from tooldeck.store.state_store import ToolStateStore
from tooldeck.tools.dispatcher import Dispatcher


class DoublerIn(BaseModel):
    x: int


class DoublerOut(BaseModel):
    y: int


class SecretIn(BaseModel):
    username: str
    password: str = Field(min_length=8)


class CounterIn(BaseModel):
    upto: int


class CounterOut(BaseModel):
    count: int


class CallRecorder:
    """Callable handler that records every invocation."""

    def __init__(self, result=None, error: Exception | None = None):
        self.calls = []
        self._result = result
        self._error = error

    def __call__(self, inp, ctx):
        self.calls.append((inp, ctx))
        if self._error is not None:
            raise self._error
        if callable(self._result):
            return self._result(inp)
        return self._result

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def recorder() -> Callable[..., CallRecorder]:
    """Factory for recording handlers."""
    return CallRecorder


@pytest.fixture
def privileged() -> Dispatcher:
    return Dispatcher(privileged=True)


@pytest.fixture
def restricted() -> Dispatcher:
    return Dispatcher(privileged=False)


@pytest.fixture
def store() -> ToolStateStore:
    return ToolStateStore()


@pytest.fixture
def mock_request_fn():
    """Build a request function served by an ``httpx.MockTransport`` handler.

    The returned function also records every ``httpx.Request`` it sends.
    """
    def _make(handler):
        sent = []

        def _record(request: httpx.Request):
            sent.append(request)
            return handler(request)

        transport = httpx.MockTransport(_record)

        async def request(method: str, url: str, **kwargs):
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                return await client.request(method, url, **kwargs)

        request.sent = sent
        return request

    return _make
