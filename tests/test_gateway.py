"""Tests for the execute/confirm gateway."""

import asyncio
import time

import pytest
from pydantic import BaseModel, Field

from tooldeck.config import RateLimitConfig
from tooldeck.core.audit import MemoryAuditLogger
from tooldeck.tools.definition import tool
from tooldeck.tools.demo import demo_registry
from tooldeck.tools.registry import ToolRegistry
from tooldeck.core.errors import (
    ConfirmationError,
    RateLimitError,
    RemoteCallError,
    ToolNotFoundError,
    ToolTimeoutError,
    ValidationError,
)
from tooldeck.web.gateway import ToolGateway, status_for
from tooldeck.web.rate_limit import SlidingWindowRateLimiter


class LoginIn(BaseModel):
    password: str = Field(min_length=8)


@pytest.fixture
def audit():
    return MemoryAuditLogger()


@pytest.fixture
def gateway(audit):
    return ToolGateway(demo_registry(), audit=audit, rate_limits=RateLimitConfig())


class TestExecuteEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, gateway, audit):
        response = await gateway.execute({"tool": "calculator", "input": {"a": 1.0, "b": 2.0}}, "1.1.1.1")

        assert response.status_code == 200
        assert response.body == {"result": {"result": 3.0}}

        entry = audit.entries[-1]
        assert entry["event"] == "tool_execute"
        assert entry["tool"] == "calculator"
        assert entry["ip"] == "1.1.1.1"
        assert entry["success"] is True
        assert "duration_ms" in entry

    @pytest.mark.asyncio
    async def test_stream_only_tool_returns_final_result(self, gateway):
        response = await gateway.execute({"tool": "counter_stream", "input": {"upto": 4}})

        assert response.status_code == 200
        assert response.body == {"result": {"count": 4}}

    @pytest.mark.asyncio
    async def test_refuses_confirmation_tools(self, gateway, audit):
        response = await gateway.execute({"tool": "delete_item", "input": {"item_id": "a"}})

        assert response.status_code == 400
        assert "requires confirmation" in response.body["error"]
        assert audit.entries[-1]["event"] == "tool_blocked"

    @pytest.mark.asyncio
    async def test_missing_fields(self, gateway):
        assert (await gateway.execute({"input": {}})).body == {"error": "Missing tool name"}
        assert (await gateway.execute({"tool": "calculator"})).body == {"error": "Missing input"}
        assert (await gateway.execute(["not", "an", "object"])).status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_tool(self, gateway):
        response = await gateway.execute({"tool": "nope", "input": {}})
        assert response.status_code == 404
        assert response.body == {"error": "Tool not found: nope"}

    @pytest.mark.asyncio
    async def test_invalid_input_does_not_echo_value(self, audit):
        login = tool("login").input(LoginIn).server(lambda inp, ctx: "ok").build()
        gateway = ToolGateway(ToolRegistry([login]), audit=audit, rate_limits=RateLimitConfig())

        response = await gateway.execute({"tool": "login", "input": {"password": "zq9"}})

        assert response.status_code == 400
        assert "password" in response.body["error"]
        assert "zq9" not in response.body["error"]
        assert "zq9" not in str(audit.entries)

    @pytest.mark.asyncio
    async def test_handler_errors_are_hidden(self, gateway, audit):
        response = await gateway.execute(
            {"tool": "calculator", "input": {"a": 1.0, "b": 0.0, "op": "div"}}
        )

        assert response.status_code == 500
        assert response.body == {"error": "Tool execution failed"}
        assert audit.entries[-1]["success"] is False
        assert audit.entries[-1]["error"] == "ZeroDivisionError"

    @pytest.mark.asyncio
    async def test_timeout(self, audit):
        async def slow(inp, ctx):
            await asyncio.sleep(5)

        t = tool("slow").input(LoginIn).server(slow).timeout(0.01).build()
        gateway = ToolGateway(ToolRegistry([t]), audit=audit, rate_limits=RateLimitConfig())

        response = await gateway.execute({"tool": "slow", "input": {"password": "long-enough"}})

        assert response.status_code == 504

    @pytest.mark.asyncio
    async def test_server_side_cache_is_shared(self, gateway):
        body = {"tool": "weather", "input": {"city": "Oslo"}}
        first = await gateway.execute(body, "a")
        second = await gateway.execute(body, "b")

        assert first.body == second.body
        assert first.body["result"]["city"] == "Oslo"

    @pytest.mark.asyncio
    async def test_headers_reach_privileged_handler(self, audit):
        seen = []

        def handler(inp, ctx):
            seen.append(ctx.headers)
            return "ok"

        t = tool("whoami").input(LoginIn).server(handler).build()
        gateway = ToolGateway(ToolRegistry([t]), audit=audit, rate_limits=RateLimitConfig())

        await gateway.execute({"tool": "whoami", "input": {"password": "long-enough"}},
                              headers={"authorization": "Bearer t"})

        assert seen == [{"authorization": "Bearer t"}]


class TestConfirmEndpoint:

    @pytest.mark.asyncio
    async def test_runs_confirmation_tools(self, gateway, audit):
        response = await gateway.confirm({"tool": "delete_item", "input": {"item_id": "a"}})

        assert response.status_code == 200
        assert response.body == {"result": {"deleted": "a"}}
        assert audit.entries[-1]["event"] == "tool_confirm"

    @pytest.mark.asyncio
    async def test_refuses_ordinary_tools(self, gateway, audit):
        response = await gateway.confirm({"tool": "calculator", "input": {"a": 1.0, "b": 2.0}})

        assert response.status_code == 400
        assert "does not require confirmation" in response.body["error"]
        assert audit.entries[-1]["event"] == "tool_blocked"


class TestRateLimiting:

    @pytest.mark.asyncio
    async def test_execute_limit_per_ip(self, audit):
        limits = RateLimitConfig(max_requests=2, window_seconds=60)
        gateway = ToolGateway(demo_registry(), audit=audit, rate_limits=limits)
        body = {"tool": "calculator", "input": {"a": 1.0, "b": 2.0}}

        statuses = [(await gateway.execute(body, "9.9.9.9")).status_code for _ in range(3)]

        assert statuses == [200, 200, 429]
        assert (await gateway.execute(body, "8.8.8.8")).status_code == 200
        assert audit.entries[-2]["event"] == "tool_blocked"

    @pytest.mark.asyncio
    async def test_confirm_limit_is_separate(self, audit):
        limits = RateLimitConfig(max_requests=1, window_seconds=60,
                                 confirm_max_requests=1, confirm_window_seconds=60)
        gateway = ToolGateway(demo_registry(), audit=audit, rate_limits=limits)

        assert (await gateway.execute({"tool": "calculator", "input": {"a": 1.0, "b": 1.0}}, "ip")).status_code == 200
        assert (await gateway.confirm({"tool": "delete_item", "input": {"item_id": "x"}}, "ip")).status_code == 200
        assert (await gateway.confirm({"tool": "delete_item", "input": {"item_id": "x"}}, "ip")).status_code == 429


class TestStatusMapping:

    def test_error_classes(self):
        assert status_for(ValidationError("bad")) == 400
        assert status_for(ConfirmationError("gated")) == 400
        assert status_for(ToolNotFoundError("x")) == 404
        assert status_for(RateLimitError()) == 429
        assert status_for(ToolTimeoutError("slow")) == 504
        assert status_for(RemoteCallError("upstream", status_code=502)) == 500


class TestSlidingWindowRateLimiter:

    def test_window_expiry(self):
        limiter = SlidingWindowRateLimiter(max_requests=1, window=0.05)

        assert limiter.check("a")
        assert not limiter.check("a")
        assert limiter.remaining("a") == 0

        time.sleep(0.06)
        assert limiter.check("a")

    def test_reset_and_cleanup(self):
        limiter = SlidingWindowRateLimiter(max_requests=1, window=60)
        limiter.check("a")

        limiter.reset("a")
        assert limiter.remaining("a") == 1
        assert limiter.cleanup() == 0

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            SlidingWindowRateLimiter(max_requests=0)
        with pytest.raises(ValueError):
            SlidingWindowRateLimiter(window=0)


class TestCleanup:

    @pytest.mark.asyncio
    async def test_purges_expired_entries(self, audit):
        t = tool("short").input(LoginIn).server(lambda inp, ctx: "ok").cache(ttl=0.01).build()
        gateway = ToolGateway(ToolRegistry([t]), audit=audit,
                              rate_limits=RateLimitConfig(window_seconds=0.01))

        await gateway.execute({"tool": "short", "input": {"password": "long-enough"}}, "ip")
        await asyncio.sleep(0.05)

        # One cache entry plus one idle rate-limit window
        assert gateway.cleanup() == 2
        assert gateway.cleanup() == 0
