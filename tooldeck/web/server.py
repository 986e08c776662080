"""FastAPI application exposing a tool registry over HTTP.

Endpoints:
- GET  /api/tools          catalog of tool descriptors
- POST /api/tools/execute  run a tool that needs no confirmation
- POST /api/tools/confirm  run a confirmation-gated tool after approval
"""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tooldeck.core.audit import AuditLogger
from tooldeck.tools.registry import ToolRegistry
from tooldeck.web.gateway import GatewayResponse, ToolGateway


def client_ip(request: Request) -> str:
    """Caller address from proxy headers, falling back to the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


async def _read_body(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _respond(response: GatewayResponse) -> JSONResponse:
    return JSONResponse(response.body, status_code=response.status_code)


async def _periodic_cleanup(gateway: ToolGateway, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        gateway.cleanup()


def create_app(
    registry: Optional[ToolRegistry] = None,
    gateway: Optional[ToolGateway] = None,
    audit: Optional[AuditLogger] = None,
    cleanup_interval: float = 60.0,
) -> FastAPI:
    """Build the app around ``gateway``, or a gateway over ``registry``."""
    if gateway is None:
        if registry is None:
            from tooldeck.tools.demo import demo_registry
            registry = demo_registry()
        gateway = ToolGateway(registry, audit=audit)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(_periodic_cleanup(gateway, cleanup_interval))
        try:
            yield
        finally:
            task.cancel()

    app = FastAPI(title="tooldeck", version="0.1.0", lifespan=lifespan)
    app.state.gateway = gateway

    @app.get("/api/tools")
    async def list_tools():
        """List registered tools."""
        return {"tools": gateway.catalog()}

    @app.post("/api/tools/execute")
    async def execute_tool(request: Request):
        """Execute a tool server side."""
        body = await _read_body(request)
        if body is None:
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
        return _respond(await gateway.execute(body, client_ip(request), dict(request.headers)))

    @app.post("/api/tools/confirm")
    async def confirm_tool(request: Request):
        """Execute a confirmation-gated tool after user approval."""
        body = await _read_body(request)
        if body is None:
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
        return _respond(await gateway.confirm(body, client_ip(request), dict(request.headers)))

    return app
