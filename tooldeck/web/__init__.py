"""Web package - HTTP entry points for tool execution."""

from .rate_limit import SlidingWindowRateLimiter
from .gateway import GatewayResponse, ToolGateway
from .server import create_app

__all__ = ["SlidingWindowRateLimiter", "GatewayResponse", "ToolGateway", "create_app"]
