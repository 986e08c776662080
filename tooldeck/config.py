"""Centralized configuration for tooldeck.

This module provides typed, validated configuration loaded from
environment variables and .env files.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


@dataclass
class ExecutionConfig:
    """Dispatcher and remote-call configuration."""
    privileged: bool = True
    base_url: str = "http://localhost:8000"
    execute_endpoint: str = "/api/tools/execute"
    confirm_endpoint: str = "/api/tools/confirm"
    request_timeout: float = 30.0

    def __post_init__(self):
        self.privileged = _env_flag("TOOLDECK_PRIVILEGED", self.privileged)
        self.base_url = os.getenv("TOOLDECK_BASE_URL", self.base_url)
        self.execute_endpoint = os.getenv("TOOLDECK_EXECUTE_ENDPOINT", self.execute_endpoint)
        self.confirm_endpoint = os.getenv("TOOLDECK_CONFIRM_ENDPOINT", self.confirm_endpoint)
        self.request_timeout = float(os.getenv("TOOLDECK_REQUEST_TIMEOUT", self.request_timeout))


@dataclass
class RateLimitConfig:
    """Rate limits for the execute and confirm endpoints."""
    max_requests: int = 10
    window_seconds: float = 10.0
    confirm_max_requests: int = 5
    confirm_window_seconds: float = 10.0

    def __post_init__(self):
        self.max_requests = int(os.getenv("RATE_LIMIT_MAX", self.max_requests))
        self.window_seconds = float(os.getenv("RATE_LIMIT_WINDOW", self.window_seconds))
        self.confirm_max_requests = int(os.getenv("CONFIRM_RATE_LIMIT_MAX", self.confirm_max_requests))
        self.confirm_window_seconds = float(
            os.getenv("CONFIRM_RATE_LIMIT_WINDOW", self.confirm_window_seconds)
        )


@dataclass
class WebConfig:
    """Web server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    def __post_init__(self):
        self.host = os.getenv("TOOLDECK_WEB_HOST", self.host)
        self.port = int(os.getenv("TOOLDECK_WEB_PORT", self.port))
        self.debug = _env_flag("TOOLDECK_DEBUG", self.debug)


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "json"  # "json" or "text"
    log_dir: Optional[Path] = None
    console_enabled: bool = True

    def __post_init__(self):
        self.level = os.getenv("TOOLDECK_LOG_LEVEL", self.level).upper()
        self.format = os.getenv("TOOLDECK_LOG_FORMAT", self.format).lower()
        log_dir = os.getenv("TOOLDECK_LOG_DIR")
        if log_dir:
            self.log_dir = Path(log_dir)
        self.console_enabled = _env_flag("TOOLDECK_LOG_CONSOLE", self.console_enabled)


@dataclass
class Config:
    """Main configuration container."""
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.execution.execute_endpoint.startswith("/") and "://" not in self.execution.execute_endpoint:
            issues.append("execute_endpoint must be an absolute path or URL")

        if self.execution.request_timeout <= 0:
            issues.append("request_timeout must be positive")

        if self.rate_limit.max_requests < 1 or self.rate_limit.confirm_max_requests < 1:
            issues.append("rate limits must allow at least 1 request")

        if self.rate_limit.window_seconds <= 0 or self.rate_limit.confirm_window_seconds <= 0:
            issues.append("rate limit windows must be positive")

        if self.log.format not in ("json", "text"):
            issues.append("log format must be 'json' or 'text'")

        return issues

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
