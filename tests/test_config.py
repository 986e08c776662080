"""Tests for configuration loading."""

from pathlib import Path

from tooldeck.config import Config, ExecutionConfig, LogConfig, RateLimitConfig, get_config, reset_config


class TestConfig:

    def test_defaults(self, monkeypatch):
        for name in ("TOOLDECK_PRIVILEGED", "TOOLDECK_EXECUTE_ENDPOINT", "RATE_LIMIT_MAX"):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.execution.privileged is True
        assert config.execution.execute_endpoint == "/api/tools/execute"
        assert config.execution.confirm_endpoint == "/api/tools/confirm"
        assert config.rate_limit.max_requests == 10
        assert config.rate_limit.confirm_max_requests == 5
        assert config.is_valid()

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TOOLDECK_PRIVILEGED", "false")
        monkeypatch.setenv("TOOLDECK_BASE_URL", "https://tools.example.com")
        monkeypatch.setenv("TOOLDECK_REQUEST_TIMEOUT", "5")
        monkeypatch.setenv("RATE_LIMIT_MAX", "3")
        monkeypatch.setenv("TOOLDECK_LOG_FORMAT", "TEXT")
        monkeypatch.setenv("TOOLDECK_LOG_DIR", str(tmp_path))

        execution = ExecutionConfig()
        log = LogConfig()

        assert execution.privileged is False
        assert execution.base_url == "https://tools.example.com"
        assert execution.request_timeout == 5.0
        assert RateLimitConfig().max_requests == 3
        assert log.format == "text"
        assert log.log_dir == Path(tmp_path)

    def test_validate_reports_issues(self, monkeypatch):
        monkeypatch.delenv("TOOLDECK_EXECUTE_ENDPOINT", raising=False)
        config = Config()
        config.execution.request_timeout = 0
        config.log.format = "xml"

        issues = config.validate()

        assert "request_timeout must be positive" in issues
        assert "log format must be 'json' or 'text'" in issues
        assert not config.is_valid()

    def test_global_instance(self):
        reset_config()
        first = get_config()

        assert get_config() is first
        reset_config()
        assert get_config() is not first
        reset_config()
