"""Tests for logging setup helpers."""

from __future__ import annotations

import structlog

from flixnest.infrastructure.config.schema import AppConfig
from flixnest.infrastructure.logging.setup import (
    _truncate_urls,
    build_logging_config,
    truncate_url,
)


def _config(level: str = "INFO", fmt: str = "console") -> AppConfig:
    return AppConfig(log_level=level, log_format=fmt)


class TestTruncateUrl:
    def test_short_url_unchanged(self) -> None:
        assert truncate_url("https://cdn.example/a.ts") == "https://cdn.example/a.ts"

    def test_long_url_cut(self) -> None:
        url = "https://cdn.example/" + "x" * 200
        result = truncate_url(url)
        assert result == url[:80] + "..."

    def test_custom_limit(self) -> None:
        assert truncate_url("abcdef", limit=3) == "abc..."

    def test_processor_only_touches_url_keys(self) -> None:
        long_url = "https://cdn.example/" + "y" * 200
        event = {"event": "x", "target": long_url, "other": long_url, "url": 5}
        out = _truncate_urls(None, None, event)
        assert out["target"].endswith("...")
        assert out["other"] == long_url
        assert out["url"] == 5


class TestBuildLoggingConfig:
    def test_handlers_use_structlog_formatter(self) -> None:
        cfg = build_logging_config(_config())
        assert cfg["handlers"]["default"]["formatter"] == "structlog"
        assert cfg["handlers"]["access"]["formatter"] == "structlog"
        assert cfg["formatters"]["structlog"]["()"] is structlog.stdlib.ProcessorFormatter

    def test_level_applied_except_http_client(self) -> None:
        cfg = build_logging_config(_config(level="WARNING"))
        assert cfg["loggers"]["uvicorn"]["level"] == "WARNING"
        assert cfg["loggers"]["httpx"]["level"] == "WARNING"
        assert cfg["root"]["level"] == "WARNING"

        cfg = build_logging_config(_config(level="ERROR"))
        assert cfg["loggers"]["httpcore"]["level"] == "WARNING"

    def test_debug_unmutes_http_client(self) -> None:
        cfg = build_logging_config(_config(level="DEBUG"))
        assert cfg["loggers"]["httpx"]["level"] == "DEBUG"

    def test_json_renderer(self) -> None:
        cfg = build_logging_config(_config(fmt="json"))
        renderer = cfg["formatters"]["structlog"]["processors"][-1]
        assert isinstance(renderer, structlog.processors.JSONRenderer)

    def test_base_config_not_mutated(self) -> None:
        build_logging_config(_config(level="DEBUG"))
        cfg = build_logging_config(_config(level="INFO"))
        assert cfg["loggers"]["httpx"]["level"] == "WARNING"
