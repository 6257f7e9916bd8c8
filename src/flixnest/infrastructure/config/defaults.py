"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "flixnest",
    "environment": "dev",
    "server": {
        "public_base_url": None,
        "playlist_title": "FlixNest",
    },
    "proxy": {
        "upstream_timeout_seconds": 20.0,
        "connect_timeout_seconds": 10.0,
        "max_redirects": 10,
        "max_connections": 200,
        "max_keepalive_connections": 50,
        "resolve_hostnames": True,
        "chunk_size": 65_536,
    },
    "image_proxy": {
        "user_agent": "FlixNest Image Proxy",
        "cache_control": "public, max-age=3600, stale-while-revalidate=86400",
        "timeout_seconds": 15.0,
    },
    "addons": {
        "manifests": [
            "https://webstreamr.hayd.uk/manifest.json",
        ],
        "subtitles_url": "https://opensubtitles-v3.strem.io",
        "blocked_hosts": [],
        "blocked_manifests": [],
        "max_concurrent": 5,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
