"""Public URLs of this server, as seen by the player."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from flixnest.interfaces.app_state import AppState


def public_origin(request: Request) -> str:
    """Configured ``server.public_base_url``, else the request's own base URL.

    Behind a reverse proxy the request base URL is the internal one, so
    deployments there set ``public_base_url``.
    """
    state = cast(AppState, request.app.state)
    configured = state.config.server.public_base_url
    if configured:
        return configured
    return str(request.base_url).rstrip("/")


def proxy_endpoint(request: Request) -> str:
    """Absolute ``/api/proxy`` URL written into rewritten playlists."""
    state = cast(AppState, request.app.state)
    configured = state.config.server.public_base_url
    if configured:
        return f"{configured}/api/proxy"
    return str(request.url_for("proxy_get"))
