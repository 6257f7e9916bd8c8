"""VLC playlist endpoint (``/api/vlc-playlist``)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from flixnest.infrastructure.proxy.vlc_playlist import (
    PLAYLIST_CONTENT_TYPE,
    VLC_CORS_HEADERS,
    build_vlc_playlist,
)
from flixnest.interfaces.api.urls import public_origin
from flixnest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["vlc"])


@router.get("/vlc-playlist")
async def vlc_playlist(
    request: Request,
    stream: str | None = Query(default=None, description="Stream URL."),
    sub: list[str] = Query(default=[], description="Subtitle URL (repeatable)."),
) -> Response:
    """Render a one-stream playlist for handoff to an external player."""
    if not stream:
        return JSONResponse(
            {"error": "Missing stream parameter"},
            status_code=400,
            headers=VLC_CORS_HEADERS,
        )

    state = cast(AppState, request.app.state)
    playlist = build_vlc_playlist(
        public_origin(request),
        stream,
        sub,
        title=state.config.server.playlist_title,
    )
    state.metrics.record_vlc_playlist()
    log.debug(
        "vlc_playlist_rendered",
        url=playlist.stream_url,
        subtitles=len(playlist.subtitle_urls),
    )
    return Response(
        playlist.render(),
        headers={**VLC_CORS_HEADERS, "Content-Type": PLAYLIST_CONTENT_TYPE},
    )


@router.options("/vlc-playlist")
async def vlc_playlist_options() -> Response:
    return Response(status_code=204, headers=VLC_CORS_HEADERS)
