"""Media proxy endpoint (``/api/proxy``)."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from flixnest.interfaces.api.urls import proxy_endpoint
from flixnest.interfaces.app_state import AppState

router = APIRouter(tags=["proxy"])

_URL_QUERY = Query(default=None, description="Upstream URL to fetch.")
_HEADERS_QUERY = Query(
    default=None, description="JSON object of headers to send upstream."
)


@router.get("/proxy", name="proxy_get")
async def proxy_get(
    request: Request,
    url: str | None = _URL_QUERY,
    headers: str | None = _HEADERS_QUERY,
) -> Response:
    """Fetch *url* and return it, rewriting HLS playlists on the way."""
    state = cast(AppState, request.app.state)
    return await state.media_proxy.get(
        url,
        headers,
        range_header=request.headers.get("range"),
        proxy_endpoint=proxy_endpoint(request),
    )


@router.head("/proxy")
async def proxy_head(
    request: Request,
    url: str | None = _URL_QUERY,
    headers: str | None = _HEADERS_QUERY,
) -> Response:
    state = cast(AppState, request.app.state)
    return await state.media_proxy.head(url, headers)


@router.options("/proxy")
async def proxy_options(request: Request) -> Response:
    state = cast(AppState, request.app.state)
    return state.media_proxy.preflight()
