"""Image proxy endpoint (``/api/image``)."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from flixnest.interfaces.app_state import AppState

router = APIRouter(tags=["image"])


@router.get("/image")
async def image(
    request: Request,
    url: str | None = Query(default=None, description="Image URL."),
) -> Response:
    state = cast(AppState, request.app.state)
    return await state.image_proxy.get(url)
