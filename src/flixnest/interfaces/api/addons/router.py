"""Addon endpoints: manifest lookup, plus streams and subtitles for the watch page."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from flixnest.domain.entities.addon import (
    AddonContentType,
    AddonManifest,
    PlayableStream,
    StreamRequest,
)
from flixnest.domain.exceptions import ProxyError
from flixnest.infrastructure.proxy.url_guard import validate_target
from flixnest.interfaces.api.urls import public_origin
from flixnest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["addons"])

# "tv" is the catalog name for what addons call "series".
_CONTENT_TYPES: dict[str, AddonContentType] = {
    "movie": "movie",
    "series": "series",
    "tv": "series",
}


def _parse_request(
    content_type: str,
    content_id: str,
    season: int | None,
    episode: int | None,
) -> StreamRequest | None:
    """Build a StreamRequest, accepting ``tt123:1:5`` ids for episodes."""
    ct = _CONTENT_TYPES.get(content_type)
    if ct is None or not content_id:
        return None

    parts = content_id.split(":")
    if len(parts) == 3 and season is None and episode is None:
        try:
            season, episode = int(parts[1]), int(parts[2])
        except ValueError:
            return None
        content_id = parts[0]
    return StreamRequest(
        content_type=ct, content_id=content_id, season=season, episode=episode
    )


def _stream_to_dict(stream: PlayableStream) -> dict[str, Any]:
    d = stream.descriptor
    return {
        "name": d.name,
        "title": d.title,
        "addon": d.addon_name,
        "quality": stream.quality.name,
        "url": stream.proxy_url,
        "vlcPlaylistUrl": stream.vlc_playlist_url,
        "isHls": stream.is_hls,
        "notWebReady": d.not_web_ready,
    }



def _manifest_to_dict(manifest: AddonManifest) -> dict[str, Any]:
    return {
        "id": manifest.id,
        "name": manifest.name,
        "version": manifest.version,
        "description": manifest.description,
        "types": manifest.types,
        "resources": manifest.resources,
        "idPrefixes": manifest.id_prefixes,
        "catalogs": manifest.catalogs,
        "manifestUrl": manifest.manifest_url,
        "baseUrl": manifest.base_url,
    }


@router.get("/addons/manifest")
async def addon_manifest(
    request: Request,
    url: str | None = Query(default=None, description="Addon manifest URL."),
) -> JSONResponse:
    """Fetch an addon's manifest so it can be shown before installing."""
    try:
        manifest_url = validate_target(url)
    except ProxyError as e:
        return JSONResponse({"error": e.message}, status_code=e.status_code)

    inspect_uc = cast(AppState, request.app.state).inspect_addon_uc
    if inspect_uc.is_blocked(manifest_url):
        return JSONResponse({"error": "Addon is blocked"}, status_code=403)

    manifest = await inspect_uc.execute(manifest_url)
    if manifest is None:
        return JSONResponse({"error": "Failed to fetch manifest"}, status_code=502)
    return JSONResponse(_manifest_to_dict(manifest))


@router.get("/streams/{content_type}/{content_id}")
async def streams(
    request: Request,
    content_type: str,
    content_id: str,
    season: int | None = Query(default=None, ge=0),
    episode: int | None = Query(default=None, ge=0),
    addon: list[str] = Query(
        default=[], description="Addon manifest URL (repeatable)."
    ),
) -> JSONResponse:
    """Resolve playable streams across the configured (or given) addons."""
    stream_request = _parse_request(content_type, content_id, season, episode)
    if stream_request is None:
        return JSONResponse({"error": "Invalid content type or id"}, status_code=400)

    state = cast(AppState, request.app.state)
    manifests = addon or state.config.addons.manifests
    playable = await state.resolve_streams_uc.execute(
        stream_request, list(manifests), public_origin(request)
    )
    return JSONResponse({"streams": [_stream_to_dict(s) for s in playable]})


@router.get("/subtitles/{content_type}/{content_id}")
async def subtitles(
    request: Request,
    content_type: str,
    content_id: str,
    season: int | None = Query(default=None, ge=0),
    episode: int | None = Query(default=None, ge=0),
) -> JSONResponse:
    stream_request = _parse_request(content_type, content_id, season, episode)
    if stream_request is None:
        return JSONResponse({"error": "Invalid content type or id"}, status_code=400)

    state = cast(AppState, request.app.state)
    subs = await state.resolve_subtitles_uc.execute(stream_request)
    return JSONResponse(
        {"subtitles": [{"id": s.id, "url": s.url, "lang": s.lang} for s in subs]}
    )
