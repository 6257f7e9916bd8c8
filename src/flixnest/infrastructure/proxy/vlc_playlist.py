"""Single-stream playlists for handoff to VLC (or any M3U-aware player).

Pure string construction, no upstream fetch. Inputs are expected to be
already-proxied absolute URLs or paths on this server.
"""

from __future__ import annotations

from collections.abc import Iterable

from flixnest.domain.entities.proxy import VlcPlaylistSpec

PLAYLIST_CONTENT_TYPE = "audio/x-mpegurl; charset=utf-8"

VLC_CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def to_absolute_url(origin: str, url: str) -> str:
    """Make *url* absolute against this server's own *origin*.

    >>> to_absolute_url("https://tv.example", "/api/proxy?url=x")
    'https://tv.example/api/proxy?url=x'
    >>> to_absolute_url("https://tv.example", "video.m3u8")
    'https://tv.example/video.m3u8'
    """
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("/"):
        return f"{origin}{url}"
    return f"{origin}/{url}"


def build_vlc_playlist(
    origin: str,
    stream: str,
    subtitles: Iterable[str] = (),
    *,
    title: str = "FlixNest",
) -> VlcPlaylistSpec:
    origin = origin.rstrip("/")
    return VlcPlaylistSpec(
        stream_url=to_absolute_url(origin, stream),
        subtitle_urls=tuple(to_absolute_url(origin, sub) for sub in subtitles if sub),
        title=title,
    )
