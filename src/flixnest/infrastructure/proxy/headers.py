"""Outbound header construction for upstream media fetches."""

from __future__ import annotations

from urllib.parse import urlsplit

from flixnest.domain.entities.proxy import ContentKind, HeaderBundle

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
# Some origins only serve HLS manifests to player-like clients.
PLAYER_USER_AGENT = "VLC/3.0.18 LibVLC/3.0.18"

# Never taken from the caller: hop-by-hop or owned by the HTTP client.
_DENIED_HEADERS = frozenset(
    {
        "host",
        "connection",
        "content-length",
        "transfer-encoding",
        "keep-alive",
        "upgrade",
        "proxy-connection",
    }
)

# Headers the video element needs to read on cross-origin responses.
CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Range, Content-Type",
    "Access-Control-Expose-Headers": (
        "Content-Length, Content-Range, Content-Type, Accept-Ranges"
    ),
}
PREFLIGHT_MAX_AGE = "86400"


def origin_of(url: str) -> str:
    """``scheme://host[:port]`` of an absolute URL."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def build_upstream_headers(
    target_url: str,
    bundle: HeaderBundle,
    *,
    kind_guess: ContentKind = ContentKind.BINARY,
    range_header: str | None = None,
) -> dict[str, str]:
    """Build the header set sent to the upstream origin.

    Defaults impersonate a browser (or VLC for playlists) and claim the
    target's own origin as ``Origin``/``Referer``; many CDNs refuse
    requests whose Referer is not their own site. Caller-supplied headers
    override the defaults case-insensitively, except for the deny-list.
    ``Range`` is forwarded verbatim for seeking.
    """
    origin = origin_of(target_url)
    defaults = {
        "User-Agent": (
            PLAYER_USER_AGENT
            if kind_guess is ContentKind.PLAYLIST
            else BROWSER_USER_AGENT
        ),
        "Accept": "*/*",
        "Accept-Language": "en-US,en;q=0.9",
        "Origin": origin,
        "Referer": f"{origin}/",
        # Passthrough keeps upstream Content-Length; it must describe the
        # bytes we forward, so ask for an unencoded body.
        "Accept-Encoding": "identity",
    }

    headers: dict[str, str] = {}
    overridden: set[str] = set()
    for key, value in bundle.headers.items():
        lowered = key.lower()
        if lowered in _DENIED_HEADERS:
            continue
        overridden.add(lowered)
        headers[key] = value

    for key, value in defaults.items():
        if key.lower() not in overridden:
            headers[key] = value

    if range_header:
        headers = {k: v for k, v in headers.items() if k.lower() != "range"}
        headers["Range"] = range_header
    return headers
