"""Content classification for proxied responses.

The same rules run twice per request: once before the fetch on the URL
alone (to pick a User-Agent), and once after it with the upstream
``Content-Type`` (to decide how the body is shaped).
"""

from __future__ import annotations

from flixnest.domain.entities.proxy import ContentKind


def classify(url: str, content_type: str | None = None) -> ContentKind:
    """Classify a target by URL and (optionally) response MIME type.

    Precedence: JSON, then HLS playlist, then text, then binary.
    """
    ct = (content_type or "").lower()
    if "application/json" in ct:
        return ContentKind.JSON
    if ".m3u8" in url.lower() or "mpegurl" in ct:
        return ContentKind.PLAYLIST
    if "text/" in ct:
        return ContentKind.TEXT
    return ContentKind.BINARY


def guess_kind(url: str) -> ContentKind:
    """Pre-fetch guess: only PLAYLIST or BINARY are possible from a URL."""
    return classify(url)
