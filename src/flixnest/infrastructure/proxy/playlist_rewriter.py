"""HLS playlist rewriting.

Every network reference in a manifest (variant playlists, media segments,
``URI="..."`` attributes for keys, maps and alternate renditions) is
replaced with a proxy URL, so the player never talks to the origin
directly. The caller's header bundle rides along in each proxy URL, which
lets segment requests reach header-gated CDNs without server-side state.

Rewriting is a single pass over one document. Nested playlists are not
fetched here; once proxied they come back through the proxy and are
rewritten on their own fetch.
"""

from __future__ import annotations

import json
import re
from urllib.parse import urlencode, urljoin, urlsplit

from flixnest.domain.entities.proxy import HeaderBundle

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)
# URI="..." or URI='...' attribute inside an #EXT tag.
_URI_ATTRIBUTE = re.compile(r"(?<![\w-])(URI=)([\"'])(.+?)\2", re.IGNORECASE)


def playlist_directory(playlist_url: str) -> str:
    """Directory of a playlist URL, i.e. everything up to the last ``/``.

    >>> playlist_directory("https://cdn.example.com/hls/01/master.m3u8?t=a/b")
    'https://cdn.example.com/hls/01/'
    """
    parts = urlsplit(playlist_url)
    path = parts.path
    last_slash = path.rfind("/")
    base_path = path[: last_slash + 1] if last_slash >= 0 else "/"
    return f"{parts.scheme}://{parts.netloc}{base_path}"


def _unwrap_quoted(text: str) -> str:
    trimmed = text.strip()
    if len(trimmed) < 2 or trimmed[0] != trimmed[-1] or trimmed[0] not in "\"'":
        return text
    if trimmed[0] == '"':
        try:
            parsed = json.loads(trimmed, strict=False)
        except ValueError:
            parsed = None
        if isinstance(parsed, str):
            return parsed
    # A real manifest starts with "#EXTM3U", never with a quote.
    return trimmed[1:-1]


def normalize_playlist_text(raw: str) -> str:
    """Normalize line endings and undo JSON-string wrapping/escaping.

    Some origins return the manifest as a JSON string literal, or with
    literal ``\\n`` sequences instead of newlines.
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = _unwrap_quoted(text)
    if "\\n" in text or "\\r" in text:
        text = text.replace("\\r\\n", "\n").replace("\\n", "\n").replace("\\r", "\n")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def resolve_reference(reference: str, playlist_url: str) -> str | None:
    """Resolve a playlist reference to an absolute http(s) URL.

    Returns None for opaque non-HTTP URIs (``data:``, ``skd://``, key
    system URNs ...), which must reach the player untouched.
    """
    ref = reference.strip()
    if not ref:
        return None
    if ":" in ref and not _HTTP_URL.match(ref) and not ref.startswith("//"):
        return None
    if ref.startswith("//"):
        return f"https:{ref}"
    if _HTTP_URL.match(ref):
        return ref
    if ref.startswith("/"):
        parts = urlsplit(playlist_url)
        return f"{parts.scheme}://{parts.netloc}{ref}"
    return urljoin(playlist_directory(playlist_url), ref)


def build_proxy_url(
    proxy_endpoint: str, target_url: str, bundle: HeaderBundle | None = None
) -> str:
    """Wrap *target_url* in a proxy URL carrying the header bundle."""
    params = {"url": target_url}
    encoded = bundle.encode() if bundle else None
    if encoded:
        params["headers"] = encoded
    return f"{proxy_endpoint}?{urlencode(params)}"


def rewrite_playlist(
    content: str,
    playlist_url: str,
    proxy_endpoint: str,
    bundle: HeaderBundle | None = None,
) -> str:
    """Rewrite every reference in an HLS playlist to go through the proxy.

    Line order and line count are preserved: ``#EXTINF`` and
    ``#EXT-X-STREAM-INF`` bind to the line that follows them.
    """

    def proxied(reference: str) -> str:
        resolved = resolve_reference(reference, playlist_url)
        if resolved is None:
            return reference.strip()
        return build_proxy_url(proxy_endpoint, resolved, bundle)

    def replace_attribute(match: re.Match[str]) -> str:
        prefix, quote, value = match.groups()
        return f"{prefix}{quote}{proxied(value)}{quote}"

    result: list[str] = []
    for line in normalize_playlist_text(content).split("\n"):
        stripped = line.strip()
        if stripped.startswith("#EXT"):
            result.append(_URI_ATTRIBUTE.sub(replace_attribute, stripped))
        elif stripped.startswith("#") or not stripped:
            result.append(line)
        else:
            result.append(proxied(stripped))
    return "\n".join(result)
