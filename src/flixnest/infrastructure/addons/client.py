"""Addon protocol client (async httpx).

Speaks the Stremio-style addon protocol:

- ``GET <manifest url>``
- ``GET <addon base>/stream/<type>/<id>.json``
- ``GET <subtitles addon>/subtitles/<type>/<id>.json``
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from flixnest.domain.entities.addon import (
    AddonManifest,
    StreamDescriptor,
    StreamRequest,
    SubtitleDescriptor,
    base_url_of,
)
from flixnest.domain.exceptions import ProxyError
from flixnest.infrastructure.logging.setup import truncate_url

log = structlog.get_logger(__name__)

# Per-call timeouts (seconds)
_TIMEOUT_MANIFEST = 10.0
_TIMEOUT_STREAMS = 15.0
_TIMEOUT_SUBTITLES = 10.0

_DEFAULT_SUBTITLES_URL = "https://opensubtitles-v3.strem.io"


def _mapping(value: Any) -> dict[str, Any]:
    """Addon payloads are untrusted: anything that is not an object is empty."""
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _names(value: Any) -> list[str]:
    """Manifest lists hold plain strings or objects with a ``name``."""
    names = [v.get("name") if isinstance(v, dict) else v for v in _items(value)]
    return [n for n in names if isinstance(n, str) and n]


def _addon_name(base_url: str) -> str:
    try:
        host = urlsplit(base_url).hostname
    except ValueError:
        host = None
    return host or base_url


class HttpxAddonClient:
    """Async addon client using httpx.

    Implements ``AddonClientPort`` from domain.ports.addon_client. Shares
    the guarded upstream client, so addon URLs supplied by users cannot
    reach private hosts either.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        subtitles_url: str = _DEFAULT_SUBTITLES_URL,
    ) -> None:
        self._http = http_client
        self._subtitles_url = subtitles_url.rstrip("/")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_json(self, url: str, *, timeout: float) -> dict[str, Any] | None:
        """GET request with error handling. Returns a JSON object or None."""
        try:
            resp = await self._http.get(url, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            log.warning(
                "addon_http_error",
                url=truncate_url(url),
                status=e.response.status_code,
            )
            return None
        except httpx.HTTPError:
            log.warning("addon_network_error", url=truncate_url(url), exc_info=True)
            return None
        except httpx.InvalidURL:
            log.warning("addon_invalid_url", url=truncate_url(url))
            return None
        except ProxyError as e:
            # Raised by the request guard (blocked host / redirect).
            log.warning("addon_blocked", url=truncate_url(url), error=e.message)
            return None
        except ValueError:
            log.warning("addon_invalid_json", url=truncate_url(url))
            return None

        if not isinstance(data, dict):
            log.warning("addon_unexpected_payload", url=truncate_url(url))
            return None
        return data

    @staticmethod
    def _parse_stream(item: dict[str, Any], addon_name: str) -> StreamDescriptor:
        hints = _mapping(item.get("behaviorHints"))
        headers = _mapping(item.get("headers")) or _mapping(
            _mapping(hints.get("proxyHeaders")).get("request")
        )
        info_hash = item.get("infoHash")
        return StreamDescriptor(
            url=item.get("url") or None,
            name=str(item.get("name") or ""),
            title=str(item.get("title") or item.get("description") or ""),
            headers={str(k): v for k, v in headers.items() if isinstance(v, str)},
            info_hash=info_hash if isinstance(info_hash, str) and info_hash else None,
            addon_name=addon_name,
            not_web_ready=bool(hints.get("notWebReady", False)),
        )

    # ------------------------------------------------------------------
    # Public API (AddonClientPort)
    # ------------------------------------------------------------------

    async def fetch_manifest(self, manifest_url: str) -> AddonManifest | None:
        data = await self._get_json(manifest_url, timeout=_TIMEOUT_MANIFEST)
        if data is None:
            return None

        return AddonManifest(
            id=str(data.get("id") or manifest_url),
            name=str(data.get("name") or ""),
            manifest_url=manifest_url,
            version=str(data.get("version") or ""),
            description=str(data.get("description") or ""),
            types=_names(data.get("types")),
            resources=_names(data.get("resources")),
            id_prefixes=_names(data.get("idPrefixes")),
            catalogs=_names(data.get("catalogs")),
        )

    async def fetch_streams(
        self, manifest_url: str, request: StreamRequest
    ) -> list[StreamDescriptor]:
        """Fetch candidate streams from one addon.

        Streams without a ``url`` (torrent-only entries) are dropped here;
        further filtering happens in the resolution use case.
        """
        base = base_url_of(manifest_url)
        url = f"{base}/stream/{request.content_type}/{request.resource_id}.json"
        log.debug("addon_fetch_streams", url=truncate_url(url))

        data = await self._get_json(url, timeout=_TIMEOUT_STREAMS)
        if data is None:
            return []

        raw_streams = _items(data.get("streams"))
        addon_name = _addon_name(base)
        streams = [
            self._parse_stream(item, addon_name)
            for item in raw_streams
            if isinstance(item, dict)
            and isinstance(item.get("url"), str)
            and item["url"]
        ]
        log.info(
            "addon_streams_received",
            addon=addon_name,
            received=len(raw_streams),
            with_url=len(streams),
        )
        return streams

    async def fetch_subtitles(
        self, request: StreamRequest
    ) -> list[SubtitleDescriptor]:
        url = (
            f"{self._subtitles_url}/subtitles/"
            f"{request.content_type}/{request.resource_id}.json"
        )
        data = await self._get_json(url, timeout=_TIMEOUT_SUBTITLES)
        if data is None:
            return []

        return [
            SubtitleDescriptor(
                id=str(item.get("id", "")),
                url=item["url"],
                lang=str(item.get("lang", "")),
            )
            for item in _items(data.get("subtitles"))
            if isinstance(item, dict)
            and isinstance(item.get("url"), str)
            and item["url"]
        ]
