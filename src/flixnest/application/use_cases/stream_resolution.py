"""Stream and subtitle resolution use cases.

manifest list -> blocklist -> parallel addon lookups -> filter/dedupe
-> rank -> proxied PlayableStream list.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Protocol
from urllib.parse import urlencode

import structlog

from flixnest.domain.entities.addon import (
    AddonManifest,
    PlayableStream,
    StreamDescriptor,
    StreamQuality,
    StreamRequest,
    SubtitleDescriptor,
)
from flixnest.domain.entities.proxy import HeaderBundle
from flixnest.domain.ports.addon_client import AddonClientPort
from flixnest.infrastructure.proxy.playlist_rewriter import build_proxy_url
from flixnest.infrastructure.proxy.vlc_playlist import to_absolute_url

log = structlog.get_logger(__name__)

PROXY_PATH = "/api/proxy"
VLC_PLAYLIST_PATH = "/api/vlc-playlist"

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# ---------------------------------------------------------------------------


class _Blocklist(Protocol):
    def filter(self, manifest_urls: list[str]) -> list[str]: ...


class _AddonGate(Protocol):
    def is_blocked(self, manifest_url: str) -> bool: ...


class _StreamSorter(Protocol):
    def sort(self, streams: list[PlayableStream]) -> list[PlayableStream]: ...


_QualityFn = Callable[[StreamDescriptor], StreamQuality]


def is_playable_url(url: str | None) -> bool:
    """Only plain http(s) URLs can be proxied to the browser player."""
    if not url:
        return False
    lowered = url.lower()
    return lowered.startswith(("https://", "http://"))


def is_hls_url(url: str) -> bool:
    return ".m3u8" in url.lower()


class ResolveStreamsUseCase:
    """Resolve playable, proxied streams for a title across addons."""

    def __init__(
        self,
        *,
        addon_client: AddonClientPort,
        blocklist: _Blocklist,
        sorter: _StreamSorter,
        quality_fn: _QualityFn,
        max_concurrent: int = 5,
    ) -> None:
        self._addons = addon_client
        self._blocklist = blocklist
        self._sorter = sorter
        self._quality_fn = quality_fn
        self._max_concurrent = max_concurrent

    async def execute(
        self,
        request: StreamRequest,
        manifest_urls: list[str],
        origin: str,
    ) -> list[PlayableStream]:
        """Resolve streams for *request*.

        Args:
            request: Title (and episode) to resolve.
            manifest_urls: Addon manifests to query, before blocklisting.
            origin: Public origin of this server; proxy and VLC playlist
                URLs are built against it.
        """
        start_ns = time.perf_counter_ns()
        admitted = self._blocklist.filter(manifest_urls)
        if not admitted:
            log.info("streams_no_addons", content_id=request.content_id)
            return []

        descriptors = await self._fetch_all(request, admitted)

        seen: set[str] = set()
        unique: list[StreamDescriptor] = []
        for d in descriptors:
            if d.info_hash or not is_playable_url(d.url):
                continue
            if d.url in seen:
                continue
            seen.add(d.url)
            unique.append(d)

        origin = origin.rstrip("/")
        playable = self._sorter.sort(
            [self._to_playable(d, origin) for d in unique]
        )
        log.info(
            "streams_resolved",
            content_id=request.resource_id,
            addons=len(admitted),
            received=len(descriptors),
            playable=len(playable),
            duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 1),
        )
        return playable

    async def _fetch_all(
        self, request: StreamRequest, manifest_urls: list[str]
    ) -> list[StreamDescriptor]:
        """Query all addons in parallel with bounded concurrency."""
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _fetch_one(manifest_url: str) -> list[StreamDescriptor]:
            async with semaphore:
                try:
                    return await self._addons.fetch_streams(manifest_url, request)
                except Exception:
                    log.warning(
                        "addon_fetch_failed", manifest_url=manifest_url, exc_info=True
                    )
                    return []

        results = await asyncio.gather(*(_fetch_one(u) for u in manifest_urls))

        all_streams: list[StreamDescriptor] = []
        for streams in results:
            all_streams.extend(streams)
        return all_streams

    def _to_playable(self, descriptor: StreamDescriptor, origin: str) -> PlayableStream:
        url = descriptor.url or ""
        if f"{PROXY_PATH}?" in url:
            # Already proxied by an upstream FlixNest-aware addon.
            proxy_url = to_absolute_url(origin, url)
        else:
            proxy_url = build_proxy_url(
                f"{origin}{PROXY_PATH}", url, HeaderBundle(dict(descriptor.headers))
            )
        vlc_url = f"{origin}{VLC_PLAYLIST_PATH}?{urlencode({'stream': proxy_url})}"
        return PlayableStream(
            descriptor=descriptor,
            quality=self._quality_fn(descriptor),
            proxy_url=proxy_url,
            vlc_playlist_url=vlc_url,
            is_hls=is_hls_url(url),
        )


class InspectAddonUseCase:
    """Look up an addon manifest before it is installed.

    Blocklisted addons are refused without contacting them.
    """

    def __init__(
        self, *, addon_client: AddonClientPort, blocklist: _AddonGate
    ) -> None:
        self._addons = addon_client
        self._blocklist = blocklist

    def is_blocked(self, manifest_url: str) -> bool:
        return self._blocklist.is_blocked(manifest_url)

    async def execute(self, manifest_url: str) -> AddonManifest | None:
        if self.is_blocked(manifest_url):
            log.info("addon_blocked_by_config", manifest_url=manifest_url)
            return None
        manifest = await self._addons.fetch_manifest(manifest_url)
        if manifest is None:
            log.warning("addon_manifest_unavailable", manifest_url=manifest_url)
        else:
            log.info(
                "addon_manifest_fetched",
                addon_id=manifest.id,
                version=manifest.version,
            )
        return manifest


class ResolveSubtitlesUseCase:
    """Subtitle tracks for a title, one per language."""

    def __init__(self, *, addon_client: AddonClientPort) -> None:
        self._addons = addon_client

    async def execute(self, request: StreamRequest) -> list[SubtitleDescriptor]:
        subtitles = await self._addons.fetch_subtitles(request)
        seen: set[str] = set()
        unique: list[SubtitleDescriptor] = []
        for sub in subtitles:
            if sub.lang in seen:
                continue
            seen.add(sub.lang)
            unique.append(sub)
        return unique
