"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from flixnest.application.use_cases import (
    InspectAddonUseCase,
    ResolveStreamsUseCase,
    ResolveSubtitlesUseCase,
)
from flixnest.infrastructure.addons import (
    AddonBlocklist,
    HttpxAddonClient,
    StreamSorter,
    quality_of,
)
from flixnest.infrastructure.metrics import MetricsCollector
from flixnest.infrastructure.proxy import (
    ImageProxy,
    MediaProxy,
    create_upstream_client,
)
from flixnest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

_DRAIN_TIMEOUT_SECONDS = 10.0


def wire_services(state: AppState) -> None:
    """Build proxies and use cases on top of ``state.http_client``.

    Split out of lifespan() so tests can wire a state around their own
    client without running the lifespan.
    """
    config = state.config

    state.media_proxy = MediaProxy(
        state.http_client,
        metrics=state.metrics,
        chunk_size=config.proxy.chunk_size,
    )
    state.image_proxy = ImageProxy(
        state.http_client, config.image_proxy, metrics=state.metrics
    )

    state.addon_client = HttpxAddonClient(
        http_client=state.http_client,
        subtitles_url=config.addons.subtitles_url,
    )
    blocklist = AddonBlocklist(
        config.addons.blocked_hosts, config.addons.blocked_manifests
    )
    state.resolve_streams_uc = ResolveStreamsUseCase(
        addon_client=state.addon_client,
        blocklist=blocklist,
        sorter=StreamSorter(),
        quality_fn=quality_of,
        max_concurrent=config.addons.max_concurrent,
    )
    state.resolve_subtitles_uc = ResolveSubtitlesUseCase(
        addon_client=state.addon_client
    )
    state.inspect_addon_uc = InspectAddonUseCase(
        addon_client=state.addon_client, blocklist=blocklist
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Metrics (recorded into by the proxies)
        2. Upstream HTTP client (guarded, shared by proxies and addon client)
        3. Proxies and use cases
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Metrics collector
    state.metrics = MetricsCollector()

    # 2) Upstream client: no retries, explicit timeouts, redirect guard
    state.http_client = create_upstream_client(config.proxy)
    log.info(
        "http_client_initialized",
        timeout_seconds=config.proxy.upstream_timeout_seconds,
        max_redirects=config.proxy.max_redirects,
        resolve_hostnames=config.proxy.resolve_hostnames,
    )

    # 3) Services
    wire_services(state)
    log.info(
        "services_initialized",
        addons=len(config.addons.manifests),
        public_base_url=config.server.public_base_url,
    )

    state.requests.mark_started()
    log.info("app_started", environment=config.environment)
    try:
        yield
    finally:
        await state.requests.drain(timeout=_DRAIN_TIMEOUT_SECONDS)
        await state.http_client.aclose()
        log.info("app_stopped")
