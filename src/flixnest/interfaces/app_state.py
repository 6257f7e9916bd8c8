"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from flixnest.infrastructure.config import AppConfig
from flixnest.infrastructure.lifecycle import RequestTracker

if TYPE_CHECKING:
    from flixnest.application.use_cases import (
        InspectAddonUseCase,
        ResolveStreamsUseCase,
        ResolveSubtitlesUseCase,
    )
    from flixnest.domain.ports import AddonClientPort
    from flixnest.infrastructure.metrics import MetricsCollector
    from flixnest.infrastructure.proxy import ImageProxy, MediaProxy


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    metrics: MetricsCollector

    # Proxies
    media_proxy: MediaProxy
    image_proxy: ImageProxy

    # Addons
    addon_client: AddonClientPort
    resolve_streams_uc: ResolveStreamsUseCase
    resolve_subtitles_uc: ResolveSubtitlesUseCase
    inspect_addon_uc: InspectAddonUseCase

    # Readiness + drain on shutdown
    requests: RequestTracker
