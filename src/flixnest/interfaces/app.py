"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from flixnest import __version__
from flixnest.infrastructure.config import AppConfig
from flixnest.infrastructure.lifecycle import RequestTracker
from flixnest.infrastructure.logging.setup import truncate_url
from flixnest.interfaces.app_state import AppState
from flixnest.interfaces.composition import lifespan

log = structlog.get_logger(__name__)

# Segment fetches arrive by the thousand; logged at debug only.
_QUIET_PATHS = frozenset({"/api/proxy", "/api/image"})


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (upstream HTTP client, proxies, use cases) are created in
    lifespan().
    """
    app = FastAPI(
        title="FlixNest",
        description="Streaming media proxy, HLS playlist rewriter and addon gateway",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.requests = RequestTracker()

    from flixnest.interfaces.api.addons.router import router as addons_router
    from flixnest.interfaces.api.image.router import router as image_router
    from flixnest.interfaces.api.proxy.router import router as proxy_router
    from flixnest.interfaces.api.stats.router import router as stats_router
    from flixnest.interfaces.api.vlc.router import router as vlc_router

    app.include_router(proxy_router, prefix="/api")
    app.include_router(vlc_router, prefix="/api")
    app.include_router(image_router, prefix="/api")
    app.include_router(addons_router, prefix="/api")
    app.include_router(stats_router, prefix="/api")

    @app.get("/api/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness check: returns 200 as long as the process is running."""
        return {
            "status": "ok",
            "version": __version__,
            "addons": len(config.addons.manifests),
        }

    @app.get("/api/readyz")
    async def readyz() -> Response:
        """Readiness check: 200 after startup complete, 503 otherwise."""
        tracker: RequestTracker = app.state.requests
        if tracker.is_ready:
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        tracker: RequestTracker = app.state.requests
        start = time.perf_counter()
        status_code = 500
        try:
            with tracker.track():
                response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            path = request.url.path
            emit = log.debug if path in _QUIET_PATHS else log.info
            emit(
                "http_request",
                method=request.method,
                path=path,
                query=truncate_url(str(request.url.query)),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
