"""Poster/backdrop image proxy.

Lets the UI load artwork from addon-supplied hosts without mixed-content
or hotlink problems. Shares the upstream client (and therefore the
private-network guard) with the media proxy, but answers with plain-text
errors since its consumer is an ``<img>`` tag, not a player.
"""

from __future__ import annotations

import httpx
import structlog
from starlette.background import BackgroundTask
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from flixnest.domain.exceptions import (
    BlockedTargetError,
    InvalidTargetError,
    ProxyError,
    UpstreamStatusError,
)
from flixnest.infrastructure.config.schema import ImageProxyConfig
from flixnest.infrastructure.metrics import MetricsCollector
from flixnest.infrastructure.proxy.upstream import iter_body, open_upstream
from flixnest.infrastructure.proxy.url_guard import validate_target

log = structlog.get_logger(__name__)

# validate_target messages -> short plain-text bodies.
_INVALID_MESSAGES = {
    "Missing url parameter": "Missing url",
    "Invalid URL": "Invalid url",
}


class ImageProxy:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ImageProxyConfig | None = None,
        *,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._http = http_client
        self._config = config or ImageProxyConfig()
        self._metrics = metrics

    async def get(self, target: str | None) -> Response:
        try:
            url = validate_target(target)
        except (InvalidTargetError, BlockedTargetError) as e:
            return PlainTextResponse(
                _INVALID_MESSAGES.get(e.message, e.message), status_code=400
            )

        try:
            resp = await open_upstream(
                self._http,
                "GET",
                url,
                {"User-Agent": self._config.user_agent},
                timeout=self._config.timeout_seconds,
            )
        except UpstreamStatusError as e:
            log.info("image_upstream_status", url=url, status=e.status_code)
            return PlainTextResponse("Failed to fetch image", status_code=e.status_code)
        except BlockedTargetError:
            # Redirected into a private network.
            return PlainTextResponse("Blocked host", status_code=400)
        except ProxyError as e:
            log.warning("image_proxy_error", url=url, error=e.message)
            return PlainTextResponse("Image proxy error", status_code=502)

        if self._metrics is not None:
            self._metrics.record_image()
        return StreamingResponse(
            iter_body(resp),
            status_code=200,
            headers={
                "Content-Type": resp.headers.get(
                    "content-type", "application/octet-stream"
                ),
                "Cache-Control": resp.headers.get(
                    "cache-control", self._config.cache_control
                ),
            },
            background=BackgroundTask(resp.aclose),
        )
