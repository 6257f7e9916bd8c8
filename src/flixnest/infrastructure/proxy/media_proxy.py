"""Media proxy: fetch an upstream media resource on behalf of the player.

Stateless per request. The response is shaped by what the upstream
returned (in this order):

1. JSON is parsed and re-serialized (addon/meta endpoints tunnel through).
2. HLS playlists are buffered and rewritten so every reference comes back
   through the proxy.
3. Other text is passed through byte for byte.
4. Everything else (segments, fonts, images) is streamed through
   unbuffered with its range headers intact, so native seeking works.
"""

from __future__ import annotations

import json
import time

import httpx
import structlog
from starlette.background import BackgroundTask
from starlette.responses import JSONResponse, Response, StreamingResponse

from flixnest.domain.entities.proxy import ContentKind, HeaderBundle, ProxyRequest
from flixnest.domain.exceptions import (
    BlockedTargetError,
    InvalidTargetError,
    ProxyError,
    UpstreamContentError,
    UpstreamStatusError,
)
from flixnest.infrastructure.metrics import MetricsCollector
from flixnest.infrastructure.proxy.classify import classify, guess_kind
from flixnest.infrastructure.proxy.headers import (
    CORS_HEADERS,
    PREFLIGHT_MAX_AGE,
    build_upstream_headers,
)
from flixnest.infrastructure.proxy.playlist_rewriter import rewrite_playlist
from flixnest.infrastructure.proxy.upstream import (
    DEFAULT_CHUNK_SIZE,
    iter_body,
    open_upstream,
    read_bytes,
    read_text,
)
from flixnest.infrastructure.proxy.url_guard import validate_target

log = structlog.get_logger(__name__)

PLAYLIST_MEDIA_TYPE = "application/vnd.apple.mpegurl"

# Upstream headers forwarded on binary passthrough.
_PASSTHROUGH_HEADERS = (
    "content-length",
    "content-range",
    "accept-ranges",
    "content-encoding",
    "last-modified",
    "etag",
)
# Upstream headers echoed on HEAD.
_HEAD_HEADERS = ("content-type", "content-length", "content-range", "accept-ranges")


def _error_reason(error: ProxyError) -> str:
    if isinstance(error, BlockedTargetError):
        return "blocked_target"
    if isinstance(error, InvalidTargetError):
        return "invalid_target"
    if isinstance(error, UpstreamStatusError):
        return "upstream_status"
    return type(error).__name__


class MediaProxy:
    """GET/HEAD/OPTIONS handling for ``/api/proxy``.

    Args:
        http_client: Upstream client (see ``create_upstream_client``).
        metrics: Optional in-memory metrics collector.
        chunk_size: Chunk size for streamed passthrough.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        metrics: MetricsCollector | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._http = http_client
        self._metrics = metrics
        self._chunk_size = chunk_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_request(
        self,
        target: str | None,
        headers_param: str | None,
        *,
        range_header: str | None = None,
        method: str = "GET",
    ) -> ProxyRequest:
        """Validate the query contract into a ProxyRequest."""
        return ProxyRequest(
            target_url=validate_target(target),
            forwarded_headers=HeaderBundle.parse(headers_param),
            range_header=range_header or None,
            method="HEAD" if method == "HEAD" else "GET",
        )

    async def get(
        self,
        target: str | None,
        headers_param: str | None,
        *,
        range_header: str | None,
        proxy_endpoint: str,
    ) -> Response:
        """Proxy a GET. Never raises; failures become ``{"error": ...}``."""
        try:
            request = self.build_request(
                target, headers_param, range_header=range_header
            )
            return await self._fetch(request, proxy_endpoint)
        except ProxyError as e:
            self._log_failure(e, target)
            return JSONResponse(
                {"error": e.message},
                status_code=e.status_code,
                headers=CORS_HEADERS,
            )
        except Exception:
            log.error("proxy_unexpected_error", target=target or "", exc_info=True)
            if self._metrics is not None:
                self._metrics.record_error("internal")
            return JSONResponse(
                {"error": "Proxy error"}, status_code=500, headers=CORS_HEADERS
            )

    async def head(self, target: str | None, headers_param: str | None) -> Response:
        """Proxy a HEAD request: upstream status and content metadata only."""
        try:
            request = self.build_request(target, headers_param, method="HEAD")
            headers = build_upstream_headers(
                request.target_url,
                request.forwarded_headers,
                kind_guess=guess_kind(request.target_url),
            )
            resp = await open_upstream(
                self._http,
                "HEAD",
                request.target_url,
                headers,
                raise_for_status=False,
            )
            await resp.aclose()
        except ProxyError as e:
            self._log_failure(e, target)
            return Response(status_code=e.status_code, headers=CORS_HEADERS)
        except Exception:
            log.error("proxy_unexpected_error", target=target or "", exc_info=True)
            if self._metrics is not None:
                self._metrics.record_error("internal")
            return Response(status_code=500, headers=CORS_HEADERS)

        out = dict(CORS_HEADERS)
        for name in _HEAD_HEADERS:
            value = resp.headers.get(name)
            if value:
                out[name.title()] = value
        return Response(status_code=resp.status_code, headers=out)

    @staticmethod
    def preflight() -> Response:
        """Static CORS preflight; cached long since segments come in thousands."""
        return Response(
            status_code=204,
            headers={**CORS_HEADERS, "Access-Control-Max-Age": PREFLIGHT_MAX_AGE},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch(self, request: ProxyRequest, proxy_endpoint: str) -> Response:
        url = request.target_url
        # Guess before fetching (User-Agent), confirm after (body shaping).
        headers = build_upstream_headers(
            url,
            request.forwarded_headers,
            kind_guess=guess_kind(url),
            range_header=request.range_header,
        )

        start_ns = time.perf_counter_ns()
        resp = await open_upstream(self._http, "GET", url, headers)
        content_type = resp.headers.get("content-type", "application/octet-stream")
        kind = classify(url, content_type)
        if self._metrics is not None:
            self._metrics.record_response(kind.value, time.perf_counter_ns() - start_ns)

        if kind is ContentKind.JSON:
            text = await read_text(resp)
            try:
                data = json.loads(text)
            except ValueError as e:
                raise UpstreamContentError("Invalid JSON from upstream") from e
            return JSONResponse(
                data,
                status_code=resp.status_code,
                headers={**CORS_HEADERS, "Cache-Control": "no-store"},
            )

        if kind is ContentKind.PLAYLIST:
            text = await read_text(resp)
            # Relative references resolve against the final URL after redirects.
            playlist_url = str(resp.url)
            rewritten = rewrite_playlist(
                text, playlist_url, proxy_endpoint, request.forwarded_headers
            )
            if self._metrics is not None:
                self._metrics.record_playlist_rewrite()
            log.debug(
                "playlist_rewritten",
                playlist_url=playlist_url,
                lines=rewritten.count("\n") + 1,
            )
            return Response(
                rewritten,
                status_code=resp.status_code,
                media_type=PLAYLIST_MEDIA_TYPE,
                headers={**CORS_HEADERS, "Cache-Control": "no-cache"},
            )

        if kind is ContentKind.TEXT:
            # Bytes as sent, so the upstream charset label stays accurate.
            body = await read_bytes(resp)
            return Response(
                body,
                status_code=resp.status_code,
                headers={**CORS_HEADERS, "Content-Type": content_type},
            )

        out = {**CORS_HEADERS, "Content-Type": content_type}
        for name in _PASSTHROUGH_HEADERS:
            value = resp.headers.get(name)
            if value:
                out[name.title()] = value
        on_chunk = self._metrics.record_bytes if self._metrics is not None else None
        return StreamingResponse(
            iter_body(resp, chunk_size=self._chunk_size, on_chunk=on_chunk),
            status_code=resp.status_code,
            headers=out,
            # Closes the upstream even if the body iterator never started.
            background=BackgroundTask(resp.aclose),
        )

    def _log_failure(self, error: ProxyError, target: str | None) -> None:
        reason = _error_reason(error)
        upstream_status = (
            error.status_code if isinstance(error, UpstreamStatusError) else None
        )
        if self._metrics is not None:
            self._metrics.record_error(reason, upstream_status)

        if error.status_code >= 500:
            log.error(
                "proxy_upstream_failure",
                target=target or "",
                reason=reason,
                error=error.message,
            )
        else:
            log.warning(
                "proxy_request_refused",
                target=target or "",
                reason=reason,
                status=error.status_code,
                error=error.message,
            )
