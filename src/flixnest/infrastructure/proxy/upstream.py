"""Upstream HTTP access for the media and image proxies.

One request per inbound request, no retries, no caching. Responses are
always opened in streaming mode; callers either buffer them (playlists,
JSON, text) or forward the byte stream as it arrives (segments).
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import httpx
import structlog

from flixnest.domain.exceptions import (
    ProxyError,
    UpstreamStatusError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from flixnest.infrastructure.config.schema import ProxyConfig
from flixnest.infrastructure.proxy.url_guard import make_request_guard

log = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 65_536


def create_upstream_client(
    config: ProxyConfig, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create the dedicated upstream client.

    The request hook re-validates every hop (including redirects)
    against the private-network blocklist.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            config.upstream_timeout_seconds,
            connect=config.connect_timeout_seconds,
        ),
        limits=httpx.Limits(
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
        ),
        follow_redirects=True,
        max_redirects=config.max_redirects,
        event_hooks={
            "request": [
                make_request_guard(resolve_hostnames=config.resolve_hostnames)
            ]
        },
        transport=transport,
    )


async def open_upstream(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: dict[str, str],
    *,
    timeout: float | None = None,
    raise_for_status: bool = True,
) -> httpx.Response:
    """Send one upstream request and return the open (unread) response.

    The caller owns the returned response and must close it. With
    ``raise_for_status=False`` error statuses are returned, not raised.

    Raises:
        UpstreamStatusError: status is neither 2xx nor 206.
        UpstreamTimeoutError: the upstream did not answer in time.
        UpstreamUnavailableError: any other transport-level failure.
        BlockedTargetError: a redirect hop points at a private host.
    """
    request = client.build_request(
        method,
        url,
        headers=headers,
        timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
    )
    try:
        resp = await client.send(request, stream=True)
    except ProxyError:
        raise
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError("Upstream timeout") from e
    except httpx.HTTPError as e:
        raise UpstreamUnavailableError(f"Upstream request failed: {e}") from e

    log.debug("upstream_response", method=method, url=url, status=resp.status_code)
    if raise_for_status and not resp.is_success:
        await resp.aclose()
        raise UpstreamStatusError(resp.status_code)
    return resp


async def read_bytes(resp: httpx.Response) -> bytes:
    """Buffer a (small) upstream body, closing the response.

    Content-Encoding is undone; the charset is left alone.
    """
    try:
        return await resp.aread()
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError("Upstream timeout") from e
    except httpx.HTTPError as e:
        raise UpstreamUnavailableError(f"Upstream read failed: {e}") from e
    finally:
        await resp.aclose()


async def read_text(resp: httpx.Response) -> str:
    """Buffer and decode a (small) upstream body, closing the response."""
    await read_bytes(resp)
    return resp.text


async def iter_body(
    resp: httpx.Response,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_chunk: Callable[[int], None] | None = None,
) -> AsyncIterator[bytes]:
    """Forward an upstream body chunk by chunk without buffering it.

    The response is closed when the stream ends, fails, or the client
    disconnects (the generator is closed/cancelled).
    """
    try:
        async for chunk in resp.aiter_raw(chunk_size=chunk_size):
            if on_chunk is not None:
                on_chunk(len(chunk))
            yield chunk
    finally:
        await resp.aclose()
