"""Tests for the poster/backdrop image proxy."""

from __future__ import annotations

import httpx
import pytest
import respx

from flixnest.infrastructure.config.schema import ImageProxyConfig
from flixnest.infrastructure.metrics import MetricsCollector
from flixnest.infrastructure.proxy.image_proxy import ImageProxy

_POSTER = "https://images.example.com/t/p/w500/poster.jpg"


@pytest.fixture()
def image_proxy(
    upstream_client: httpx.AsyncClient, metrics: MetricsCollector
) -> ImageProxy:
    return ImageProxy(upstream_client, ImageProxyConfig(), metrics=metrics)


async def _drain(resp) -> bytes:
    body = b""
    async for chunk in resp.body_iterator:
        body += chunk
    return body


class TestImageProxyValidation:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        ("target", "message"),
        [
            (None, "Missing url"),
            ("not a url", "Invalid url"),
            ("ftp://images.example.com/a.jpg", "Invalid protocol"),
            ("http://192.168.1.20/cover.jpg", "Blocked host"),
            ("http://localhost/cover.jpg", "Blocked host"),
            ("http://nas.local/cover.jpg", "Blocked host"),
        ],
    )
    async def test_plain_text_400(
        self,
        image_proxy: ImageProxy,
        respx_mock: respx.MockRouter,
        target: str | None,
        message: str,
    ) -> None:
        resp = await image_proxy.get(target)
        assert resp.status_code == 400
        assert resp.body.decode() == message
        assert resp.headers["content-type"].startswith("text/plain")
        assert not respx_mock.calls


class TestImageProxyFetch:
    @pytest.mark.asyncio()
    async def test_streams_image_with_default_cache_control(
        self,
        image_proxy: ImageProxy,
        respx_mock: respx.MockRouter,
        metrics: MetricsCollector,
    ) -> None:
        route = respx_mock.get(_POSTER).mock(
            return_value=httpx.Response(
                200, content=b"\xff\xd8jpeg", headers={"Content-Type": "image/jpeg"}
            )
        )
        resp = await image_proxy.get(_POSTER)

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/jpeg"
        assert (
            resp.headers["cache-control"]
            == "public, max-age=3600, stale-while-revalidate=86400"
        )
        assert await _drain(resp) == b"\xff\xd8jpeg"
        assert route.calls.last.request.headers["user-agent"] == "FlixNest Image Proxy"
        assert metrics.snapshot()["images_proxied"] == 1

    @pytest.mark.asyncio()
    async def test_upstream_cache_control_kept(
        self, image_proxy: ImageProxy, respx_mock: respx.MockRouter
    ) -> None:
        respx_mock.get(_POSTER).mock(
            return_value=httpx.Response(
                200,
                content=b"png",
                headers={"Content-Type": "image/png", "Cache-Control": "max-age=60"},
            )
        )
        resp = await image_proxy.get(_POSTER)
        await _drain(resp)
        assert resp.headers["cache-control"] == "max-age=60"

    @pytest.mark.asyncio()
    async def test_upstream_status_propagated(
        self, image_proxy: ImageProxy, respx_mock: respx.MockRouter
    ) -> None:
        respx_mock.get(_POSTER).mock(return_value=httpx.Response(404))
        resp = await image_proxy.get(_POSTER)
        assert resp.status_code == 404
        assert resp.body.decode() == "Failed to fetch image"

    @pytest.mark.asyncio()
    async def test_network_error_is_502(
        self, image_proxy: ImageProxy, respx_mock: respx.MockRouter
    ) -> None:
        respx_mock.get(_POSTER).mock(side_effect=httpx.ConnectError("refused"))
        resp = await image_proxy.get(_POSTER)
        assert resp.status_code == 502
        assert resp.body.decode() == "Image proxy error"

    @pytest.mark.asyncio()
    async def test_redirect_to_private_host_blocked(
        self, image_proxy: ImageProxy, respx_mock: respx.MockRouter
    ) -> None:
        respx_mock.get(_POSTER).mock(
            return_value=httpx.Response(
                302, headers={"Location": "http://10.0.0.2/cover.jpg"}
            )
        )
        resp = await image_proxy.get(_POSTER)
        assert resp.status_code == 400
        assert resp.body.decode() == "Blocked host"
