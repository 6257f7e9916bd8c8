"""Shared test fixtures for the FlixNest test suite."""

from __future__ import annotations

import httpx
import pytest
import respx

from flixnest.domain.entities.addon import StreamDescriptor, StreamRequest
from flixnest.domain.entities.proxy import HeaderBundle
from flixnest.infrastructure.config.schema import ProxyConfig
from flixnest.infrastructure.metrics import MetricsCollector
from flixnest.infrastructure.proxy.upstream import create_upstream_client

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_request() -> StreamRequest:
    return StreamRequest(content_type="movie", content_id="tt0371746")


@pytest.fixture()
def episode_request() -> StreamRequest:
    return StreamRequest(
        content_type="series", content_id="tt0903747", season=1, episode=5
    )


@pytest.fixture()
def stream_descriptor() -> StreamDescriptor:
    return StreamDescriptor(
        url="https://cdn.example.com/hls/iron-man/master.m3u8",
        name="WebStreamr 1080p",
        title="Iron.Man.2008.1080p.BluRay.x264",
        headers={"Referer": "https://player.example.com/"},
        addon_name="webstreamr.hayd.uk",
    )


@pytest.fixture()
def referer_bundle() -> HeaderBundle:
    return HeaderBundle({"Referer": "https://player.example.com/"})


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture()
def upstream_client() -> httpx.AsyncClient:
    """Guarded upstream client (redirect hook active) for use with respx."""
    return create_upstream_client(ProxyConfig(resolve_hostnames=False))


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router
