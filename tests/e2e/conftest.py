"""Fixtures for end-to-end tests against the full FastAPI app.

The app is wired around a guarded upstream client without running the
lifespan; upstream traffic is intercepted with respx.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from flixnest.infrastructure.config.schema import AppConfig
from flixnest.infrastructure.metrics import MetricsCollector
from flixnest.infrastructure.proxy.upstream import create_upstream_client
from flixnest.interfaces.app import create_app
from flixnest.interfaces.composition import wire_services


@pytest.fixture()
def app_config() -> AppConfig:
    return AppConfig(proxy={"resolve_hostnames": False})


@pytest.fixture()
def app(app_config: AppConfig) -> FastAPI:
    application = create_app(app_config)
    state = application.state
    state.metrics = MetricsCollector()
    state.http_client = create_upstream_client(app_config.proxy)
    wire_services(state)
    return application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
