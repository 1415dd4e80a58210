from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import gateway` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gateway.core.config import Settings  # noqa: E402
from gateway.main import create_app  # noqa: E402

TEST_SHOP = "teststore"
TEST_ACCESS_TOKEN = "shpat_test_token_0123456789abcdef"
TEST_CLIENT_ID = "test-client-id"
TEST_CLIENT_SECRET = "test-client-secret-value"

Responder = Callable[[httpx.Request], httpx.Response]


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "app_env": "test",
        "log_level": "info",
        "log_json": False,
        "port": 3001,
        "shopify_client_id": TEST_CLIENT_ID,
        "shopify_client_secret": TEST_CLIENT_SECRET,
        "shopify_api_version": "2024-07",
        "upstream_timeout_seconds": 10.0,
        "replay_ttl_seconds": 600,
        "pagination_delay_seconds": 0.0,
        "cors_origins": ("http://localhost:5173",),
        "proxy_allowed_prefixes": (),
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(**values)


class FakeShopify:
    """Stands in for Shopify behind an httpx.MockTransport.

    Records every request it receives so tests can assert on what the
    gateway sent — and on how many calls it made.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responder: Responder = lambda request: httpx.Response(200, json={})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def respond(self, status_code: int = 200, **kwargs: Any) -> None:
        self._responder = lambda request: httpx.Response(status_code, **kwargs)

    def respond_with(self, responder: Responder) -> None:
        self._responder = responder

    def fail_with(self, exc_type: type[httpx.TransportError], message: str) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc_type(message, request=request)

        self._responder = _raise

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def shopify() -> FakeShopify:
    return FakeShopify()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(shopify: FakeShopify, settings: Settings) -> FastAPI:
    return create_app(settings, transport=shopify.transport())


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def proxy_headers() -> dict[str, str]:
    return {"X-Shopify-Access-Token": TEST_ACCESS_TOKEN, "X-Shop-Domain": TEST_SHOP}
