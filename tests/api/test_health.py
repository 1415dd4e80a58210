from __future__ import annotations

from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from gateway.main import create_app
from gateway.services.replay_guard import RedisReplayGuard
from tests.conftest import FakeShopify, make_settings


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "OK",
        "message": "Shopify gateway server is running",
    }


def test_health_makes_no_upstream_call(client: TestClient, shopify: FakeShopify) -> None:
    client.get("/api/health")
    assert shopify.call_count == 0


def test_health_ok_without_client_credentials(shopify: FakeShopify) -> None:
    app = create_app(
        make_settings(shopify_client_id="", shopify_client_secret=""),
        transport=shopify.transport(),
    )
    assert TestClient(app).get("/api/health").status_code == 200


def test_ready_returns_200_with_in_memory_store(client: TestClient) -> None:
    resp = client.get("/api/ready")
    assert resp.status_code == 200


class _DownRedis:
    async def ping(self) -> bool:
        raise RedisConnectionError("Connection refused")


def test_ready_returns_503_when_replay_store_unreachable(shopify: FakeShopify) -> None:
    guard = RedisReplayGuard(_DownRedis(), ttl_seconds=600)
    app = create_app(make_settings(), transport=shopify.transport(), replay_guard=guard)
    resp = TestClient(app).get("/api/ready")
    assert resp.status_code == 503
