"""Demo: walk the exchange → proxy flow against a fake Shopify.

Shopify is replaced by an httpx.MockTransport, so no network access or
real credentials are needed.

Run with:
    python scripts/demo_exchange_flow.py
"""

from __future__ import annotations

import dataclasses

import httpx
from fastapi.testclient import TestClient

from gateway.core.config import SETTINGS
from gateway.main import create_app

SHOP = "demo-store"
ACCESS_TOKEN = "shpat_demo_0123456789"


def fake_shopify(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/admin/oauth/access_token":
        return httpx.Response(
            200, json={"access_token": ACCESS_TOKEN, "scope": "read_orders"}
        )
    if request.headers.get("X-Shopify-Access-Token") != ACCESS_TOKEN:
        return httpx.Response(401, json={"errors": "Invalid API key or access token"})
    if request.url.path.endswith("/orders.json"):
        return httpx.Response(200, json={"orders": [{"id": 1, "name": "#1001"}]})
    return httpx.Response(404, json={"errors": "Not Found"})


def main() -> None:
    settings = dataclasses.replace(
        SETTINGS,
        shopify_client_id=SETTINGS.shopify_client_id or "demo-client-id",
        shopify_client_secret=SETTINGS.shopify_client_secret or "demo-client-secret",
    )
    app = create_app(settings, transport=httpx.MockTransport(fake_shopify))
    client = TestClient(app)

    # ── Step 1: health ──────────────────────────────────────────────
    r = client.get("/api/health")
    print(f"1. GET  /api/health                  → {r.status_code}  {r.json()}")

    # ── Step 2: exchange without a code ─────────────────────────────
    r = client.post("/api/shopify/exchange-token", json={"shop": SHOP})
    print(f"2. POST exchange-token (no code)     → {r.status_code}  {r.json()}")

    # ── Step 3: exchange ────────────────────────────────────────────
    r = client.post(
        "/api/shopify/exchange-token", json={"code": "demo-code", "shop": SHOP}
    )
    print(f"3. POST exchange-token               → {r.status_code}  {r.json()}")

    # ── Step 4: replay the same code ────────────────────────────────
    r = client.post(
        "/api/shopify/exchange-token", json={"code": "demo-code", "shop": SHOP}
    )
    print(f"4. POST exchange-token (replay)      → {r.status_code}  {r.json()}")

    headers = {"X-Shopify-Access-Token": ACCESS_TOKEN, "X-Shop-Domain": SHOP}

    # ── Step 5: proxy without credentials ───────────────────────────
    r = client.get("/api/shopify/proxy/orders.json")
    print(f"5. GET  proxy/orders.json (no hdrs)  → {r.status_code}  {r.json()}")

    # ── Step 6: proxy ───────────────────────────────────────────────
    r = client.get(
        "/api/shopify/proxy/orders.json", params={"status": "any"}, headers=headers
    )
    print(f"6. GET  proxy/orders.json            → {r.status_code}  {r.json()}")

    # ── Step 7: proxy to a missing resource ─────────────────────────
    r = client.get("/api/shopify/proxy/nope.json", headers=headers)
    print(f"7. GET  proxy/nope.json              → {r.status_code}  {r.json()}")


if __name__ == "__main__":
    main()
