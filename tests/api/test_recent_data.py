"""GET /api/shopify/fresh-{orders,products,customers}.

Pages are served by a fake that hands out a rel="next" cursor until it
runs out, so the tests can see both stopping conditions: no next link,
and the page cap.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from tests.conftest import TEST_ACCESS_TOKEN, FakeShopify

PARAMS = {"shop": "teststore", "accessToken": TEST_ACCESS_TOKEN}


def _paged(resource: str, pages: int):
    """Responder serving *pages* pages of one record each, linked by page_info."""

    def _respond(request: httpx.Request) -> httpx.Response:
        cursor = request.url.params.get("page_info")
        page = int(cursor.removeprefix("p")) if cursor else 1
        headers = {}
        if page < pages:
            headers["Link"] = (
                f"<https://teststore.myshopify.com/admin/api/2024-07/{resource}.json"
                f'?limit=250&page_info=p{page + 1}>; rel="next"'
            )
        if page > 1:
            previous = (
                f"<https://teststore.myshopify.com/admin/api/2024-07/{resource}.json"
                f'?limit=250&page_info=p{page - 1}>; rel="previous"'
            )
            headers["Link"] = ", ".join(filter(None, [previous, headers.get("Link")]))
        return httpx.Response(200, json={resource: [{"id": page}]}, headers=headers)

    return _respond


# ---- pagination ----


def test_follows_next_links_until_the_last_page(
    client: TestClient, shopify: FakeShopify
) -> None:
    shopify.respond_with(_paged("orders", 3))
    resp = client.get("/api/shopify/fresh-orders", params=PARAMS)

    assert resp.status_code == 200
    assert resp.json() == {"orders": [{"id": 1}, {"id": 2}, {"id": 3}]}
    assert shopify.call_count == 3


def test_stops_at_limit_pages(client: TestClient, shopify: FakeShopify) -> None:
    shopify.respond_with(_paged("orders", 10))
    resp = client.get("/api/shopify/fresh-orders", params={**PARAMS, "limit_pages": "2"})

    assert resp.json() == {"orders": [{"id": 1}, {"id": 2}]}
    assert shopify.call_count == 2


@pytest.mark.parametrize(
    ("resource", "default_pages"), [("orders", 5), ("products", 3), ("customers", 3)]
)
def test_default_page_limit(
    client: TestClient, shopify: FakeShopify, resource: str, default_pages: int
) -> None:
    shopify.respond_with(_paged(resource, 10))
    resp = client.get(f"/api/shopify/fresh-{resource}", params=PARAMS)

    assert resp.status_code == 200
    assert len(resp.json()[resource]) == default_pages
    assert shopify.call_count == default_pages


@pytest.mark.parametrize("limit_pages", ["0", "-3", "many", ""])
def test_unusable_limit_pages_falls_back_to_default(
    client: TestClient, shopify: FakeShopify, limit_pages: str
) -> None:
    shopify.respond_with(_paged("products", 10))
    client.get("/api/shopify/fresh-products", params={**PARAMS, "limit_pages": limit_pages})
    assert shopify.call_count == 3


def test_single_page_without_link_header(client: TestClient, shopify: FakeShopify) -> None:
    shopify.respond(200, json={"customers": [{"id": 7}]})
    resp = client.get("/api/shopify/fresh-customers", params=PARAMS)
    assert resp.json() == {"customers": [{"id": 7}]}
    assert shopify.call_count == 1


def test_previous_link_alone_does_not_continue(
    client: TestClient, shopify: FakeShopify
) -> None:
    link = (
        "<https://teststore.myshopify.com/admin/api/2024-07/orders.json"
        '?limit=250&page_info=p0>; rel="previous"'
    )
    shopify.respond(200, json={"orders": [{"id": 1}]}, headers={"Link": link})
    client.get("/api/shopify/fresh-orders", params=PARAMS)
    assert shopify.call_count == 1


# ---- what gets sent ----


def test_first_orders_page_filters_and_sorts(
    client: TestClient, shopify: FakeShopify
) -> None:
    shopify.respond_with(_paged("orders", 2))
    client.get("/api/shopify/fresh-orders", params=PARAMS)

    first, second = shopify.requests
    assert first.url.path == "/admin/api/2024-07/orders.json"
    assert dict(first.url.params) == {
        "status": "any",
        "limit": "250",
        "order": "created_at desc",
    }
    assert first.headers["X-Shopify-Access-Token"] == TEST_ACCESS_TOKEN
    # Shopify allows only limit alongside page_info
    assert dict(second.url.params) == {"limit": "250", "page_info": "p2"}


def test_products_first_page_sends_only_limit(
    client: TestClient, shopify: FakeShopify
) -> None:
    shopify.respond_with(_paged("products", 1))
    client.get("/api/shopify/fresh-products", params=PARAMS)
    assert shopify.last.url.path == "/admin/api/2024-07/products.json"
    assert dict(shopify.last.url.params) == {"limit": "250"}


def test_full_shop_domain_is_accepted(client: TestClient, shopify: FakeShopify) -> None:
    shopify.respond(200, json={"orders": []})
    client.get(
        "/api/shopify/fresh-orders",
        params={"shop": "teststore.myshopify.com", "accessToken": TEST_ACCESS_TOKEN},
    )
    assert shopify.last.url.host == "teststore.myshopify.com"


# ---- failures ----


@pytest.mark.parametrize(
    "params",
    [{}, {"shop": "teststore"}, {"accessToken": "tok"}, {"shop": " ", "accessToken": "tok"}],
)
def test_missing_params_return_400_without_upstream_call(
    client: TestClient, shopify: FakeShopify, params: dict
) -> None:
    resp = client.get("/api/shopify/fresh-orders", params=params)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required parameters: shop and accessToken"}
    assert shopify.call_count == 0


def test_upstream_error_is_reported_as_500(client: TestClient, shopify: FakeShopify) -> None:
    shopify.respond(401, json={"errors": "Invalid API key or access token"})
    resp = client.get("/api/shopify/fresh-orders", params=PARAMS)
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Failed to fetch fresh orders",
        "details": {"errors": "Invalid API key or access token"},
    }


def test_failure_on_a_later_page_discards_earlier_pages(
    client: TestClient, shopify: FakeShopify
) -> None:
    paged = _paged("products", 5)

    def _fail_third(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("page_info") == "p3":
            return httpx.Response(429, json={"errors": "Exceeded 2 calls per second"})
        return paged(request)

    shopify.respond_with(_fail_third)
    resp = client.get("/api/shopify/fresh-products", params=PARAMS)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to fetch fresh products"
    assert "products" not in resp.json()
    assert shopify.call_count == 3


def test_transport_failure_is_reported_as_500(
    client: TestClient, shopify: FakeShopify
) -> None:
    shopify.fail_with(httpx.ConnectError, "connection refused")
    resp = client.get("/api/shopify/fresh-customers", params=PARAMS)
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Failed to fetch fresh customers",
        "details": "connection refused",
    }


def test_invalid_shop_returns_400_without_upstream_call(
    client: TestClient, shopify: FakeShopify
) -> None:
    resp = client.get(
        "/api/shopify/fresh-orders",
        params={"shop": "attacker.example/x?.myshopify.com", "accessToken": "tok"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid shop domain"}
    assert shopify.call_count == 0


def test_access_token_never_echoed_in_error(
    client: TestClient, shopify: FakeShopify
) -> None:
    shopify.fail_with(httpx.ConnectError, "connection refused")
    resp = client.get("/api/shopify/fresh-orders", params=PARAMS)
    assert TEST_ACCESS_TOKEN not in resp.text
