from __future__ import annotations

import pytest

from gateway.core.errors import InvalidRequestError
from gateway.services.shopify_urls import api_base_url, api_url, shop_host, token_url


@pytest.mark.parametrize(
    ("shop", "expected"),
    [
        ("teststore", "teststore.myshopify.com"),
        ("teststore.myshopify.com", "teststore.myshopify.com"),
        ("Test-Store-2", "Test-Store-2.myshopify.com"),
    ],
)
def test_shop_host_appends_suffix_once(shop: str, expected: str) -> None:
    assert shop_host(shop) == expected


def test_token_url() -> None:
    assert token_url("teststore") == "https://teststore.myshopify.com/admin/oauth/access_token"


def test_api_base_url() -> None:
    assert (
        api_base_url("teststore", "2024-07")
        == "https://teststore.myshopify.com/admin/api/2024-07"
    )


def test_api_url_adds_missing_slash() -> None:
    assert api_url("teststore", "2024-07", "orders.json") == api_url(
        "teststore", "2024-07", "/orders.json"
    )
    assert (
        api_url("teststore", "2024-07", "/orders.json")
        == "https://teststore.myshopify.com/admin/api/2024-07/orders.json"
    )


@pytest.mark.parametrize(
    "shop",
    [
        "attacker.example/x?.myshopify.com",
        "attacker.example/.myshopify.com",
        "evil.com#.myshopify.com",
        "a.b.myshopify.com",
        "teststore.myshopify.com.evil.com",
        "-teststore",
        "test store",
        "teststore:8443",
        "teststore.myshopify.com\n",
        "",
    ],
)
def test_shop_host_rejects_anything_but_a_shop_subdomain(shop: str) -> None:
    with pytest.raises(InvalidRequestError, match="Invalid shop domain"):
        shop_host(shop)


def test_urls_never_leave_myshopify() -> None:
    with pytest.raises(InvalidRequestError):
        token_url("attacker.example/x?.myshopify.com")
    with pytest.raises(InvalidRequestError):
        api_url("attacker.example/x?.myshopify.com", "2024-07", "/shop.json")
