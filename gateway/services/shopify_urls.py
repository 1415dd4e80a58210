from __future__ import annotations

import re

from gateway.core.errors import InvalidRequestError

SHOPIFY_DOMAIN_SUFFIX = ".myshopify.com"

# Headers the gateway reads from the browser and writes to Shopify
ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
SHOP_DOMAIN_HEADER = "X-Shop-Domain"

USER_AGENT = "Shopify-Connect-Gateway/1.0"

INVALID_SHOP = "Invalid shop domain"

# One DNS label directly under myshopify.com, nothing else: the client
# secret and access tokens are only ever sent to a Shopify host.
_SHOP_HOST_RE = re.compile(r"[a-z0-9][a-z0-9-]*\.myshopify\.com", re.IGNORECASE)


# "teststore" and "teststore.myshopify.com" both name the same tenant.
def shop_host(shop: str) -> str:
    host = shop if SHOPIFY_DOMAIN_SUFFIX in shop else f"{shop}{SHOPIFY_DOMAIN_SUFFIX}"
    if not _SHOP_HOST_RE.fullmatch(host):
        raise InvalidRequestError(INVALID_SHOP)
    return host


def token_url(shop: str) -> str:
    return f"https://{shop_host(shop)}/admin/oauth/access_token"


def api_base_url(shop: str, api_version: str) -> str:
    return f"https://{shop_host(shop)}/admin/api/{api_version}"


def api_url(shop: str, api_version: str, relative_path: str) -> str:
    if relative_path and not relative_path.startswith("/"):
        relative_path = f"/{relative_path}"
    return f"{api_base_url(shop, api_version)}{relative_path}"
