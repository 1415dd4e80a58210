"""FastAPI dependencies: component lookup and credential-header extraction.

Components (httpx client, replay guard, services) are owned by the app
instance — create_app() builds them and stores them on app.state — and
handlers receive them through Depends().  Tests build their own app with
a mock transport and a fresh replay guard; nothing is shared between
app instances.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from gateway.core.config import Settings
from gateway.core.errors import MissingCredentialsError
from gateway.core.logging import redact
from gateway.services.proxy_forwarder import ProxyForwarder
from gateway.services.recent_data import RecentDataFetcher
from gateway.services.replay_guard import ReplayGuard
from gateway.services.token_exchanger import TokenExchanger

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_replay_guard(request: Request) -> ReplayGuard:
    return request.app.state.replay_guard


def get_token_exchanger(request: Request) -> TokenExchanger:
    return request.app.state.token_exchanger


def get_proxy_forwarder(request: Request) -> ProxyForwarder:
    return request.app.state.proxy_forwarder


def get_recent_data_fetcher(request: Request) -> RecentDataFetcher:
    return request.app.state.recent_data_fetcher


@dataclass(frozen=True, slots=True, repr=False)
class ShopCredentials:
    """The (access token, shop) pair for one proxied call."""

    access_token: str
    shop: str

    def __repr__(self) -> str:
        return (
            f"ShopCredentials(shop={self.shop!r}, "
            f"access_token={redact(self.access_token)!r})"
        )


def require_shop_credentials(
    x_shopify_access_token: Annotated[str | None, Header()] = None,
    x_shop_domain: Annotated[str | None, Header()] = None,
) -> ShopCredentials:
    """Both credential headers, present and non-blank, or 401 before any I/O."""
    access_token = (x_shopify_access_token or "").strip()
    shop = (x_shop_domain or "").strip()
    logger.debug(
        "Proxy credential headers  token=%s shop=%s",
        redact(access_token),
        shop or "missing",
    )
    if not access_token or not shop:
        raise MissingCredentialsError()
    return ShopCredentials(access_token=access_token, shop=shop)


ShopCredentialsDep = Annotated[ShopCredentials, Depends(require_shop_credentials)]
TokenExchangerDep = Annotated[TokenExchanger, Depends(get_token_exchanger)]
ProxyForwarderDep = Annotated[ProxyForwarder, Depends(get_proxy_forwarder)]
RecentDataFetcherDep = Annotated[
    RecentDataFetcher, Depends(get_recent_data_fetcher)
]
ReplayGuardDep = Annotated[ReplayGuard, Depends(get_replay_guard)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
