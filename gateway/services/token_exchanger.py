"""Authorization-code → access-token exchange against Shopify.

The browser receives `code` from Shopify's OAuth redirect but must not
hold the app's client secret, so it hands the code to us and we call:

    POST https://{shop}.myshopify.com/admin/oauth/access_token
    {"client_id": ..., "client_secret": ..., "code": ...}

ORDERING
----------
  1. claim the code in the ReplayGuard   (reuse → ReplayError, 400)
  2. call Shopify                         (failure → 500 envelope)
  3. return Shopify's payload verbatim   (access_token, scope)

The code is claimed BEFORE the network call.  If Shopify then fails
transiently, the code stays burned and the user restarts the OAuth flow.
TRADE-OFF: replay safety over availability — claiming after success
would leave a window in which two concurrent requests both reach Shopify.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from gateway.core.config import Settings
from gateway.core.errors import ConfigurationError, ReplayError, TransportError
from gateway.core.metrics import REPLAY_REJECTIONS
from gateway.models.authorization_code import AuthorizationCode
from gateway.services import upstream
from gateway.services.error_normalizer import (
    UPSTREAM_FAILURES,
    classify,
    response_payload,
)
from gateway.services.replay_guard import ReplayGuard, ReplayStoreError, code_digest
from gateway.services.shopify_urls import USER_AGENT, token_url

logger = logging.getLogger(__name__)

EXCHANGE_FAILED = "Token exchange failed"


class TokenExchanger:
    def __init__(
        self,
        client: httpx.AsyncClient,
        replay_guard: ReplayGuard,
        settings: Settings,
    ) -> None:
        self._client = client
        self._replay_guard = replay_guard
        self._settings = settings

    async def exchange(self, auth_code: AuthorizationCode) -> Any:
        code_ref = code_digest(auth_code.code)[:12]
        logger.info(
            "TOKEN EXCHANGE step 1: request  shop=%s code=present state=%s",
            auth_code.shop,
            "present" if auth_code.state else "missing",
            extra={"shop": auth_code.shop, "operation": "exchange"},
        )

        # An unusable shop is a 400 before the code is claimed
        url = token_url(auth_code.shop)

        if not self._settings.has_client_credentials:
            logger.error("TOKEN EXCHANGE FAIL: SHOPIFY_CLIENT_ID/SECRET not configured")
            raise ConfigurationError(
                EXCHANGE_FAILED, details="Shopify client credentials are not configured"
            )

        # --- Single-use enforcement ------------------------------------------
        try:
            first_use = await self._replay_guard.claim(auth_code.code)
        except ReplayStoreError as exc:
            logger.error("TOKEN EXCHANGE FAIL: replay store unavailable: %s", exc)
            raise TransportError(
                EXCHANGE_FAILED, details="Replay store unavailable"
            ) from exc
        if not first_use:
            REPLAY_REJECTIONS.inc()
            logger.warning(
                "TOKEN EXCHANGE FAIL: authorization code already used (hash=%s…)",
                code_ref,
            )
            raise ReplayError()
        logger.info("TOKEN EXCHANGE step 2: code claimed (hash=%s…)  ✓", code_ref)

        # --- Call Shopify ------------------------------------------------------
        logger.info("TOKEN EXCHANGE step 3: POST %s", url)
        try:
            response = await upstream.send(
                self._client,
                "exchange",
                "POST",
                url,
                deadline_seconds=self._settings.upstream_timeout_seconds,
                json={
                    "client_id": self._settings.shopify_client_id,
                    "client_secret": self._settings.shopify_client_secret,
                    "code": auth_code.code,
                },
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            )
        except UPSTREAM_FAILURES as exc:
            err = classify(exc, EXCHANGE_FAILED, mirror_status=False)
            logger.warning(
                "TOKEN EXCHANGE FAIL: %s  upstream_status=%s",
                type(err).__name__,
                getattr(err, "upstream_status", None),
                extra={"shop": auth_code.shop, "operation": "exchange"},
            )
            raise err from exc

        logger.info("TOKEN EXCHANGE step 4: Shopify issued a token  ✓")
        return response_payload(response)
