from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request

from gateway.api.body import parse_body, read_json_body
from gateway.api.dependencies import TokenExchangerDep
from gateway.core.errors import InvalidRequestError
from gateway.models.authorization_code import AuthorizationCode
from gateway.models.requests import ExchangeTokenRequest

# ---------------------------------------------------------------------------
# OAuth code exchange on behalf of the browser
#
#   POST /api/shopify/exchange-token   {code, shop, state?}
#
# The browser got `code` from Shopify's redirect; we add the client secret
# and exchange it.  Validation happens here, before the ReplayGuard is
# touched and before any outbound call.
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shopify", tags=["oauth"])

MISSING_PARAMS = "Missing required parameters: code and shop"


@router.post("/exchange-token")
async def exchange_token(request: Request, exchanger: TokenExchangerDep) -> Any:
    # Wrong types (e.g. code as a number) count as missing
    body = parse_body(ExchangeTokenRequest, await read_json_body(request))

    if not body.is_complete:
        logger.warning(
            "Token exchange rejected: code=%s shop=%s",
            "present" if body.code else "missing",
            body.shop or "missing",
        )
        raise InvalidRequestError(MISSING_PARAMS)

    return await exchanger.exchange(
        AuthorizationCode(
            code=body.code.strip(),  # type: ignore[union-attr]
            shop=body.shop.strip(),  # type: ignore[union-attr]
            state=None if body.state is None else str(body.state),
        )
    )
