from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from gateway.api.body import parse_body, read_json_body
from gateway.api.dependencies import ProxyForwarderDep
from gateway.core.logging import redact
from gateway.models.requests import ValidateCredentialsRequest
from gateway.services.credential_validator import validate_credentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shopify", tags=["credentials"])

MISSING_PARAMS = "Missing required parameters: shop and accessToken"


@router.post("/validate-credentials", response_model=None)
async def validate(request: Request, forwarder: ProxyForwarderDep) -> Any:
    """Check a manually entered (shop, access token) pair against shop.json."""
    body = parse_body(ValidateCredentialsRequest, await read_json_body(request))

    logger.info(
        "Credential validation request  shop=%s token=%s",
        body.shop or "missing",
        redact(body.access_token),
    )
    if not body.is_complete:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": MISSING_PARAMS},
        )

    return await validate_credentials(
        forwarder,
        shop=body.shop.strip(),  # type: ignore[union-attr]
        access_token=body.access_token.strip(),  # type: ignore[union-attr]
    )
