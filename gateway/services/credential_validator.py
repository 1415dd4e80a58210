from __future__ import annotations

import logging
from typing import Any

from gateway.core.errors import GatewayError, UpstreamError
from gateway.models.proxy_request import ProxyRequest
from gateway.services.error_normalizer import response_payload
from gateway.services.proxy_forwarder import ProxyForwarder

logger = logging.getLogger(__name__)

_DEFAULT_MESSAGE = "Invalid API credentials"

# Upstream status → what the user should go and check
_MESSAGES = {
    401: "Invalid access token. Please check your credentials.",
    403: "Access denied. Please check your API permissions.",
    404: "Store not found. Please check your shop domain.",
}


class CredentialValidationError(GatewayError):
    """Envelope variant carrying `success: false` for the connect screen."""

    def envelope(self) -> dict[str, Any]:
        return {"success": False, **super().envelope()}


def failure_message(upstream_status: int | None) -> str:
    if upstream_status is None:
        return _DEFAULT_MESSAGE
    return _MESSAGES.get(upstream_status, _DEFAULT_MESSAGE)


async def validate_credentials(
    forwarder: ProxyForwarder, shop: str, access_token: str
) -> dict[str, Any]:
    """Fetch shop.json with the given token; return the shop record on success."""
    try:
        response = await forwarder.forward(
            ProxyRequest(
                method="GET",
                path="/shop.json",
                access_token=access_token,
                shop=shop,
            ),
            operation="validate",
            error=_DEFAULT_MESSAGE,
        )
    except UpstreamError as exc:
        raise CredentialValidationError(
            failure_message(exc.upstream_status),
            details=exc.details,
            status_code=exc.status_code,
        ) from exc
    except GatewayError as exc:
        raise CredentialValidationError(
            _DEFAULT_MESSAGE, details=exc.details, status_code=exc.status_code
        ) from exc

    payload = response_payload(response)
    logger.info("API credentials validated  shop=%s", shop, extra={"shop": shop})
    return {
        "success": True,
        "message": "API credentials validated successfully",
        "shop": payload.get("shop") if isinstance(payload, dict) else None,
    }
