"""Error taxonomy and the handlers that turn it into HTTP responses.

Every failure the gateway reports leaves as the same envelope:

    {"error": "<fixed literal>"}                         validation failures
    {"error": "<fixed literal>", "details": <payload>}  upstream failures

Handlers raise a GatewayError subclass; install_error_handlers() renders
it.  Nothing here retries — each error is terminal for its request.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND = "Route not found"


class GatewayError(Exception):
    """Base class: an HTTP status plus the envelope body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def __init__(
        self,
        error: str | None = None,
        *,
        details: Any = None,
        status_code: int | None = None,
    ) -> None:
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.error)

    def envelope(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidRequestError(GatewayError):
    """Required input missing, blank, or not JSON."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid request"


class MissingCredentialsError(GatewayError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Missing required headers: X-Shopify-Access-Token and X-Shop-Domain"


class PathNotAllowedError(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Proxy path not allowed"


class ReplayError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Authorization code has already been used"


class ConfigurationError(GatewayError):
    """Server-side configuration needed for the call is absent."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(GatewayError):
    """Shopify answered with a non-2xx status."""

    def __init__(
        self,
        error: str,
        *,
        details: Any = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(error, details=details, status_code=status_code)
        self.upstream_status = upstream_status


class TransportError(GatewayError):
    """DNS, connect, read or timeout failure — Shopify never answered."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def install_error_handlers(app: FastAPI) -> None:
    """Register the envelope renderers on *app*."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(
        request: Request, exc: GatewayError
    ) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "%s %s failed: %s → %d",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.envelope())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # Unknown path and known path with the wrong method are both
        # "no such route" from the caller's point of view.
        if exc.status_code in (
            status.HTTP_404_NOT_FOUND,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        ):
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": ROUTE_NOT_FOUND},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": InvalidRequestError.error},
        )
