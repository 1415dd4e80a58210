"""Transparent, credential-injecting proxy to the Shopify Admin REST API.

    /api/shopify/proxy/orders.json?status=any
        → https://{shop}.myshopify.com/admin/api/{version}/orders.json?status=any

Method, query string and JSON body pass through unchanged; the access
token moves from the browser's X-Shopify-Access-Token header to the same
header on the upstream call.  The path keeps its percent-encoding, so an
encoded "?" or "/" stays part of the path.  No per-resource routing: any
Admin API path is reachable, unless PROXY_ALLOWED_PREFIXES narrows it.
"""

from __future__ import annotations

import logging
import posixpath
from urllib.parse import unquote

import httpx

from gateway.core.config import Settings
from gateway.core.errors import InvalidRequestError, PathNotAllowedError
from gateway.core.logging import redact
from gateway.models.proxy_request import ProxyRequest
from gateway.services import upstream
from gateway.services.error_normalizer import UPSTREAM_FAILURES, classify
from gateway.services.shopify_urls import (
    ACCESS_TOKEN_HEADER,
    USER_AGENT,
    api_url,
)

logger = logging.getLogger(__name__)

PROXY_PREFIX = "/api/shopify/proxy"
PROXY_FAILED = "Shopify API request failed"
GRAPHQL_FAILED = "GraphQL API request failed"


def strip_proxy_prefix(inbound_path: str) -> str:
    """/api/shopify/proxy/orders.json → /orders.json"""
    if inbound_path.startswith(PROXY_PREFIX):
        inbound_path = inbound_path[len(PROXY_PREFIX) :]
    if not inbound_path.startswith("/"):
        inbound_path = f"/{inbound_path}"
    return inbound_path


class ProxyForwarder:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    def check_path(self, relative_path: str) -> None:
        # Checked on the decoded form: %2E%2E and %2F must not slip past
        decoded = unquote(relative_path)
        if ".." in decoded.split("/"):
            raise InvalidRequestError("Proxy path must not contain '..' segments")

        allowed = self._settings.proxy_allowed_prefixes
        if not allowed:
            return
        normalized = posixpath.normpath(decoded)
        for prefix in allowed:
            if normalized == prefix.rstrip("/") or normalized.startswith(prefix):
                return
        logger.warning("Proxy path rejected by allow-list: %s", relative_path)
        raise PathNotAllowedError()

    async def forward(
        self,
        request: ProxyRequest,
        *,
        operation: str = "proxy",
        error: str = PROXY_FAILED,
        mirror_status: bool = True,
    ) -> httpx.Response:
        self.check_path(request.path)

        url = api_url(request.shop, self._settings.shopify_api_version, request.path)
        headers = {
            ACCESS_TOKEN_HEADER: request.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        logger.info(
            "Proxying %s %s  token=%s",
            request.method,
            url,
            redact(request.access_token),
            extra={"shop": request.shop, "operation": operation},
        )

        try:
            return await upstream.send(
                self._client,
                operation,
                request.method,
                url,
                deadline_seconds=self._settings.upstream_timeout_seconds,
                params=request.query or None,
                json=request.body if request.has_body else None,
                headers=headers,
            )
        except UPSTREAM_FAILURES as exc:
            err = classify(exc, error, mirror_status=mirror_status)
            logger.warning(
                "%s failed: %s  status=%d",
                operation,
                type(err).__name__,
                err.status_code,
                extra={"shop": request.shop, "operation": operation},
            )
            raise err from exc
