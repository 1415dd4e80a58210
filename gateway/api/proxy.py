from __future__ import annotations

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from gateway.api.body import read_json_body
from gateway.api.dependencies import ProxyForwarderDep, ShopCredentialsDep
from gateway.models.proxy_request import ProxyRequest
from gateway.services.error_normalizer import response_payload
from gateway.services.proxy_forwarder import (
    GRAPHQL_FAILED,
    PROXY_PREFIX,
    strip_proxy_prefix,
)

# ---------------------------------------------------------------------------
# Authenticated pass-through to the Shopify Admin API
#
#   ANY  /api/shopify/proxy/{path}   → {api base}/{path}
#   POST /api/shopify/graphql        → {api base}/graphql.json
#
# Both require X-Shopify-Access-Token and X-Shop-Domain; a missing header
# is a 401 before anything leaves this process.
# ---------------------------------------------------------------------------

router = APIRouter(prefix="/api/shopify", tags=["proxy"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def _inbound_path(request: Request) -> str:
    """The request path as sent, percent-encoding intact."""
    # scope["path"] is already decoded; raw_path is what the client sent
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1").split("?", 1)[0]
        # An encoded prefix still routed here; fall back to the decoded path
        if path.startswith(f"{PROXY_PREFIX}/"):
            return path
    return request.url.path


def _relay(upstream: httpx.Response) -> Response:
    """Return Shopify's status and body to the browser, shape unchanged."""
    # Shopify paginates REST lists through the Link header
    link = upstream.headers.get("link")
    headers = {"Link": link} if link else None

    payload = response_payload(upstream)
    if payload is None:
        return Response(status_code=upstream.status_code, headers=headers)
    if isinstance(payload, str):
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
            headers=headers,
        )
    return JSONResponse(
        content=payload, status_code=upstream.status_code, headers=headers
    )


@router.api_route("/proxy/{path:path}", methods=PROXY_METHODS)
async def proxy(
    request: Request,
    credentials: ShopCredentialsDep,
    forwarder: ProxyForwarderDep,
) -> Response:
    body = await read_json_body(request)
    upstream = await forwarder.forward(
        ProxyRequest(
            method=request.method,
            path=strip_proxy_prefix(_inbound_path(request)),
            access_token=credentials.access_token,
            shop=credentials.shop,
            query=list(request.query_params.multi_items()),
            body=body,
        )
    )
    return _relay(upstream)


@router.post("/graphql")
async def graphql(
    request: Request,
    credentials: ShopCredentialsDep,
    forwarder: ProxyForwarderDep,
) -> Response:
    body = await read_json_body(request)
    upstream = await forwarder.forward(
        ProxyRequest(
            method="POST",
            path="/graphql.json",
            access_token=credentials.access_token,
            shop=credentials.shop,
            body=body,
        ),
        operation="graphql",
        error=GRAPHQL_FAILED,
    )
    return _relay(upstream)
