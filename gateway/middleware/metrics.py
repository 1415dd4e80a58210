"""Prometheus metrics middleware — instruments every HTTP request.

For each request:
  1. Increments ACTIVE_REQUESTS (decrement on completion)
  2. Times the request
  3. Increments REQUEST_COUNT by method/endpoint/status and observes
     REQUEST_DURATION

ENDPOINT LABELS
-----------------
The proxy accepts any path, and scanners hit any path, so raw URL paths
would make label cardinality unbounded.  Every proxy path is reported as
"/api/shopify/proxy/*"; any path that is not one of the app's fixed
routes is reported as "unmatched".
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gateway.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION
from gateway.services.proxy_forwarder import PROXY_PREFIX

PROXY_ENDPOINT_LABEL = f"{PROXY_PREFIX}/*"
UNMATCHED_ENDPOINT_LABEL = "unmatched"


def endpoint_label(path: str, known_paths: frozenset[str]) -> str:
    if path.startswith(f"{PROXY_PREFIX}/"):
        return PROXY_ENDPOINT_LABEL
    if path in known_paths:
        return path
    return UNMATCHED_ENDPOINT_LABEL


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for every HTTP request."""

    def __init__(self, app: ASGIApp, known_paths: Iterable[str] = ()) -> None:
        super().__init__(app)
        self._known_paths = frozenset(known_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Prometheus scrapes should not inflate the request count
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code: str | None = None

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        except Exception:
            status_code = "500"
            raise
        finally:
            duration = time.monotonic() - start
            ACTIVE_REQUESTS.dec()
            endpoint = endpoint_label(request.url.path, self._known_paths)
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code if status_code is not None else "500",
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

        return response
