from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from gateway.core.metrics import UPSTREAM_DURATION, UPSTREAM_REQUESTS

logger = logging.getLogger(__name__)


async def send(
    client: httpx.AsyncClient,
    operation: str,
    method: str,
    url: str,
    *,
    deadline_seconds: float,
    **kwargs: Any,
) -> httpx.Response:
    """Issue one outbound call and record its outcome.

    The client's own timeout bounds each phase (connect, write, read);
    `deadline_seconds` bounds the call as a whole, so an upstream that
    trickles its body cannot hold the request open past it.

    Raises httpx.HTTPStatusError for non-2xx answers; transport failures
    propagate as raised by httpx, and an exceeded deadline as
    httpx.TimeoutException.  Never retries.
    """
    start = time.monotonic()
    outcome = "transport_error"
    try:
        try:
            async with asyncio.timeout(deadline_seconds):
                response = await client.request(method, url, **kwargs)
        except TimeoutError:
            raise httpx.TimeoutException(
                f"Upstream request exceeded {deadline_seconds:g}s"
            ) from None
        outcome = "success" if response.is_success else "http_error"
        logger.debug(
            "upstream %s %s → %d",
            operation,
            method,
            response.status_code,
            extra={"operation": operation, "upstream_status": response.status_code},
        )
        response.raise_for_status()
        return response
    finally:
        UPSTREAM_DURATION.labels(operation=operation).observe(time.monotonic() - start)
        UPSTREAM_REQUESTS.labels(operation=operation, outcome=outcome).inc()
