"""Prometheus scrape endpoint.

Returns every metric in the default registry in Prometheus text format.
Restrict access at the ingress in production: request rates per shop
operation reveal how the connected stores are used.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
