"""Health and readiness endpoints.

  /api/health (liveness):  "is the process up?"  Always 200 while it can
                            answer; the frontend polls it before starting
                            the OAuth flow.
  /api/ready (readiness):  "can this instance exchange codes right now?"
                            503 when a configured Redis replay store is
                            unreachable — exchanges would fail with 500.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from gateway.api.dependencies import ReplayGuardDep

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "OK", "message": "Shopify gateway server is running"}


@router.get("/ready")
async def ready(replay_guard: ReplayGuardDep) -> Response:
    if await replay_guard.ping():
        return Response(status_code=status.HTTP_200_OK)
    return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
