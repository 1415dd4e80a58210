"""Redis connection management.

Redis is optional.  With a single gateway process the in-memory replay
store is enough; with several replicas behind a load balancer, two
replicas could each accept the same authorization code once.  Pointing
REDIS_URL at a shared instance closes that gap: every replica claims
codes in the same keyspace, and Redis TTLs expire them for free.

When REDIS_URL is unset, create_redis_client() returns None and every
consumer falls back to its in-memory implementation.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


def create_redis_client(url: str | None) -> aioredis.Redis | None:  # type: ignore[type-arg]
    if not url:
        return None
    return aioredis.from_url(
        url,
        decode_responses=True,
        max_connections=20,
    )


@asynccontextmanager
async def lifespan_redis(
    client: aioredis.Redis | None,  # type: ignore[type-arg]
) -> AsyncGenerator[None, None]:
    """Verify the connection on startup and release the pool on shutdown."""
    if client is None:
        logger.info("No REDIS_URL configured — replay guard is in-memory (per process)")
        yield
        return

    try:
        await client.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected — replay guard is shared")
    except Exception:
        # Start anyway; /api/ready reports 503 until Redis is reachable and
        # exchanges fail with a 500 rather than silently skipping the check.
        logger.exception("Redis connection failed on startup")

    try:
        yield
    finally:
        await client.aclose()
        logger.info("Redis connection pool closed")
