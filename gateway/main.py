from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway.api.credentials import router as credentials_router
from gateway.api.health import router as health_router
from gateway.api.metrics_endpoint import router as metrics_router
from gateway.api.oauth import router as oauth_router
from gateway.api.proxy import router as proxy_router
from gateway.api.recent_data import router as recent_data_router
from gateway.core.config import SETTINGS, Settings
from gateway.core.errors import install_error_handlers
from gateway.core.logging import setup_logging
from gateway.db.redis import create_redis_client, lifespan_redis
from gateway.middleware.metrics import MetricsMiddleware
from gateway.middleware.request_context import (
    RequestContextMiddleware,
    install_request_context_filter,
)
from gateway.services.proxy_forwarder import ProxyForwarder
from gateway.services.recent_data import RecentDataFetcher
from gateway.services.replay_guard import ReplayGuard, build_replay_guard
from gateway.services.shopify_urls import ACCESS_TOKEN_HEADER, SHOP_DOMAIN_HEADER
from gateway.services.token_exchanger import TokenExchanger

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
install_request_context_filter()

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = [
    "Content-Type",
    "Authorization",
    "X-Request-ID",
    ACCESS_TOKEN_HEADER,
    SHOP_DOMAIN_HEADER,
]


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    replay_guard: ReplayGuard | None = None,
) -> FastAPI:
    """Build one gateway instance with its own client and replay guard.

    `transport` and `replay_guard` exist for tests: a mock transport stands
    in for Shopify, and a guard can be shared between two apps to model
    replicas behind a common store.
    """
    settings = settings or SETTINGS

    redis_client = None
    if replay_guard is None:
        redis_client = create_redis_client(settings.redis_url)
        replay_guard = build_replay_guard(redis_client, settings.replay_ttl_seconds)
    guard = replay_guard

    # One timeout for every outbound call: exchange, proxy, graphql, validate.
    http_client = httpx.AsyncClient(
        timeout=settings.upstream_timeout_seconds,
        transport=transport,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        async with lifespan_redis(redis_client):
            try:
                yield
            finally:
                await http_client.aclose()

    app = FastAPI(
        title="shopify-gateway",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
    )

    app.state.settings = settings
    app.state.replay_guard = guard
    app.state.http_client = http_client
    app.state.token_exchanger = TokenExchanger(http_client, guard, settings)
    proxy_forwarder = ProxyForwarder(http_client, settings)
    app.state.proxy_forwarder = proxy_forwarder
    app.state.recent_data_fetcher = RecentDataFetcher(
        proxy_forwarder, page_delay_seconds=settings.pagination_delay_seconds
    )

    install_error_handlers(app)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(oauth_router)
    app.include_router(proxy_router)
    app.include_router(credentials_router)
    app.include_router(recent_data_router)

    known_paths = {
        path
        for path in (getattr(route, "path", None) for route in app.routes)
        if path and "{" not in path
    }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        expose_headers=["X-Request-ID", "Link"],
    )

    # Middleware execution order: last-added runs first (outermost layer).
    # RequestContext (outermost) → Metrics → CORS → route handler
    app.add_middleware(MetricsMiddleware, known_paths=known_paths)
    app.add_middleware(RequestContextMiddleware)

    if not settings.has_client_credentials:
        logger.warning(
            "SHOPIFY_CLIENT_ID/SHOPIFY_CLIENT_SECRET not set — token exchange will fail"
        )
    logger.info(
        "shopify-gateway configured  env=%s api_version=%s timeout=%.1fs replay_ttl=%ds "
        "replay_store=%s origins=%s",
        settings.app_env,
        settings.shopify_api_version,
        settings.upstream_timeout_seconds,
        settings.replay_ttl_seconds,
        type(guard).__name__,
        ",".join(settings.cors_origins),
    )
    return app


app = create_app()
