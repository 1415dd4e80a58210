from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_API_VERSION_RE = re.compile(r"^(\d{4}-\d{2}|unstable)$")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    shopify_client_id: str
    shopify_client_secret: str
    shopify_api_version: str
    upstream_timeout_seconds: float
    replay_ttl_seconds: int
    pagination_delay_seconds: float
    cors_origins: tuple[str, ...]
    proxy_allowed_prefixes: tuple[str, ...]
    redis_url: str | None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.shopify_client_id and self.shopify_client_secret)

    def __repr__(self) -> str:
        # The client secret must never end up in a log line or traceback.
        return (
            f"Settings(app_env={self.app_env!r}, log_level={self.log_level!r}, "
            f"port={self.port}, shopify_api_version={self.shopify_api_version!r}, "
            f"upstream_timeout_seconds={self.upstream_timeout_seconds}, "
            f"replay_ttl_seconds={self.replay_ttl_seconds}, "
            f"redis={'on' if self.redis_url else 'off'})"
        )


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "3001")
    api_version = _getenv("SHOPIFY_API_VERSION", "2024-07")
    timeout_raw = _getenv("UPSTREAM_TIMEOUT_SECONDS", "10")
    replay_ttl_raw = _getenv("REPLAY_TTL_SECONDS", "600")
    page_delay_raw = _getenv("PAGINATION_DELAY_SECONDS", "0.5")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0", "yes", "no"):
        raise ValueError(f"LOG_JSON must be a boolean (got {log_json_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    if not _API_VERSION_RE.match(api_version):
        raise ValueError(
            f"SHOPIFY_API_VERSION must be YYYY-MM or 'unstable' (got {api_version!r})"
        )

    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"UPSTREAM_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if timeout <= 0:
        raise ValueError(f"UPSTREAM_TIMEOUT_SECONDS must be > 0 (got {timeout_raw!r})")

    try:
        replay_ttl = int(replay_ttl_raw)
    except ValueError:
        raise ValueError(
            f"REPLAY_TTL_SECONDS must be an integer (got {replay_ttl_raw!r})"
        ) from None
    if replay_ttl <= 0:
        raise ValueError(f"REPLAY_TTL_SECONDS must be > 0 (got {replay_ttl_raw!r})")

    try:
        page_delay = float(page_delay_raw)
    except ValueError:
        raise ValueError(
            f"PAGINATION_DELAY_SECONDS must be a number (got {page_delay_raw!r})"
        ) from None
    if page_delay < 0:
        raise ValueError(
            f"PAGINATION_DELAY_SECONDS must be >= 0 (got {page_delay_raw!r})"
        )

    prefixes = _split_csv(_getenv("PROXY_ALLOWED_PREFIXES", ""))
    for prefix in prefixes:
        if not prefix.startswith("/"):
            raise ValueError(
                f"PROXY_ALLOWED_PREFIXES entries must start with '/' (got {prefix!r})"
            )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1", "yes"),
        port=port,
        shopify_client_id=_getenv("SHOPIFY_CLIENT_ID", ""),
        shopify_client_secret=_getenv("SHOPIFY_CLIENT_SECRET", ""),
        shopify_api_version=api_version,
        upstream_timeout_seconds=timeout,
        replay_ttl_seconds=replay_ttl,
        pagination_delay_seconds=page_delay,
        cors_origins=_split_csv(_getenv("CORS_ORIGINS", "http://localhost:5173")),
        proxy_allowed_prefixes=prefixes,
        redis_url=_getenv("REDIS_URL", "") or None,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
