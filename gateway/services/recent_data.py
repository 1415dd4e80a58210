"""Capped, Link-paginated reads of a shop's most recent records.

    GET /api/shopify/fresh-orders?shop=..&accessToken=..&limit_pages=5

Shopify REST lists use cursor pagination: each page's Link header carries
a rel="next" URL whose page_info parameter fetches the following page.
Once page_info is sent, Shopify accepts no filter but `limit`, so filters
(status, order) go on the first page only.

The walk stops at the first page without a next link, or after
`max_pages` pages, whichever comes first.  Pages are spaced by
PAGINATION_DELAY_SECONDS to stay under Shopify's REST call-rate limit.
Any failing page fails the whole read; partial results are discarded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from gateway.core.logging import redact
from gateway.models.proxy_request import ProxyRequest
from gateway.services.error_normalizer import response_payload
from gateway.services.proxy_forwarder import ProxyForwarder

logger = logging.getLogger(__name__)

PAGE_SIZE = "250"
# Ceiling on caller-supplied limit_pages
MAX_PAGES = 50


@dataclass(frozen=True)
class RecentResource:
    name: str
    default_pages: int
    first_page_query: tuple[tuple[str, str], ...] = (("limit", PAGE_SIZE),)

    @property
    def path(self) -> str:
        return f"/{self.name}.json"

    @property
    def failure(self) -> str:
        return f"Failed to fetch fresh {self.name}"


RECENT_RESOURCES = {
    "orders": RecentResource(
        "orders",
        default_pages=5,
        first_page_query=(
            ("status", "any"),
            ("limit", PAGE_SIZE),
            ("order", "created_at desc"),
        ),
    ),
    "products": RecentResource("products", default_pages=3),
    "customers": RecentResource("customers", default_pages=3),
}


def page_limit(raw: str | None, default: int) -> int:
    """limit_pages as given, the default when absent or not a positive int."""
    try:
        pages = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if pages <= 0:
        return default
    return min(pages, MAX_PAGES)


def next_page_info(response: httpx.Response) -> str | None:
    """page_info cursor of the rel="next" Link, if there is one."""
    next_link = response.links.get("next")
    if not next_link or "url" not in next_link:
        return None
    return httpx.URL(next_link["url"]).params.get("page_info")


class RecentDataFetcher:
    def __init__(
        self, forwarder: ProxyForwarder, *, page_delay_seconds: float
    ) -> None:
        self._forwarder = forwarder
        self._page_delay = page_delay_seconds

    async def fetch(
        self,
        resource: RecentResource,
        shop: str,
        access_token: str,
        max_pages: int,
    ) -> list[Any]:
        logger.info(
            "Fetching recent %s  shop=%s token=%s max_pages=%d",
            resource.name,
            shop,
            redact(access_token),
            max_pages,
            extra={"shop": shop, "operation": "fresh"},
        )
        records: list[Any] = []
        page_info: str | None = None

        for page in range(1, max_pages + 1):
            if page_info is None:
                query = list(resource.first_page_query)
            else:
                query = [("limit", PAGE_SIZE), ("page_info", page_info)]

            response = await self._forwarder.forward(
                ProxyRequest(
                    method="GET",
                    path=resource.path,
                    access_token=access_token,
                    shop=shop,
                    query=query,
                ),
                operation="fresh",
                error=resource.failure,
                mirror_status=False,
            )
            payload = response_payload(response)
            batch = payload.get(resource.name) if isinstance(payload, dict) else None
            records.extend(batch or [])
            logger.debug(
                "Fetched %s page %d: %d records (total %d)",
                resource.name,
                page,
                len(batch or []),
                len(records),
            )

            page_info = next_page_info(response)
            if page_info is None or page == max_pages:
                break
            if self._page_delay:
                await asyncio.sleep(self._page_delay)

        logger.info(
            "Recent %s fetched: %d records",
            resource.name,
            len(records),
            extra={"shop": shop, "operation": "fresh"},
        )
        return records
