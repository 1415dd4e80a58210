from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from gateway.api.dependencies import RecentDataFetcherDep
from gateway.core.errors import InvalidRequestError
from gateway.services.recent_data import RECENT_RESOURCES, page_limit

# ---------------------------------------------------------------------------
# Recent records, read straight from Shopify (nothing is stored)
#
#   GET /api/shopify/fresh-orders     ?shop=&accessToken=&limit_pages=5
#   GET /api/shopify/fresh-products   ?shop=&accessToken=&limit_pages=3
#   GET /api/shopify/fresh-customers  ?shop=&accessToken=&limit_pages=3
#
# → 200 {"orders": [...]} | 400 missing params | 500 "Failed to fetch fresh ..."
# ---------------------------------------------------------------------------

router = APIRouter(prefix="/api/shopify", tags=["recent-data"])

MISSING_PARAMS = "Missing required parameters: shop and accessToken"


@dataclass(frozen=True)
class RecentDataQuery:
    shop: str
    access_token: str
    limit_pages: str | None


def require_recent_data_query(
    shop: Annotated[str | None, Query()] = None,
    access_token: Annotated[str | None, Query(alias="accessToken")] = None,
    limit_pages: Annotated[str | None, Query()] = None,
) -> RecentDataQuery:
    shop = (shop or "").strip()
    access_token = (access_token or "").strip()
    if not shop or not access_token:
        raise InvalidRequestError(MISSING_PARAMS)
    return RecentDataQuery(shop, access_token, limit_pages)


RecentDataQueryDep = Annotated[RecentDataQuery, Depends(require_recent_data_query)]


async def _fetch(
    name: str, fetcher: RecentDataFetcherDep, query: RecentDataQuery
) -> dict[str, Any]:
    resource = RECENT_RESOURCES[name]
    records = await fetcher.fetch(
        resource,
        shop=query.shop,
        access_token=query.access_token,
        max_pages=page_limit(query.limit_pages, resource.default_pages),
    )
    return {name: records}


@router.get("/fresh-orders")
async def fresh_orders(
    fetcher: RecentDataFetcherDep, query: RecentDataQueryDep
) -> dict[str, Any]:
    return await _fetch("orders", fetcher, query)


@router.get("/fresh-products")
async def fresh_products(
    fetcher: RecentDataFetcherDep, query: RecentDataQueryDep
) -> dict[str, Any]:
    return await _fetch("products", fetcher, query)


@router.get("/fresh-customers")
async def fresh_customers(
    fetcher: RecentDataFetcherDep, query: RecentDataQueryDep
) -> dict[str, Any]:
    return await _fetch("customers", fetcher, query)
