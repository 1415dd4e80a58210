from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ExchangeTokenRequest(BaseModel):
    """Body of POST /api/shopify/exchange-token.

    Fields are optional at the model level so that a missing or blank
    value yields the gateway's own 400 envelope instead of a 422.
    """

    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    shop: str | None = None
    # Echoed from the redirect and never verified here, so any JSON value
    state: Any = None

    @property
    def is_complete(self) -> bool:
        return bool(self.code and self.code.strip() and self.shop and self.shop.strip())


class ValidateCredentialsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    shop: str | None = None
    access_token: str | None = Field(default=None, alias="accessToken")

    @property
    def is_complete(self) -> bool:
        return bool(
            self.shop
            and self.shop.strip()
            and self.access_token
            and self.access_token.strip()
        )
