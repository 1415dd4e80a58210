from __future__ import annotations

from dataclasses import dataclass

# •	code: str           (raw value from Shopify's OAuth redirect — single use)
# •	shop: str           (tenant; bare subdomain or full *.myshopify.com host)
# •	state: str | None   (echoed from the redirect; not verified here)


@dataclass(frozen=True, slots=True)
class AuthorizationCode:
    code: str
    shop: str
    state: str | None = None

    def __repr__(self) -> str:
        # Keep the raw code out of reprs, tracebacks and debug logs
        return (
            f"AuthorizationCode(code=<{'present' if self.code else 'missing'}>, "
            f"shop={self.shop!r}, state=<{'present' if self.state else 'missing'}>)"
        )
