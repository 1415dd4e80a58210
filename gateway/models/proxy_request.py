from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gateway.core.logging import redact


@dataclass(frozen=True, slots=True)
class ProxyRequest:
    """One forwarded call: built per inbound request, dropped after the response.

    Carries exactly one (access_token, shop) pair.  Nothing here is cached
    between requests.
    """

    method: str
    path: str
    access_token: str
    shop: str
    query: list[tuple[str, str]] = field(default_factory=list)
    body: Any = None

    @property
    def has_body(self) -> bool:
        return self.body is not None and self.method not in ("GET", "HEAD")

    def __repr__(self) -> str:
        return (
            f"ProxyRequest(method={self.method!r}, path={self.path!r}, "
            f"shop={self.shop!r}, access_token={redact(self.access_token)!r})"
        )
