"""Map httpx failures onto the gateway's error envelope.

Two kinds of failure reach this module:

  httpx.HTTPStatusError — Shopify answered, with a non-2xx status.
      details = the upstream body (JSON if it parses, text otherwise)
      status  = the upstream status (or 500 when the caller asks)

  anything else — Shopify never answered (DNS, connect, timeout, or a
  shop value that does not even form a valid URL).
      details = the error's message
      status  = 500

The `error` string is always a fixed literal chosen by the call site, so
the browser sees one shape whichever Shopify surface failed.
"""

from __future__ import annotations

from typing import Any

import httpx

from gateway.core.errors import TransportError, UpstreamError

# What call sites catch around an outbound request.  InvalidURL is not an
# HTTPError subclass but is just as much "the request never happened".
UPSTREAM_FAILURES = (httpx.HTTPError, httpx.InvalidURL)


def response_payload(response: httpx.Response) -> Any:
    """Decode a response body: JSON when possible, text otherwise, None if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _transport_message(exc: Exception) -> str:
    message = str(exc)
    if message:
        return message
    # Some httpx timeouts carry no message at all
    if isinstance(exc, httpx.TimeoutException):
        return "Upstream request timed out"
    return type(exc).__name__


def classify(
    exc: Exception,
    error: str,
    *,
    mirror_status: bool = True,
) -> UpstreamError | TransportError:
    if isinstance(exc, httpx.HTTPStatusError):
        upstream_status = exc.response.status_code
        details = response_payload(exc.response)
        if details is None:
            details = str(exc)
        return UpstreamError(
            error,
            details=details,
            status_code=upstream_status if mirror_status else 500,
            upstream_status=upstream_status,
        )
    return TransportError(error, details=_transport_message(exc))


def normalize(
    exc: Exception,
    error: str,
    *,
    mirror_status: bool = True,
) -> tuple[int, dict[str, Any]]:
    """Return (http_status, envelope) for a failed upstream call."""
    err = classify(exc, error, mirror_status=mirror_status)
    return err.status_code, err.envelope()
