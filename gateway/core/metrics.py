"""Application metrics using the Prometheus client library.

Every metric the gateway exports is defined here; other modules import
the one they need and increment/observe it at the point of action.

Two groups:

  HTTP metrics     — what the browser sees (populated by MetricsMiddleware).
  Upstream metrics — what Shopify does to us (populated by the services
                     that talk to Shopify).  Comparing the two shows whether
                     slowness or errors originate here or upstream.

LABEL CARDINALITY
-------------------
The proxy forwards arbitrary paths (/orders/123.json, /orders/124.json ...).
Using raw paths as label values would create one time series per order id.
The middleware collapses every proxy path to a single endpoint label, and
upstream metrics are labelled by operation, never by path.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Upstream (Shopify) metrics
# ---------------------------------------------------------------------------

UPSTREAM_REQUESTS = Counter(
    "shopify_upstream_requests_total",
    "Outbound calls to Shopify by operation and outcome",
    # operation: exchange | proxy | graphql | validate | fresh
    # outcome:   success | http_error | transport_error
    ["operation", "outcome"],
)

UPSTREAM_DURATION = Histogram(
    "shopify_upstream_request_duration_seconds",
    "Outbound call duration to Shopify in seconds",
    ["operation"],
    # Upper buckets sit around the upstream timeout (10s by default)
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 7.5, 10.0, 15.0],
)

REPLAY_REJECTIONS = Counter(
    "oauth_code_replays_total",
    "Token exchange requests rejected because the code was already used",
)
