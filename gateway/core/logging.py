"""Logging configuration for the Shopify gateway.

WHAT THIS GATEWAY MUST NEVER LOG
----------------------------------
The gateway sits between a browser and Shopify, so almost every request
carries a credential:

  - the OAuth authorization code   (single-use, but replayable until spent)
  - the shop's access token         (long-lived — full API access to a store)
  - the app's client secret         (server-only, never leaves this process)

Log lines end up in aggregation systems that many people can read, so:
  - access tokens are logged only through redact(), which keeps a fixed
    10-character prefix — enough to correlate, not enough to reuse;
  - authorization codes are logged as "present"/"missing" or as a short
    hash prefix;
  - the client secret is never logged at all.

TWO FORMATTERS
----------------
  _ContainerFormatter — human-readable, single-line, for local dev.
  _JsonFormatter      — JSON lines for production log pipelines.
                         Set LOG_JSON=true to switch.
"""

from __future__ import annotations

import json
import logging
import sys

REDACT_PREFIX_LEN = 10


def redact(secret: str | None) -> str:
    """Return a log-safe rendering of a credential.

    >>> redact("shpat_0123456789abcdef")
    'shpat_0123...'
    >>> redact(None)
    'missing'
    """
    if not secret:
        return "missing"
    return f"{secret[:REDACT_PREFIX_LEN]}..."


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    - Always: ISO-8601 timestamp, level, logger name, message
    - WARNING+: appends [filename:lineno] so you can locate the guard clause
    - ERROR/CRITICAL: stack trace included when exc_info is present
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # Insert .NNN before the timezone offset (last 5 chars: +0000)
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON formatter — one object per line (JSON Lines).

    Context fields injected by RequestContextMiddleware, plus the
    shop/operation fields attached by the upstream services, are lifted
    to top-level keys so they can be filtered on directly.
    """

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "shop",
        "operation",
        "upstream_status",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: Log level string (debug/info/warning/error)
        json_format: If True, emit JSON lines. If False, human-readable.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs full request URLs at INFO; keep it and uvicorn at WARNING+
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
