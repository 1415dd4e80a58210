"""Single-use enforcement for OAuth authorization codes.

THE RACE THIS PREVENTS
------------------------
A naive check-then-mark:

    if await guard.has_been_used(code):   # request A: False
        reject()                          # request B: False  (A hasn't marked yet)
    await guard.mark_used(code)           # both mark, both exchange

lets two concurrent requests carrying the same code both reach Shopify.
claim() does the check and the mark as ONE step — under an asyncio.Lock
in memory, or as a single SET NX in Redis — so exactly one caller wins.

WHY A TTL
-----------
Shopify authorization codes are short-lived.  Once a code is past its
validity window Shopify rejects it on its own, so remembering it any
longer only grows memory.  Entries expire after REPLAY_TTL_SECONDS.

WHY HASHES
------------
Codes are stored as SHA-256 digests.  A heap dump or a Redis KEYS
listing shows digests, not codes that could still be exchanged.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class ReplayStoreError(Exception):
    """The backing store could not answer; the code's status is unknown."""


def code_digest(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


@runtime_checkable
class ReplayGuard(Protocol):
    async def has_been_used(self, code: str) -> bool:
        """True if *code* was marked and its record has not expired."""
        ...

    async def mark_used(self, code: str) -> None:
        """Record *code* as used.  Idempotent."""
        ...

    async def claim(self, code: str) -> bool:
        """Atomically mark *code*; True only for the first caller."""
        ...

    async def ping(self) -> bool:
        """True when the backing store is reachable."""
        ...


class InMemoryReplayGuard:
    """Per-process replay store.

    Limitation: a restart forgets every code, and two processes do not
    see each other's codes.  Use RedisReplayGuard for multiple replicas.
    """

    def __init__(
        self,
        ttl_seconds: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        # digest -> expiry (clock seconds)
        self._used: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._used)

    def _purge(self, now: float) -> None:
        expired = [k for k, exp in self._used.items() if exp <= now]
        for key in expired:
            del self._used[key]

    def _is_live(self, digest: str, now: float) -> bool:
        exp = self._used.get(digest)
        return exp is not None and exp > now

    async def has_been_used(self, code: str) -> bool:
        return self._is_live(code_digest(code), self._clock())

    async def mark_used(self, code: str) -> None:
        async with self._lock:
            now = self._clock()
            self._purge(now)
            self._used[code_digest(code)] = now + self._ttl

    async def claim(self, code: str) -> bool:
        digest = code_digest(code)
        async with self._lock:
            now = self._clock()
            self._purge(now)
            if self._is_live(digest, now):
                return False
            self._used[digest] = now + self._ttl
            return True

    async def ping(self) -> bool:
        return True


class RedisReplayGuard:
    """Redis-backed replay store shared by every gateway replica."""

    _PREFIX = "replay:oauth_code:"

    def __init__(self, redis_client, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds

    def _key(self, code: str) -> str:
        return f"{self._PREFIX}{code_digest(code)}"

    async def has_been_used(self, code: str) -> bool:
        try:
            return bool(await self._redis.exists(self._key(code)))
        except RedisError as exc:
            raise ReplayStoreError(str(exc)) from exc

    async def mark_used(self, code: str) -> None:
        try:
            await self._redis.set(self._key(code), "1", ex=self._ttl)
        except RedisError as exc:
            raise ReplayStoreError(str(exc)) from exc

    async def claim(self, code: str) -> bool:
        # SET NX EX: set-if-absent and expiry in one atomic command.
        try:
            created = await self._redis.set(self._key(code), "1", nx=True, ex=self._ttl)
        except RedisError as exc:
            raise ReplayStoreError(str(exc)) from exc
        return bool(created)

    async def ping(self) -> bool:
        try:
            await self._redis.ping()
        except RedisError:
            logger.warning("Replay store ping failed")
            return False
        return True


def build_replay_guard(redis_client, ttl_seconds: int) -> ReplayGuard:
    if redis_client is not None:
        return RedisReplayGuard(redis_client, ttl_seconds)
    return InMemoryReplayGuard(ttl_seconds)
