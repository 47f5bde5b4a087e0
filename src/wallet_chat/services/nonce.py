"""Single-use sign-in challenges.

A nonce is issued before the wallet signs anything and may be consumed at
most once. Entries are bound to the wallet address when the client names it
up front; otherwise they are keyed by their own value. Expiry is enforced
both inline on ``consume`` and by ``purge_expired`` using the same predicate;
``issue`` runs the sweep at most once per TTL period.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any, Final, Protocol

import redis

from wallet_chat.core.settings import Settings

DEFAULT_NONCE_TTL_SECONDS: Final[int] = 300
NONCE_BYTES: Final[int] = 16

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NonceEntry:
    """A stored challenge and the wall-clock second it stops being valid."""

    nonce: str
    expires_at: float


def is_expired(entry: NonceEntry, now: float) -> bool:
    """Shared TTL boundary: a nonce issued at T is dead from T + TTL on."""
    return now >= entry.expires_at


class NonceStore(Protocol):
    """Backing storage for :class:`NonceRegistry`."""

    def put(self, key: str, entry: NonceEntry, ttl_seconds: int) -> None: ...

    def pop(self, key: str) -> NonceEntry | None: ...

    def purge(self, predicate: Callable[[NonceEntry], bool]) -> int: ...


class MemoryNonceStore:
    """Process-local store guarded by a lock."""

    def __init__(self) -> None:
        self._entries: dict[str, NonceEntry] = {}
        self._lock = Lock()

    def put(self, key: str, entry: NonceEntry, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = entry

    def pop(self, key: str) -> NonceEntry | None:
        with self._lock:
            return self._entries.pop(key, None)

    def purge(self, predicate: Callable[[NonceEntry], bool]) -> int:
        with self._lock:
            stale = [key for key, entry in self._entries.items() if predicate(entry)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisNonceStore:
    """Redis-backed store; Redis key expiry performs the sweep."""

    def __init__(self, client: Any, prefix: str = "authnonce:") -> None:
        self._redis = client
        self._prefix = prefix

    def put(self, key: str, entry: NonceEntry, ttl_seconds: int) -> None:
        value = f"{entry.expires_at}|{entry.nonce}"
        self._redis.set(f"{self._prefix}{key}", value, ex=max(1, int(ttl_seconds)))

    def pop(self, key: str) -> NonceEntry | None:
        raw = self._redis.getdel(f"{self._prefix}{key}")
        if raw is None:
            return None
        text = raw.decode() if isinstance(raw, bytes) else str(raw)
        expires_at, _, nonce = text.partition("|")
        try:
            return NonceEntry(nonce=nonce, expires_at=float(expires_at))
        except ValueError:
            logger.warning("Discarding malformed nonce entry for key %s", key)
            return None

    def purge(self, predicate: Callable[[NonceEntry], bool]) -> int:
        # Keys carry a Redis TTL matching the registry TTL.
        return 0


class NonceRegistry:
    """Issues and consumes single-use sign-in nonces.

    Args:
        store: Where entries live between issue and consume.
        ttl_seconds: Lifetime of an unused nonce.
        clock: Source of wall-clock seconds, injectable for tests.
    """

    def __init__(
        self,
        store: NonceStore | None = None,
        ttl_seconds: int = DEFAULT_NONCE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store if store is not None else MemoryNonceStore()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._last_sweep = clock()

    @staticmethod
    def _address_key(address: str) -> str:
        return f"addr:{address.strip().lower()}"

    @staticmethod
    def _value_key(nonce: str) -> str:
        return f"nonce:{nonce}"

    def issue(self, key: str | None = None) -> str:
        """Generate a nonce, bound to ``key`` (a wallet address) when given."""
        now = self._clock()
        if now - self._last_sweep >= self.ttl_seconds:
            self._last_sweep = now
            removed = self.purge_expired()
            if removed:
                logger.debug("swept %s expired nonces", removed)

        nonce = secrets.token_hex(NONCE_BYTES)
        store_key = self._address_key(key) if key else self._value_key(nonce)
        entry = NonceEntry(nonce=nonce, expires_at=now + self.ttl_seconds)
        self._store.put(store_key, entry, self.ttl_seconds)
        return nonce

    def consume(self, key: str | None, presented: str | None) -> bool:
        """Consume a nonce for ``key`` (wallet address).

        The address-bound entry is tried first. When it is missing or does not
        match, the unbound entry keyed by the presented value is tried, so a
        nonce bound to the address by someone else cannot block a sign-in.
        Every entry looked at is removed, so a nonce can never be presented
        twice even if the first attempt failed.

        Returns:
            True if a matching, unexpired nonce was found.
        """
        if not presented:
            return False

        now = self._clock()
        if key and self._matches(self._store.pop(self._address_key(key)), presented, now):
            return True
        return self._matches(self._store.pop(self._value_key(presented)), presented, now)

    @staticmethod
    def _matches(entry: NonceEntry | None, presented: str, now: float) -> bool:
        if entry is None or is_expired(entry, now):
            return False
        return secrets.compare_digest(entry.nonce, presented)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        return self._store.purge(lambda entry: is_expired(entry, now))


def build_nonce_registry(config: Settings) -> NonceRegistry:
    """Create the registry configured for this process."""
    store: NonceStore
    if config.nonce_backend == "redis":
        store = RedisNonceStore(redis.from_url(config.redis_url))  # type: ignore[no-untyped-call]
    else:
        store = MemoryNonceStore()
    return NonceRegistry(store, ttl_seconds=config.nonce_ttl_seconds)
