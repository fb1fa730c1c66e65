"""
Cookie-like persistent cache for uids returned by the id server.

A cached uid lives under two keys: ``<prefix>uid`` holds the uid and
``<prefix>ut`` the epoch-ms time it was stored. The TTL passed to the store
governs physical expiry only; whether a uid may be reused without asking the
server is decided by the freshness window alone.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol, Tuple

from .effective_config import EffectiveConfig
from .types import CacheRecord


class KeyValueStore(Protocol):
    """Persistent key/value store with absolute expiry (cookie jar semantics)."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when missing or expired."""
        ...

    def set(
        self,
        key: str,
        value: str,
        expires_at: datetime,
        domain: Optional[str] = None,
    ) -> None:
        """Store ``value`` until ``expires_at``, optionally scoped to ``domain``."""
        ...


class InMemoryKeyValueStore:
    """
    Process-local KeyValueStore.

    Entries past their expiry are dropped on read. The clock is injectable so
    expiry can be tested without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._entries: Dict[str, Tuple[str, datetime, Optional[str]]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at, _ = entry
        if expires_at.timestamp() <= self.clock():
            del self._entries[key]
            return None
        return value

    def set(
        self,
        key: str,
        value: str,
        expires_at: datetime,
        domain: Optional[str] = None,
    ) -> None:
        self._entries[key] = (value, expires_at, domain)

    def expires_at(self, key: str) -> Optional[datetime]:
        entry = self._entries.get(key)
        return entry[1] if entry else None

    def domain_of(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        return entry[2] if entry else None

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _parse_epoch_ms(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


class CacheStore:
    """
    Named-key adapter over a KeyValueStore.

    Example:
        >>> cache = CacheStore.for_config(store, EffectiveConfig.from_raw({}))
        >>> expires_at = cache.write("u1", stored_at_ms=1_700_000_000_000, ttl_seconds=60)
        >>> cache.read()
        CacheRecord(uid='u1', stored_at_epoch_ms=1700000000000)
    """

    def __init__(self, store: KeyValueStore, uid_key: str, ut_key: str) -> None:
        self.store = store
        self.uid_key = uid_key
        self.ut_key = ut_key

    @classmethod
    def for_config(cls, store: KeyValueStore, config: EffectiveConfig) -> "CacheStore":
        return cls(store, config.uid_cookie_name, config.ut_cookie_name)

    def read(self) -> Optional[CacheRecord]:
        """Read both keys; None when neither holds anything."""
        uid = self.store.get(self.uid_key)
        raw_ut = self.store.get(self.ut_key)
        if not uid and raw_ut is None:
            return None
        return CacheRecord(uid=uid or None, stored_at_epoch_ms=_parse_epoch_ms(raw_ut))

    def write(
        self,
        uid: str,
        stored_at_ms: int,
        ttl_seconds: int,
        domain: Optional[str] = None,
    ) -> datetime:
        """
        Persist ``uid`` and its timestamp, both expiring ``ttl_seconds`` after
        ``stored_at_ms``.

        Returns:
            The absolute expiry written to the store.
        """
        expires_at = datetime.fromtimestamp(
            stored_at_ms / 1000 + ttl_seconds, tz=timezone.utc
        )
        self.store.set(self.uid_key, uid, expires_at, domain)
        self.store.set(self.ut_key, str(stored_at_ms), expires_at, domain)
        return expires_at

    @staticmethod
    def is_fresh(
        record: Optional[CacheRecord], refresh_seconds: int, now_ms: int
    ) -> bool:
        """True when ``record`` holds a uid stored within the freshness window."""
        if record is None or not record.uid or record.stored_at_epoch_ms is None:
            return False
        return record.stored_at_epoch_ms + refresh_seconds * 1000 >= now_ms
