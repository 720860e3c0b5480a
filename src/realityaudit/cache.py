"""
Content-addressed audit cache with a durable primary tier and an in-process
fallback tier.

Reads go to the primary store first and only fall through to the fallback
when the primary raises. Writes go to the primary; the fallback receives the
record only when the primary write fails or no primary is configured.

Concurrent misses for the same fingerprint are not coalesced: both callers
run the provider and the last write wins. Records for one key are
interchangeable, so the race costs a provider call and nothing else.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from .models import AuditRecord, CacheSource

logger = logging.getLogger(__name__)

CACHE_PREFIX = "audit:"
DEFAULT_TTL_SECONDS = 3600


def fingerprint(text: str) -> str:
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()


def cache_key(text: str) -> str:
    return f"{CACHE_PREFIX}{fingerprint(text)}"


class PrimaryStore(Protocol):
    """Subset of ``redis.asyncio.Redis`` the cache relies on."""

    async def get(self, key: str) -> str | bytes | None: ...

    async def set(self, key: str, value: str, ex: int | None = None) -> object: ...


@dataclass(frozen=True)
class CacheLookup:
    value: AuditRecord | None
    source: CacheSource

    @property
    def hit(self) -> bool:
        return self.value is not None


@dataclass
class _MemoryEntry:
    record: AuditRecord
    inserted_at: float


class MemoryCache:
    """Process-local fallback tier; entries expire ``ttl`` seconds after insertion."""

    def __init__(self, *, ttl: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        # Insertion order equals expiry order, oldest first.
        self._entries: dict[str, _MemoryEntry] = {}

    def _expired(self, entry: _MemoryEntry, now: float) -> bool:
        return now - entry.inserted_at >= self._ttl

    def get(self, key: str) -> AuditRecord | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.record

    def set(self, key: str, record: AuditRecord) -> None:
        now = self._clock()
        self.purge_expired(now)
        # Re-inserting moves the key to the end so the ordering holds.
        self._entries.pop(key, None)
        self._entries[key] = _MemoryEntry(record=record, inserted_at=now)

    def purge_expired(self, now: float | None = None) -> int:
        """Drop expired entries from the head of the map; returns how many went."""
        now = self._clock() if now is None else now
        removed = 0
        while self._entries:
            oldest_key = next(iter(self._entries))
            if not self._expired(self._entries[oldest_key], now):
                break
            del self._entries[oldest_key]
            removed += 1
        if removed:
            logger.debug("Purged %d expired fallback cache entries", removed)
        return removed

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


class ResultCache:
    def __init__(
        self,
        primary: PrimaryStore | None = None,
        fallback: MemoryCache | None = None,
        *,
        ttl: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self.primary = primary
        self.fallback = fallback if fallback is not None else MemoryCache(ttl=ttl)
        self.ttl = ttl

    async def get(self, key: str) -> CacheLookup:
        if self.primary is not None:
            try:
                payload = await self.primary.get(key)
                if payload is None:
                    logger.info("Primary cache miss for %s", key[:20])
                    return CacheLookup(None, "none")
                record = AuditRecord.model_validate_json(payload)
                logger.info("Primary cache hit for %s", key[:20])
                return CacheLookup(record, "primary")
            except ValidationError as exc:
                logger.error("Primary cache returned an unreadable entry for %s: %s", key[:20], exc)
            except Exception as exc:
                logger.error("Primary cache get failed, falling back to memory: %s", exc)

        record = self.fallback.get(key)
        if record is not None:
            logger.info("Fallback cache hit for %s", key[:20])
            return CacheLookup(record, "fallback")
        logger.info("Fallback cache miss for %s", key[:20])
        return CacheLookup(None, "none")

    async def set(self, key: str, record: AuditRecord) -> CacheSource:
        """Store the record and report which tier accepted it."""
        if self.primary is not None:
            try:
                await self.primary.set(key, record.model_dump_json(), ex=self.ttl)
                logger.info("Stored audit in primary cache under %s", key[:20])
                return "primary"
            except Exception as exc:
                logger.error("Primary cache set failed, storing in memory: %s", exc)
        self.fallback.set(key, record)
        logger.info("Stored audit in fallback cache under %s", key[:20])
        return "fallback"
