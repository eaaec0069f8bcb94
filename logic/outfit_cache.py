"""Time-bounded memoization of outfit generation results."""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from models.outfit import OutfitResult

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


def make_cache_key(intent: Optional[str], item_ids: Iterable[str]) -> str:
    """Digest of the request; item order does not affect the key."""

    material = json.dumps([intent or "", sorted(str(item_id) for item_id in item_ids)])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    result: OutfitResult
    expires_at: float


class OutfitCache:
    """Process-lifetime cache of :class:`OutfitResult` objects.

    Entries are removed when read after expiry and, when an event loop is
    running at ``put`` time, by a timer scheduled for the expiry moment. Stored
    results are copies and every read hands out a fresh copy.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[OutfitResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                self._remove_locked(key)
                logger.debug("Evicted expired outfit cache entry on read")
                return None
            return entry.result.detached()

    def put(self, key: str, result: OutfitResult, ttl: Optional[float] = None) -> CacheEntry:
        ttl = self.ttl_seconds if ttl is None else ttl
        entry = CacheEntry(key=key, result=result.detached(), expires_at=self._clock() + ttl)
        with self._lock:
            self._remove_locked(key)
            self._entries[key] = entry
            timer = self._schedule_expiry(entry, ttl)
            if timer is not None:
                self._timers[key] = timer
        return entry

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._remove_locked(key)

    def clear(self) -> None:
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _schedule_expiry(self, entry: CacheEntry, ttl: float) -> Optional[asyncio.TimerHandle]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        return loop.call_later(ttl, self._expire, entry)

    def _expire(self, entry: CacheEntry) -> None:
        with self._lock:
            if self._entries.get(entry.key) is entry:
                self._entries.pop(entry.key, None)
                self._timers.pop(entry.key, None)
                logger.debug("Evicted expired outfit cache entry on timer")

    def _remove_locked(self, key: str) -> bool:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        return self._entries.pop(key, None) is not None


__all__ = ["CacheEntry", "DEFAULT_TTL_SECONDS", "OutfitCache", "make_cache_key"]
