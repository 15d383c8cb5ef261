"""Bounded, expiring in-memory cache shared by forward and reverse geocoding."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Generic, Optional, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 500
DEFAULT_TTL_SECONDS = 60 * 60 * 24
REVERSE_KEY_DECIMALS = 5

V = TypeVar("V")


def forward_key(address: str) -> str:
    return "geocode:" + "-".join(address.strip().lower().split())


def reverse_key(lat: float, lon: float) -> str:
    return f"reverse:{lat:.{REVERSE_KEY_DECIMALS}f},{lon:.{REVERSE_KEY_DECIMALS}f}"


class ResultCache(Generic[V]):
    """
    LRU eviction at ``max_entries`` plus unconditional expiry after ``ttl_seconds``.

    Only successful resolutions are stored. Concurrent misses on the same key
    may both compute and both write; the last write wins.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._store: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return int(self._store.maxsize)

    @property
    def ttl_seconds(self) -> float:
        return float(self._store.ttl)

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            value = self._store.get(key)
        logger.debug("Cache %s for key=%s", "HIT" if value is not None else "MISS", key)
        return value

    def set(self, key: str, value: V) -> None:
        if value is None:
            raise ValueError("cannot cache None")
        with self._lock:
            self._store[key] = value

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
