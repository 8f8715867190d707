"""
RothPlanner - Analysis Cache
============================
Result cache owned by the host application.

The engine never touches this module. The API layer looks results up by
request fingerprint before calling the analyzer and stores them after.
"""

import hashlib
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

from roth_models import ConversionRequest

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60

T = TypeVar("T")


def request_fingerprint(request: ConversionRequest) -> str:
    """Stable SHA-256 key for a request (same inputs -> same key)."""
    canonical = request.model_dump_json()
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    timestamp: float


class AnalysisCache(ABC, Generic[T]):
    """Key -> {value, timestamp} store with expiry."""

    @abstractmethod
    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if missing or expired."""

    @abstractmethod
    def set(self, key: str, value: T) -> None:
        ...

    @abstractmethod
    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryAnalysisCache(AnalysisCache[T]):
    """
    Process-local cache with a time-to-live.

    `clock` is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.timestamp >= self.ttl_seconds

    def get(self, key: str) -> Optional[T]:
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, now):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, timestamp=self.clock())

    def sweep(self) -> int:
        now = self.clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if self._expired(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info(f"Swept {len(stale)} expired analysis result(s)")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
