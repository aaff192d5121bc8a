"""In-memory result cache with a freshness window, keyed by rounded coordinates."""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="result_cache")

# Decimal places kept in cache keys (~110 m at the equator).
COORDINATE_PRECISION = 3
DEFAULT_FRESHNESS_SECONDS = 10 * 60

V = TypeVar("V")


def cache_key(latitude: float, longitude: float, *, prefix: str | None = None) -> str:
    """Build the composite key for a coordinate, e.g. '37.491_-122.501'."""
    # Adding 0.0 turns a rounded -0.0 into 0.0, so -0.0001 and 0.0001 share a key.
    lat = round(latitude, COORDINATE_PRECISION) + 0.0
    lng = round(longitude, COORDINATE_PRECISION) + 0.0
    key = f"{lat:.{COORDINATE_PRECISION}f}_{lng:.{COORDINATE_PRECISION}f}"
    return f"{prefix}:{key}" if prefix else key


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading at which it was stored."""
    key: str
    value: V
    created_at: float


class ResultCache:
    """Thread-safe, freshness-aware memoization layer.

    Stale entries are never returned but are only dropped when superseded by
    a newer `put` or a `clear`.
    """

    def __init__(
        self,
        freshness_seconds: float = DEFAULT_FRESHNESS_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache with a freshness window (seconds) and clock."""
        logger.debug("Initializing ResultCache (freshness=%ss)", freshness_seconds)
        self.freshness_seconds = freshness_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.Lock()

    def _is_fresh(self, entry: CacheEntry[Any]) -> bool:
        return self._clock() - entry.created_at < self.freshness_seconds

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or stale."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_fresh(entry):
                logger.debug("Stale cache entry ignored: %s", key)
                return None
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Store `value` under `key`, replacing any earlier entry."""
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock())

    def clear(self) -> int:
        """Drop every entry and return how many were stored."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d cached results", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
