"""Background task that periodically drops cached readings."""

from __future__ import annotations

import threading
from typing import Callable

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="refresh")


class PeriodicCacheRefresher:
    """Call `clear` every `interval_seconds` on a daemon thread.

    Owned by whoever composes the conditions client; `start()` and `stop()`
    may be called any number of times. An interval of 0 disables refreshing.
    """

    def __init__(self, clear: Callable[[], object], interval_seconds: float) -> None:
        self._clear = clear
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the refresh loop; return False if disabled or already running."""
        if self.interval_seconds <= 0:
            logger.info("Automatic cache refresh disabled")
            return False
        with self._lock:
            if self.running:
                return False
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, name="SwellWatchCacheRefresh")
            self._thread.daemon = True
            self._thread.start()
        logger.info("Automatic cache refresh every %ss", self.interval_seconds)
        return True

    def stop(self, timeout: float = 5.0) -> None:
        with self._lock:
            thread, self._thread = self._thread, None
            self._stop_event.set()
        if thread is not None and thread.is_alive():
            thread.join(timeout=timeout)
            logger.info("Automatic cache refresh stopped")

    def _loop(self) -> None:
        while not self._stop_event.wait(timeout=self.interval_seconds):
            try:
                cleared = self._clear()
                logger.debug("Periodic refresh cleared %s entries", cleared)
            except Exception:
                logger.exception("Periodic cache refresh failed")
