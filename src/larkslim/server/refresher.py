"""Background tenant access token renewal."""

from __future__ import annotations

import threading
from collections.abc import Callable

from ..core.logger import get_logger

logger = get_logger("server.refresher")

# Seconds subtracted from the reported TTL before the next refresh
REFRESH_AHEAD = 60
MIN_DELAY = 5.0
RETRY_DELAY = 5.0

TokenSupplier = Callable[[], int]


def next_delay(ttl: int) -> float:
    """Seconds to wait after a successful refresh reporting ``ttl``."""
    return max(MIN_DELAY, float(ttl - REFRESH_AHEAD))


class TokenRefresher:
    """Refresh the access token ahead of expiry on a daemon thread.

    After each successful refresh the loop waits ``max(5, ttl - 60)`` seconds;
    after a failure it logs the error and retries in 5 seconds. ``stop()``
    interrupts the wait and ends the loop.

    Args:
        supplier: Fetches a new token and returns its TTL in seconds.
    """

    def __init__(self, supplier: TokenSupplier, retry_delay: float = RETRY_DELAY) -> None:
        self._supplier = supplier
        self._retry_delay = retry_delay
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="larkslim-token-refresher",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run_once(self) -> float:
        """Refresh once and return the delay before the next attempt."""
        try:
            ttl = self._supplier()
        except Exception as exc:
            logger.error("Access token refresh failed: %s", exc)
            return self._retry_delay
        delay = next_delay(ttl)
        logger.info("update access token in %d seconds", delay)
        return delay

    def _run(self) -> None:
        while not self._stop.is_set():
            delay = self.run_once()
            if self._stop.wait(delay):
                break
