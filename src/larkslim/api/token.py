"""Tenant access token cache.

Each ``LarkAPI`` owns one ``TokenManager``. Readers take a lock-free fast path
while the cached token is valid; otherwise they serialize on a lock so that at
most one token fetch is in flight at a time.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from ..core.logger import get_logger
from .models import TokenInfo

logger = get_logger("api.token")

TokenFetcher = Callable[[], tuple[str, int]]


class TokenManager:
    """Cache a tenant access token and refresh it on demand.

    Args:
        fetch: Callable performing the token request; returns ``(token, ttl)``.
        skew: Seconds before the reported expiry at which the token is treated
            as expired.
        clock: Time source, overridable in tests.
    """

    def __init__(
        self,
        fetch: TokenFetcher,
        skew: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetch = fetch
        self._skew = skew
        self._clock = clock
        self._lock = threading.Lock()
        self._token: TokenInfo | None = None
        self._attempts = 0
        self._last_error: Exception | None = None

    @property
    def token_info(self) -> TokenInfo | None:
        return self._token

    @property
    def is_valid(self) -> bool:
        token = self._token
        return token is not None and not token.is_expired(self._clock())

    def get(self) -> str:
        """Return a valid token, fetching a new one if needed.

        Callers that queued behind an in-flight fetch observe its outcome (the
        new token or the same exception) rather than fetching again.

        Raises:
            Exception: Whatever the fetch raised when no token could be obtained.
        """
        token = self._token
        if token is not None and not token.is_expired(self._clock()):
            return token.token

        seen_attempts = self._attempts
        with self._lock:
            token = self._token
            if token is not None and not token.is_expired(self._clock()):
                return token.token
            if self._attempts != seen_attempts:
                if self._last_error is not None:
                    raise self._last_error
                if token is not None:
                    return token.token
            return self._refresh_locked().token

    def refresh(self) -> int:
        """Fetch a new token unconditionally.

        Returns:
            Token lifetime in seconds reported by the platform.
        """
        with self._lock:
            return self._refresh_locked().ttl

    def invalidate(self) -> None:
        with self._lock:
            self._token = None

    def _refresh_locked(self) -> TokenInfo:
        logger.debug("Requesting new tenant_access_token")
        try:
            value, ttl = self._fetch()
        except Exception as exc:
            self._last_error = exc
            self._attempts += 1
            raise

        lifetime = ttl - self._skew
        if lifetime < ttl / 2:
            logger.warning(
                "Token ttl %d seconds is within the %.0f second skew; caching for half its ttl",
                ttl,
                self._skew,
            )
            lifetime = ttl / 2
        info = TokenInfo(token=value, expires_at=self._clock() + lifetime, ttl=ttl)
        self._token = info
        self._last_error = None
        self._attempts += 1
        logger.info("Obtained tenant_access_token (expires in %d seconds)", ttl)
        return info
