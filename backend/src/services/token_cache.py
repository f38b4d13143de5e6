"""
Single-slot cache for the upstream X-App token.

The cache holds at most one token together with its expiry time. It has no
lock: concurrent refreshes may both write, and the last writer wins, which is
harmless because every issued token is valid. The clock is injectable so
expiry can be tested without sleeping.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional


Clock = Callable[[], float]


@dataclass(frozen=True)
class CachedToken:
    token: str
    expires_at: float


class TokenCache:
    """Holds the current upstream access token and when it stops being usable."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock: Clock = clock or time.time
        self._entry: Optional[CachedToken] = None

    def now(self) -> float:
        return self._clock()

    def get(self) -> Optional[str]:
        """Return the cached token, or None when absent or expired."""
        if self.is_expired():
            return None
        return self._entry.token

    def set(self, token: str, ttl_seconds: float) -> CachedToken:
        """Store a token valid for ``ttl_seconds`` from now."""
        self._entry = CachedToken(token=token, expires_at=self.now() + ttl_seconds)
        return self._entry

    def is_expired(self) -> bool:
        """True when no token is cached or ``now >= expires_at``."""
        if self._entry is None:
            return True
        return self.now() >= self._entry.expires_at

    def clear(self) -> None:
        self._entry = None

    @property
    def expires_at(self) -> Optional[float]:
        return self._entry.expires_at if self._entry else None
