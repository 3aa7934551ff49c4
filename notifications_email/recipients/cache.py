"""Time-bounded in-memory cache for broadcast address sets."""

import threading
import time
from typing import Callable, FrozenSet, Iterable, Optional


class BroadcastAddressCache:
    """Holds the last resolved "all users" address set for ``ttl_seconds``.

    Safe for concurrent use by dispatches running in different threads.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl_seconds: How long a stored set stays valid
            clock: Monotonic time source (for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got: {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._addresses: Optional[FrozenSet[str]] = None
        self._expires_at = 0.0

    def get(self) -> Optional[FrozenSet[str]]:
        """Return the cached addresses, or None when empty or expired."""
        with self._lock:
            if self._addresses is None or self._clock() >= self._expires_at:
                return None
            return self._addresses

    def set(self, addresses: Iterable[str]) -> None:
        """Store an address set, restarting the TTL."""
        with self._lock:
            self._addresses = frozenset(addresses)
            self._expires_at = self._clock() + self.ttl_seconds

    def clear(self) -> None:
        """Drop the cached addresses."""
        with self._lock:
            self._addresses = None
            self._expires_at = 0.0
