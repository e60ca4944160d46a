"""
Caching utilities for the Bison client.

Slow-changing reference data (system info) is cached in an explicit object
that the caller creates, shares and clears; nothing is cached at module level.
"""

import time
from typing import Any, Callable, Dict, Optional


class InfoCache:
    """
    Holds the last ``/info`` response.

    Args:
        ttl: Seconds an entry stays fresh; None keeps it until cleared
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._value: Optional[Dict[str, Any]] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[Dict[str, Any]]:
        """Return the cached info, or None when empty or expired."""
        if self._value is None:
            return None
        if self.ttl is not None and self._stored_at is not None:
            if self._clock() - self._stored_at > self.ttl:
                self.clear()
                return None
        return self._value

    def set(self, value: Dict[str, Any]) -> None:
        self._value = value
        self._stored_at = self._clock()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None
