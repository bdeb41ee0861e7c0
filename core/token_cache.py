"""
Per-device bearer token cache.

Disabled by default (ttl 0): every operation then re-authenticates, which
is how the print pipeline behaves without configuration. With a positive
ttl, credentials are reused per device until they expire.

Thread Safety:
    All reads and writes hold a threading.Lock, so a background batch thread
    and request handlers can share one cache.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from models.print_job import Credentials

# Refresh this many seconds before the provider says the token expires
EXPIRY_SKEW_SECONDS = 30.0


class TokenCache:
    """
    Caches Credentials keyed by device identifier.

    Attributes:
        ttl_seconds: Upper bound on how long an entry is reused
    """

    def __init__(self, ttl_seconds: float = 0.0, clock: Optional[Callable[[], float]] = None):
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[Credentials, float]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, device_id: str) -> Optional[Credentials]:
        """Return unexpired credentials for the device, or None."""
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get(device_id)
            if entry is None:
                return None

            credentials, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[device_id]
                return None
            return credentials

    def put(self, device_id: str, credentials: Credentials) -> None:
        """Store credentials; no-op when the cache is disabled."""
        if not self.enabled:
            return

        lifetime = self._ttl
        if credentials.expires_in is not None:
            lifetime = min(lifetime, credentials.expires_in - EXPIRY_SKEW_SECONDS)
        if lifetime <= 0:
            return

        with self._lock:
            self._entries[device_id] = (credentials, self._clock() + lifetime)

    def invalidate(self, device_id: str) -> None:
        """Drop the entry for a device (e.g. after a 401)."""
        with self._lock:
            self._entries.pop(device_id, None)

    def clear(self) -> int:
        """Remove all entries. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count
