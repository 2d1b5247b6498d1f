"""Cache backends and the cache-aside glue used by the directory."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable

from game_directory.errors import CacheFault

logger = logging.getLogger(__name__)


class MemoryCache:
    """Process-local key -> bytes cache with sliding expiration."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the cache.

        Args:
            clock: Monotonic time source, in seconds
        """
        # key -> (value, ttl seconds, expires at)
        self._entries: dict[str, tuple[bytes, float, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> bytes | None:
        """Return the cached bytes and push the entry's expiry forward.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if missing or expired
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, ttl, expires_at = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            self._entries[key] = (value, ttl, now + ttl)
            return value

    def set(self, key: str, value: bytes, ttl: float) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise CacheFault(f'Cache values must be bytes, got {type(value).__name__}')
        if ttl <= 0:
            raise CacheFault(f'Cache TTL must be positive, got {ttl}')
        with self._lock:
            self._entries[key] = (bytes(value), ttl, self._clock() + ttl)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ProjectionCache:
    """Cache-aside policy for read-model projections.

    Projections are stored as JSON bytes under ``<kind>:<id>``. Any error
    raised by the backend (``CacheFault`` or a client's own connection
    errors) is logged and swallowed: the cache is never authoritative, so a
    failed get is a miss and a failed set or remove is only reported.
    """

    def __init__(self, backend, ttl_seconds: float) -> None:
        self.backend = backend
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key_for(kind: str, entity_id: str) -> str:
        return f'{kind}:{entity_id}'

    def load(self, key: str) -> dict[str, Any] | None:
        try:
            raw = self.backend.get(key)
        except Exception as exc:
            logger.warning(f'[cache-fault] op=get key={key} error={exc}')
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning(f'[cache-fault] op=decode key={key} error={exc}')
            self.invalidate(key)
            return None

    def store(self, key: str, projection: dict[str, Any]) -> None:
        try:
            self.backend.set(key, json.dumps(projection).encode('utf-8'), self.ttl_seconds)
        except Exception as exc:
            logger.warning(f'[cache-fault] op=set key={key} error={exc}')

    def invalidate(self, key: str) -> None:
        try:
            self.backend.remove(key)
        except Exception as exc:
            logger.warning(f'[cache-fault] op=remove key={key} error={exc}')
