"""Key/value cache whose entries expire after a fixed TTL."""
from __future__ import annotations

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache:
    """
    Maps a key to ``(value, expires_at)``.

    Entries are only dropped on expiry or :meth:`clear`; writes elsewhere never
    invalidate them. Every :meth:`set` sweeps out the expired ones. The clock is
    injectable so tests can move time forward.
    """

    def __init__(self, ttl: timedelta | float = timedelta(minutes=5), clock: Clock = utc_now) -> None:
        self.ttl = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, datetime]] = {}

    def get(self, key: str) -> Optional[Any]:
        item = self._entries.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("Cache entry %s expired", key)
            return None
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Dropped %d expired cache entries", len(expired))
        self._entries[key] = (copy.deepcopy(value), now + self.ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
