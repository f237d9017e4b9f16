from __future__ import annotations

import os
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from leaderforge.security import SessionContext

METRICS_CACHE_KEY = "executive_weekly_metrics"

DEFAULT_TTL_SECONDS = float(os.getenv("DASHBOARD_CACHE_SECONDS", "300"))


def metrics_cache_key(context: SessionContext) -> Tuple[str, str, str]:
    # Not keyed by the reporting moment; entries only expire by TTL.
    return (METRICS_CACHE_KEY, context.company_name, context.requesting_user_id)


class ResultCache:
    """
    Time-limited in-process cache. Entries only expire; nothing invalidates
    them early. Concurrent writers race and the last write wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if now - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


metrics_cache = ResultCache()
