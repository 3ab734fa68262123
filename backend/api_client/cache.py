"""
Query cache for the DYHE Delivery API client.

Entries are keyed by tuples such as ("drivers", (("page", 1),)) or ("driver", id),
go stale after a fixed window and are dropped by key prefix on invalidation.
"""
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

DEFAULT_STALE_TIME = 5 * 60  # seconds

QueryKey = Tuple[Hashable, ...]


def params_key(params: Optional[dict]) -> tuple:
    """Hashable, order-independent form of a params dict (None values dropped)."""
    if not params:
        return ()
    return tuple(sorted((k, v) for k, v in params.items() if v is not None))


class QueryCache:
    def __init__(self, stale_time: float = DEFAULT_STALE_TIME, clock: Callable[[], float] = time.monotonic):
        self.stale_time = stale_time
        self.clock = clock
        self._entries: Dict[QueryKey, Tuple[float, Any]] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, key: QueryKey, value: Any):
        self._entries[key] = (self.clock(), value)

    def peek(self, key: QueryKey, default: Any = None) -> Any:
        """Cached value regardless of staleness."""
        entry = self._entries.get(key)
        return entry[1] if entry else default

    def is_fresh(self, key: QueryKey, stale_time: Optional[float] = None) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        window = self.stale_time if stale_time is None else stale_time
        return self.clock() - entry[0] < window

    def get_or_fetch(self, key: QueryKey, fetch: Callable[[], Any], stale_time: Optional[float] = None) -> Any:
        """Return the cached value while fresh, otherwise call fetch and cache its result."""
        if self.is_fresh(key, stale_time):
            return self._entries[key][1]
        value = fetch()
        self.set(key, value)
        return value

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with prefix. Returns how many were dropped."""
        size = len(prefix)
        doomed = [key for key in self._entries if key[:size] == tuple(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self):
        self._entries.clear()
