"""
Query Cache
Client-side cache of API responses keyed by resource and parameters
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple


logger = logging.getLogger(__name__)


class QueryKey(NamedTuple):
    """
    Structured cache key. ``resource`` is a slash path such as
    "medications" or "medications/3/logs"; params are sorted pairs.
    """
    resource: str
    params: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def of(cls, resource: str, **params) -> "QueryKey":
        return cls(resource, tuple(sorted((k, v) for k, v in params.items() if v is not None)))

    def under(self, prefix: str) -> bool:
        """True when this key's resource is prefix or nested below it"""
        return self.resource == prefix or self.resource.startswith(prefix.rstrip("/") + "/")


class QueryCache:
    """
    In-memory cache with optional expiry. Safe to share with a poller thread.
    """

    def __init__(self, ttl_seconds: Optional[float] = None):
        self._entries: Dict[QueryKey, Tuple[Any, datetime]] = {}
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self._lock = threading.RLock()

    def get(self, key: QueryKey) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._ttl is not None and datetime.utcnow() - stored_at > self._ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: QueryKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, datetime.utcnow())

    def get_or_fetch(self, key: QueryKey, fetch: Callable[[], Any], refresh: bool = False) -> Any:
        """Cached value for key, calling fetch on a miss or when refresh is set"""
        if not refresh:
            cached = self.get(key)
            if cached is not None:
                return cached
        value = fetch()
        self.set(key, value)
        return value

    def invalidate(self, *prefixes: str) -> int:
        """Drop every key under any of the given resource prefixes"""
        with self._lock:
            stale = [key for key in self._entries if any(key.under(p) for p in prefixes)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached queries under {prefixes}")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: QueryKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
