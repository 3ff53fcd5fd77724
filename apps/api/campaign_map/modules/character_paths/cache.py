from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

from campaign_map.core.config import get_settings
from campaign_map.core.logs import emit


class PathCache:
    """Single-slot, process-wide TTL cache for generated path data.

    Every invalidation bumps ``generation``. A reader captures it before
    loading its inputs and hands it back to ``set``; a value built from
    inputs that predate an invalidation is dropped.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[Dict[str, Any]] = None
        self._stored_at: Optional[float] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if self._value is None or self._stored_at is None:
                return None
            if (self._clock() - self._stored_at) >= self.ttl_seconds:
                return None
            return self._value

    def set(self, value: Dict[str, Any], generation: int) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self._value = value
            self._stored_at = self._clock()
            return True

    def invalidate(self, reason: str = "manual", request_id: Optional[str] = None) -> None:
        with self._lock:
            had = self._value is not None
            self._value = None
            self._stored_at = None
            self._generation += 1
        if had:
            emit("info", "paths.cache.invalidated", f"character paths cache cleared ({reason})", request_id, __name__)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            value = self._value
            stored_at = self._stored_at
        if value is None or stored_at is None:
            return {"cached": False, "message": "No cached data available"}
        age = self._clock() - stored_at
        return {
            "cached": True,
            "cacheAge": int(age * 1000),
            "expired": age >= self.ttl_seconds,
            "metadata": value.get("metadata"),
            "pathCount": len(value.get("paths") or {}),
        }


_cache: Optional[PathCache] = None


def get_path_cache() -> PathCache:
    global _cache
    if _cache is None:
        _cache = PathCache(get_settings().path_cache_ttl_seconds)
    return _cache


def invalidate_paths(reason: str, request_id: Optional[str] = None) -> None:
    get_path_cache().invalidate(reason, request_id)
