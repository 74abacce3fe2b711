"""Cache service - failure-absorbing facade over a cache backend."""

import hashlib
import json
import logging
from threading import Lock
from typing import Any, Optional

from ..protocols.cache import CacheBackendProtocol

logger = logging.getLogger(__name__)

EMBEDDING_PREFIX = "emb:"
SEARCH_PREFIX = "search:"


def make_key(prefix: str, *parts: Any) -> str:
    """Build a stable cache key from JSON-serialisable parts."""
    payload = json.dumps(parts, sort_keys=True, default=str, ensure_ascii=False)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{prefix}{digest}"


class CacheService:
    """Cache facade whose operations never raise.

    A failed get is a miss, a failed set is a no-op.
    """

    def __init__(self, backend: CacheBackendProtocol):
        """Initialize cache service.

        Args:
            backend: Storage backend (in-memory, Redis, tiered).
        """
        self._backend = backend
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def get(self, key: str) -> Optional[Any]:
        """Return cached value or None."""
        try:
            value = self._backend.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key[:24]}...: {e}")
            self._count(error=True, hit=False)
            return None

        self._count(hit=value is not None)
        return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store value for ttl seconds; failures are logged only."""
        try:
            self._backend.set(key, value, ttl)
        except Exception as e:
            logger.warning(f"Cache set failed for {key[:24]}...: {e}")
            with self._lock:
                self._errors += 1

    def delete(self, key: str) -> bool:
        """Invalidate a key."""
        try:
            return self._backend.delete(key)
        except Exception as e:
            logger.warning(f"Cache delete failed for {key[:24]}...: {e}")
            return False

    def clear(self, prefix: str = "") -> int:
        """Invalidate every key with the given prefix."""
        try:
            count = self._backend.clear(prefix)
        except Exception as e:
            logger.warning(f"Cache clear failed for prefix '{prefix}': {e}")
            return 0
        logger.info(f"Cache cleared: {count} keys (prefix='{prefix}')")
        return count

    def health(self) -> bool:
        try:
            return self._backend.health()
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            return False

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "errors": self._errors,
                "hit_rate": round(self._hits / total, 4) if total > 0 else 0.0,
            }

    def _count(self, hit: bool, error: bool = False) -> None:
        with self._lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1
            if error:
                self._errors += 1
