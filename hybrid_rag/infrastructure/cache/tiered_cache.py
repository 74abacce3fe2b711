import logging
from typing import Any, Optional

from hybrid_rag.core.protocols.cache import CacheBackendProtocol

from .memory_cache import InMemoryCacheBackend

logger = logging.getLogger(__name__)


class TieredCacheBackend:
    """Memory (L1) cache in front of an optional networked (L2) cache.

    L2 failures degrade to L1 only.
    """

    def __init__(
        self,
        l1: InMemoryCacheBackend,
        l2: Optional[CacheBackendProtocol] = None,
        l1_ttl: int = 300,
    ):
        """Initialize tiered cache.

        Args:
            l1: In-process cache.
            l2: Networked cache, or None for L1 only.
            l1_ttl: Upper bound on L1 entry lifetime in seconds.
        """
        self._l1 = l1
        self._l2 = l2
        self._l1_ttl = l1_ttl

    def get(self, key: str) -> Optional[Any]:
        value = self._l1.get(key)
        if value is not None:
            return value

        if self._l2 is None:
            return None

        try:
            value = self._l2.get(key)
        except Exception as e:
            logger.warning(f"L2 cache get failed, using L1 only: {e}")
            return None

        if value is not None:
            self._l1.set(key, value, self._l1_ttl)
        return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        self._l1.set(key, value, min(ttl, self._l1_ttl))
        if self._l2 is None:
            return
        try:
            self._l2.set(key, value, ttl)
        except Exception as e:
            logger.warning(f"L2 cache set failed, stored in L1 only: {e}")

    def delete(self, key: str) -> bool:
        removed = self._l1.delete(key)
        if self._l2 is not None:
            try:
                removed = self._l2.delete(key) or removed
            except Exception as e:
                logger.warning(f"L2 cache delete failed: {e}")
        return removed

    def clear(self, prefix: str = "") -> int:
        count = self._l1.clear(prefix)
        if self._l2 is not None:
            try:
                count = max(count, self._l2.clear(prefix))
            except Exception as e:
                logger.warning(f"L2 cache clear failed: {e}")
        return count

    def health(self) -> bool:
        # L2 is optional; overall health follows L1.
        return self._l1.health()
