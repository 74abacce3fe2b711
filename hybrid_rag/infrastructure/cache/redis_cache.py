import json
import logging
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


class RedisCacheBackend:
    """Networked cache backed by Redis; values are stored as JSON."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "hybrid_rag:",
        timeout: float = 1.0,
        client: Optional[redis.Redis] = None,
    ):
        """Initialize Redis backend.

        Args:
            redis_url: Redis connection URL.
            key_prefix: Prefix for every key written by this backend.
            timeout: Socket connect/read timeout in seconds.
            client: Pre-built client (tests).
        """
        self._prefix = key_prefix
        self._client = client or redis.Redis.from_url(
            redis_url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int) -> None:
        self._client.set(self._key(key), json.dumps(value), ex=ttl)

    def delete(self, key: str) -> bool:
        return bool(self._client.delete(self._key(key)))

    def clear(self, prefix: str = "") -> int:
        keys = list(self._client.scan_iter(match=f"{self._key(prefix)}*"))
        if keys:
            self._client.delete(*keys)
        logger.info(f"Cleared {len(keys)} keys from Redis (prefix='{prefix}')")
        return len(keys)

    def health(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis health check failed: {e}")
            return False
