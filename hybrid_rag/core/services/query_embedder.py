"""Query embedder - cached query embeddings."""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from ...observability.metrics import PipelineMetrics
from ..errors import EmbeddingError
from ..protocols.embedder import QUERY_INPUT, EmbeddingClientProtocol
from .cache_service import EMBEDDING_PREFIX, CacheService, make_key

logger = logging.getLogger(__name__)


class QueryEmbedder:
    """Turns query text into a vector, consulting the cache first."""

    def __init__(
        self,
        client: EmbeddingClientProtocol,
        cache: CacheService,
        ttl: int = 7 * 24 * 60 * 60,
        dimensions: Optional[int] = None,
        metrics: Optional[PipelineMetrics] = None,
        executor: Optional[Executor] = None,
    ):
        """Initialize query embedder.

        Args:
            client: Embedding service client.
            cache: Cache service shared with the pipeline.
            ttl: Embedding cache TTL in seconds.
            dimensions: Expected vector dimension; None disables the check.
            metrics: Metrics store.
            executor: Runs cache writes in the background; a private
                single-thread pool by default.
        """
        self._client = client
        self._cache = cache
        self._ttl = ttl
        self._dimensions = dimensions
        self._metrics = metrics or PipelineMetrics()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="embedding-cache"
        )

    def cache_key(self, query: str) -> str:
        return make_key(EMBEDDING_PREFIX, self._client.model_name, QUERY_INPUT, query.strip())

    def embed(self, query: str) -> list[float]:
        """Embed a query.

        Args:
            query: Query text.

        Returns:
            Query vector.

        Raises:
            EmbeddingError: If the service fails or returns no usable vector.
        """
        text = query.strip()
        key = self.cache_key(text)

        cached = self._cache.get(key)
        if cached is not None and self._is_valid(cached):
            self._metrics.record_cache_hit("embedding")
            logger.debug(f"Embedding cache hit for '{text[:50]}'")
            return [float(v) for v in cached]

        self._metrics.record_cache_miss("embedding")
        self._metrics.record_embedding_call()

        try:
            vectors = self._client.embed([text], input_type=QUERY_INPUT)
        except Exception as e:
            logger.error(f"Embedding call failed: {e}")
            raise EmbeddingError(e) from e

        if not vectors or not vectors[0]:
            raise EmbeddingError("embedding service returned no vector")

        vector = [float(v) for v in vectors[0]]
        if self._dimensions and len(vector) != self._dimensions:
            raise EmbeddingError(
                f"dimension mismatch: expected {self._dimensions}, got {len(vector)}"
            )

        self._store(key, vector)
        return vector

    def _store(self, key: str, vector: list[float]) -> None:
        try:
            self._executor.submit(self._cache.set, key, vector, self._ttl)
        except RuntimeError as e:
            logger.warning(f"Embedding cache write skipped: {e}")

    def _is_valid(self, cached: object) -> bool:
        if not isinstance(cached, list) or not cached:
            return False
        if self._dimensions and len(cached) != self._dimensions:
            logger.warning(
                f"Ignoring cached embedding of dimension {len(cached)} "
                f"(expected {self._dimensions})"
            )
            return False
        return True
