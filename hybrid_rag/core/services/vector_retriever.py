"""Vector retriever - scoped similarity search."""

import logging

from ..errors import RetrievalError, ValidationError
from ..models.document import ScoredChunk, SearchScope
from ..protocols.chunk_store import ChunkStoreProtocol
from .validation import validate_scope

logger = logging.getLogger(__name__)


class VectorRetriever:
    """Nearest-neighbour lookup with scope and threshold enforcement."""

    def __init__(self, store: ChunkStoreProtocol):
        self._store = store

    def search(
        self,
        query_embedding: list[float],
        scope: SearchScope,
        limit: int = 10,
        threshold: float = 0.5,
    ) -> list[ScoredChunk]:
        """Search chunks by cosine similarity.

        Args:
            query_embedding: Query vector.
            scope: Owner and allow-list filters.
            limit: Maximum results.
            threshold: Minimum similarity.

        Returns:
            Chunks with similarity >= threshold, most similar first.

        Raises:
            ValidationError: If the vector or scope is invalid.
            RetrievalError: If the store fails.
        """
        if not query_embedding:
            raise ValidationError("query_embedding", "must not be empty")
        validate_scope(scope)

        try:
            results = self._store.vector_search(
                query_embedding=query_embedding,
                scope=scope,
                limit=limit,
                threshold=threshold,
            )
        except Exception as e:
            logger.error(f"Vector search failed: {e}")
            raise RetrievalError("vector", e) from e

        results = [
            r.with_score(r.score, vector_score=r.score)
            for r in results
            if r.score >= threshold
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        results = results[:limit]

        logger.info(f"Vector search: {len(results)} chunks (threshold={threshold})")
        return results
