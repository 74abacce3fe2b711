"""Chunk store protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.document import ScoredChunk, SearchScope


@runtime_checkable
class ChunkStoreProtocol(Protocol):
    """Protocol for the chunk store queried by both retrievers."""

    def vector_search(
        self,
        query_embedding: list[float],
        scope: SearchScope,
        limit: int,
        threshold: float
    ) -> list[ScoredChunk]:
        """Nearest-neighbour search by cosine similarity.

        Args:
            query_embedding: Query vector.
            scope: Owner and allow-list filters.
            limit: Number of results to return.
            threshold: Minimum similarity (1 - cosine distance).

        Returns:
            Chunks scored by similarity.
        """
        ...

    def text_search(
        self,
        query: str,
        scope: SearchScope,
        limit: int
    ) -> list[ScoredChunk]:
        """Lexical match and rank.

        Args:
            query: Sanitized query text.
            scope: Owner and allow-list filters.
            limit: Number of results to return.

        Returns:
            Chunks scored by lexical rank.
        """
        ...

    def health(self) -> bool:
        """Check that the store is reachable."""
        ...
