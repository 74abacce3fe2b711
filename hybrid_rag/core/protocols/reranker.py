"""Rerank client protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.rerank import RerankHit


@runtime_checkable
class RerankClientProtocol(Protocol):
    """Protocol for a relevance reranking service."""

    def rerank(
        self,
        query: str,
        documents: list[str],
        top_n: int
    ) -> list[RerankHit]:
        """Score documents against the query.

        Args:
            query: User query.
            documents: Document texts in their current order.
            top_n: Maximum number of hits to return.

        Returns:
            Hits referencing documents by original index, possibly fewer
            than the input and in a new order.
        """
        ...
