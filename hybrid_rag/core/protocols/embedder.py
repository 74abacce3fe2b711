"""Embedding client protocol for dependency injection."""
from typing import Protocol, runtime_checkable

QUERY_INPUT = "search_query"
DOCUMENT_INPUT = "search_document"


@runtime_checkable
class EmbeddingClientProtocol(Protocol):
    """Protocol for an embedding service."""

    @property
    def model_name(self) -> str:
        """Model version; part of every embedding cache key."""
        ...

    def embed(self, texts: list[str], input_type: str = QUERY_INPUT) -> list[list[float]]:
        """Embed a batch of texts.

        Args:
            texts: Texts to embed.
            input_type: ``search_query`` or ``search_document``.

        Returns:
            One vector per input text, in input order.
        """
        ...
