"""Full-text retriever - scoped lexical search."""

import logging
import re

from ..errors import RetrievalError
from ..models.document import ScoredChunk, SearchScope
from ..protocols.chunk_store import ChunkStoreProtocol
from .validation import validate_scope

logger = logging.getLogger(__name__)

# Boolean and operator characters of full-text query syntaxes.
_OPERATOR_CHARS = re.compile(r"[&|!():*<>\\\"'~^{}\[\]+-]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_query(query: str) -> str:
    """Strip operator punctuation and collapse whitespace."""
    text = _OPERATOR_CHARS.sub(" ", query or "")
    return _WHITESPACE.sub(" ", text).strip()


class FullTextRetriever:
    """Lexical match and rank lookup over chunk text."""

    def __init__(self, store: ChunkStoreProtocol):
        self._store = store

    def search(
        self,
        query: str,
        scope: SearchScope,
        limit: int = 10,
    ) -> list[ScoredChunk]:
        """Search chunks by lexical rank.

        An empty sanitized query returns no results without querying
        the store.

        Raises:
            ValidationError: If the scope is invalid.
            RetrievalError: If the store fails.
        """
        validate_scope(scope)

        sanitized = sanitize_query(query)
        if not sanitized:
            logger.info("Full-text search skipped: no lexical terms in query")
            return []

        try:
            results = self._store.text_search(query=sanitized, scope=scope, limit=limit)
        except Exception as e:
            logger.error(f"Full-text search failed: {e}")
            raise RetrievalError("fulltext", e) from e

        results = [r.with_score(r.score, fulltext_score=r.score) for r in results]
        results.sort(key=lambda r: r.score, reverse=True)
        results = results[:limit]

        logger.info(f"Full-text search: {len(results)} chunks for '{sanitized[:50]}'")
        return results
