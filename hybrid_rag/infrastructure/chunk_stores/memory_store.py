import logging
from threading import Lock

import numpy as np

from hybrid_rag.core.models.document import ScoredChunk, SearchScope, StoredChunk

from .lexical import query_terms, rank

logger = logging.getLogger(__name__)


class InMemoryChunkStore:
    """Chunk store held in process memory."""

    def __init__(self, chunks: list[StoredChunk] | None = None):
        self._chunks: dict[str, StoredChunk] = {}
        self._lock = Lock()
        if chunks:
            self.add(chunks)

    def add(self, chunks: list[StoredChunk]) -> None:
        with self._lock:
            for chunk in chunks:
                self._chunks[chunk.id] = chunk
        logger.info(f"Stored {len(chunks)} chunks")

    def _in_scope(self, scope: SearchScope) -> list[StoredChunk]:
        with self._lock:
            chunks = list(self._chunks.values())
        return [
            c for c in chunks
            if scope.allows(
                c.user_id, c.document_id, c.document_type, c.tags, c.created_at
            )
        ]

    def vector_search(
        self,
        query_embedding: list[float],
        scope: SearchScope,
        limit: int,
        threshold: float,
    ) -> list[ScoredChunk]:
        candidates = [c for c in self._in_scope(scope) if c.embedding]
        if not candidates:
            return []

        query = np.asarray(query_embedding, dtype=float)
        matrix = np.asarray([c.embedding for c in candidates], dtype=float)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        norms[norms == 0] = 1.0
        similarities = matrix @ query / norms

        scored = [
            chunk.to_scored(float(sim))
            for chunk, sim in zip(candidates, similarities)
            if sim >= threshold
        ]
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:limit]

    def text_search(self, query: str, scope: SearchScope, limit: int) -> list[ScoredChunk]:
        terms = query_terms(query)
        if not terms:
            return []

        scored = []
        for chunk in self._in_scope(scope):
            score = rank(terms, chunk.content)
            if score > 0:
                scored.append(chunk.to_scored(score))

        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:limit]

    def health(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)
