import logging
from functools import cached_property

from sentence_transformers import CrossEncoder

from hybrid_rag.core.models.rerank import RerankHit

logger = logging.getLogger(__name__)


class CrossEncoderReranker:
    """Reranker using CrossEncoder models."""

    def __init__(self, model_name: str = "BAAI/bge-reranker-v2-m3"):
        """Initialize reranker.

        Args:
            model_name: HuggingFace model name.
        """
        self._model_name = model_name

    @cached_property
    def model(self) -> CrossEncoder:
        logger.info(f"Loading reranker: {self._model_name}")
        model = CrossEncoder(self._model_name)
        logger.info("Reranker loaded")
        return model

    def rerank(self, query: str, documents: list[str], top_n: int) -> list[RerankHit]:
        """Score documents by relevance.

        Args:
            query: User query.
            documents: Document texts.
            top_n: Number of hits to return.

        Returns:
            Hits sorted by score (descending).
        """
        if not documents:
            return []

        pairs = [[query, doc] for doc in documents]
        scores = self.model.predict(pairs)

        hits = [RerankHit(index=i, relevance_score=float(s)) for i, s in enumerate(scores)]
        hits.sort(key=lambda h: h.relevance_score, reverse=True)
        return hits[:top_n]
