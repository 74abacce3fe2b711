import logging
from functools import cached_property

from sentence_transformers import SentenceTransformer

from hybrid_rag.core.protocols.embedder import QUERY_INPUT

logger = logging.getLogger(__name__)

# E5 models expect the input type as a text prefix.
_PREFIXES = {
    "search_query": "query: ",
    "search_document": "passage: ",
}


class SentenceTransformerEmbedder:
    """Local embedding model."""

    def __init__(self, model_name: str = "intfloat/multilingual-e5-base"):
        self._model_name = model_name

    @property
    def model_name(self) -> str:
        return self._model_name

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def embed(self, texts: list[str], input_type: str = QUERY_INPUT) -> list[list[float]]:
        prefix = _PREFIXES.get(input_type, "")
        vectors = self.model.encode(
            [f"{prefix}{t}" for t in texts],
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return vectors.tolist()
