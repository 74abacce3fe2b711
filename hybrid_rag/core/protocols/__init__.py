"""Protocol interfaces for dependency injection."""
from .embedder import EmbeddingClientProtocol, QUERY_INPUT, DOCUMENT_INPUT
from .chunk_store import ChunkStoreProtocol
from .reranker import RerankClientProtocol
from .cache import CacheBackendProtocol
from .conversation import ConversationSourceProtocol

__all__ = [
    "EmbeddingClientProtocol",
    "QUERY_INPUT",
    "DOCUMENT_INPUT",
    "ChunkStoreProtocol",
    "RerankClientProtocol",
    "CacheBackendProtocol",
    "ConversationSourceProtocol",
]
