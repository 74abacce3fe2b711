"""Domain models."""
from .document import ChunkMetadata, ScoredChunk, FusedResult, SearchScope, StoredChunk
from .chat import ChatMessage
from .context import ContextWindow, SourceAttribution, Citation
from .search import SearchType, SearchRequest, SearchTiming, SearchResponse
from .rerank import RerankHit

__all__ = [
    "ChunkMetadata",
    "ScoredChunk",
    "FusedResult",
    "SearchScope",
    "StoredChunk",
    "ChatMessage",
    "ContextWindow",
    "SourceAttribution",
    "Citation",
    "SearchType",
    "SearchRequest",
    "SearchTiming",
    "SearchResponse",
    "RerankHit",
]
