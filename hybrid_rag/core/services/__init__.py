"""Core pipeline services."""
from .cache_service import CacheService
from .query_embedder import QueryEmbedder
from .vector_retriever import VectorRetriever
from .fulltext_retriever import FullTextRetriever
from .result_fuser import ResultFuser, fuse
from .rerank_service import RerankService
from .context_assembler import ContextAssembler, parse_citations
from .search_service import SearchService

__all__ = [
    "CacheService",
    "QueryEmbedder",
    "VectorRetriever",
    "FullTextRetriever",
    "ResultFuser",
    "fuse",
    "RerankService",
    "ContextAssembler",
    "parse_citations",
    "SearchService",
]
