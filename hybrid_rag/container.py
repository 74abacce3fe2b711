import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def _build_cache_backend(settings: Settings):
    from .infrastructure.cache.memory_cache import InMemoryCacheBackend
    from .infrastructure.cache.redis_cache import RedisCacheBackend
    from .infrastructure.cache.tiered_cache import TieredCacheBackend

    if settings.cache_backend == "redis":
        return RedisCacheBackend(settings.redis_url, timeout=settings.cache_timeout)

    l1 = InMemoryCacheBackend(max_size=settings.cache_l1_size)
    if settings.cache_backend == "tiered":
        l2 = RedisCacheBackend(settings.redis_url, timeout=settings.cache_timeout)
        return TieredCacheBackend(l1, l2, l1_ttl=settings.cache_l1_ttl)
    return l1


def _build_embedding_client(settings: Settings):
    if settings.embedding_provider == "local":
        from .infrastructure.embeddings.sentence_transformer import (
            SentenceTransformerEmbedder,
        )

        return SentenceTransformerEmbedder(settings.local_embedding_model)

    from .infrastructure.embeddings.cohere_client import CohereEmbeddingClient

    return CohereEmbeddingClient(
        api_key=settings.cohere_api_key,
        model=settings.embedding_model,
        url=settings.cohere_embed_url,
        timeout=settings.embed_timeout,
    )


def _build_rerank_client(settings: Settings):
    if settings.rerank_provider == "local":
        from .infrastructure.rerankers.cross_encoder import CrossEncoderReranker

        return CrossEncoderReranker(settings.local_reranker_model)

    from .infrastructure.rerankers.cohere_reranker import CohereRerankClient

    return CohereRerankClient(
        api_key=settings.cohere_api_key,
        model=settings.reranker_model,
        url=settings.cohere_rerank_url,
        timeout=settings.rerank_timeout,
    )


def _build_chunk_store(settings: Settings):
    if settings.chunk_store == "memory":
        from .infrastructure.chunk_stores.memory_store import InMemoryChunkStore

        return InMemoryChunkStore()

    from .infrastructure.chunk_stores.chroma_store import ChromaChunkStore

    return ChromaChunkStore(
        host=settings.chroma_host,
        port=settings.chroma_port,
        collection_name=settings.chroma_collection,
        timeout=max(settings.vector_search_timeout, settings.fulltext_search_timeout),
    )


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.cache import CacheBackendProtocol
    from .core.protocols.chunk_store import ChunkStoreProtocol
    from .core.protocols.conversation import ConversationSourceProtocol
    from .core.protocols.embedder import EmbeddingClientProtocol
    from .core.services.cache_service import CacheService
    from .core.services.context_assembler import ContextAssembler
    from .core.services.fulltext_retriever import FullTextRetriever
    from .core.services.query_embedder import QueryEmbedder
    from .core.services.rerank_service import RerankService
    from .core.services.result_fuser import ResultFuser
    from .core.services.search_service import SearchService
    from .core.services.vector_retriever import VectorRetriever
    from .core.strategies.scoring import ScoreCutoffStrategy
    from .infrastructure.conversations.memory_source import (
        InMemoryConversationSource,
    )
    from .observability.metrics import PipelineMetrics

    container.register(PipelineMetrics, PipelineMetrics, singleton=True)

    # Fire-and-forget cache writes, shared by the embedder and the search cache.
    container.register(
        Executor,
        lambda: ThreadPoolExecutor(
            max_workers=settings.cache_write_workers, thread_name_prefix="cache-write"
        ),
        singleton=True,
    )

    container.register(
        CacheBackendProtocol,
        lambda: _build_cache_backend(settings),
        singleton=True,
    )

    container.register(
        CacheService,
        lambda: CacheService(container.resolve(CacheBackendProtocol)),
        singleton=True,
    )

    container.register(
        EmbeddingClientProtocol,
        lambda: _build_embedding_client(settings),
        singleton=True,
    )

    container.register(
        ChunkStoreProtocol,
        lambda: _build_chunk_store(settings),
        singleton=True,
    )

    container.register(
        ConversationSourceProtocol,
        InMemoryConversationSource,
        singleton=True,
    )

    container.register(
        QueryEmbedder,
        lambda: QueryEmbedder(
            client=container.resolve(EmbeddingClientProtocol),
            cache=container.resolve(CacheService),
            ttl=settings.embedding_cache_ttl,
            dimensions=(
                settings.embedding_dimensions
                if settings.embedding_provider == "cohere"
                else None
            ),
            metrics=container.resolve(PipelineMetrics),
            executor=container.resolve(Executor),
        ),
        singleton=True,
    )

    def build_reranker():
        if settings.rerank_provider == "none":
            return None
        return RerankService(
            client=_build_rerank_client(settings),
            timeout=settings.rerank_timeout,
            metrics=container.resolve(PipelineMetrics),
        )

    container.register(RerankService, build_reranker, singleton=True)

    def build_search_service():
        store = container.resolve(ChunkStoreProtocol)
        strategies = []
        if settings.rag_score_ratio > 0:
            strategies.append(ScoreCutoffStrategy(settings.rag_score_ratio))

        return SearchService(
            embedder=container.resolve(QueryEmbedder),
            vector_retriever=VectorRetriever(store),
            fulltext_retriever=FullTextRetriever(store),
            fuser=ResultFuser(settings.rag_vector_weight, settings.rag_fulltext_weight),
            assembler=ContextAssembler(
                document_share=settings.context_document_share,
                relevance_floor=settings.context_relevance_floor,
                recent_messages=settings.context_recent_messages,
            ),
            cache=container.resolve(CacheService),
            reranker=container.resolve(RerankService),
            conversations=container.resolve(ConversationSourceProtocol),
            metrics=container.resolve(PipelineMetrics),
            strategies=strategies,
            embed_timeout=settings.embed_timeout,
            vector_timeout=settings.vector_search_timeout,
            fulltext_timeout=settings.fulltext_search_timeout,
            search_cache_ttl=settings.search_cache_ttl,
            max_query_length=settings.max_query_length,
            max_limit=settings.rag_max_limit,
            background_executor=container.resolve(Executor),
        )

    container.register(SearchService, build_search_service, singleton=True)

    logger.info(
        f"Container configured (embeddings={settings.embedding_provider}, "
        f"rerank={settings.rerank_provider}, store={settings.chunk_store}, "
        f"cache={settings.cache_backend})"
    )
    return container
