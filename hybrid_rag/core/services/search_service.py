"""Search service - retrieval, fusion, rerank and context assembly."""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, NoReturn, Optional

from ...observability.metrics import PipelineMetrics
from ...observability.timing import elapsed_ms, perf_now
from ..errors import (
    EmbeddingError,
    FatalRetrievalError,
    RetrievalError,
    ValidationError,
)
from ..models.chat import ChatMessage
from ..models.document import ScoredChunk
from ..models.search import SearchRequest, SearchResponse, SearchTiming, SearchType
from ..protocols.conversation import ConversationSourceProtocol
from ..strategies.scoring import MinScoreStrategy, ScoringStrategy
from .cache_service import SEARCH_PREFIX, CacheService, make_key
from .context_assembler import ContextAssembler
from .fulltext_retriever import FullTextRetriever
from .query_embedder import QueryEmbedder
from .rerank_service import RerankService
from .result_fuser import ResultFuser
from .validation import validate_request
from .vector_retriever import VectorRetriever

logger = logging.getLogger(__name__)

# Embedding, full-text and vector search of one request.
STAGES_PER_REQUEST = 3


def _stage_executor() -> Executor:
    return ThreadPoolExecutor(
        max_workers=STAGES_PER_REQUEST, thread_name_prefix="search-stage"
    )


class SearchService:
    """Hybrid search pipeline.

    Flow:
        1. Validate the request and look up the search cache
        2. Embed the query and run full-text search concurrently
        3. Vector search with the embedding, then fuse both lists
        4. Optionally rerank, then assemble the context window
        5. Store the response in the search cache without waiting
    """

    def __init__(
        self,
        embedder: QueryEmbedder,
        vector_retriever: VectorRetriever,
        fulltext_retriever: FullTextRetriever,
        fuser: ResultFuser,
        assembler: ContextAssembler,
        cache: CacheService,
        reranker: Optional[RerankService] = None,
        conversations: Optional[ConversationSourceProtocol] = None,
        metrics: Optional[PipelineMetrics] = None,
        strategies: list[ScoringStrategy] | None = None,
        embed_timeout: float = 10.0,
        vector_timeout: float = 5.0,
        fulltext_timeout: float = 5.0,
        search_cache_ttl: int = 300,
        max_query_length: int = 500,
        max_limit: int = 50,
        stage_executor_factory: Optional[Callable[[], Executor]] = None,
        background_executor: Optional[Executor] = None,
        background_workers: int = 4,
    ):
        """Initialize search service.

        Args:
            embedder: Cached query embedder.
            vector_retriever: Similarity retriever.
            fulltext_retriever: Lexical retriever.
            fuser: Result fuser with default weights.
            assembler: Context assembler.
            cache: Cache service for whole responses.
            reranker: Rerank service; None disables reranking.
            conversations: Source of conversation history.
            metrics: Metrics store.
            strategies: Filters applied after fusion.
            embed_timeout: Seconds to wait for the query embedding.
            vector_timeout: Seconds to wait for vector search.
            fulltext_timeout: Seconds to wait for full-text search.
            search_cache_ttl: Search response cache TTL in seconds.
            max_query_length: Maximum accepted query length.
            max_limit: Maximum accepted result limit.
            stage_executor_factory: Builds the executor that runs one
                request's retrieval stages. Each request gets its own, so a
                stage starts as soon as it is submitted.
            background_executor: Executor for fire-and-forget cache writes.
            background_workers: Pool size when no background executor is given.
        """
        self._embedder = embedder
        self._vector = vector_retriever
        self._fulltext = fulltext_retriever
        self._fuser = fuser
        self._assembler = assembler
        self._cache = cache
        self._reranker = reranker
        self._conversations = conversations
        self._metrics = metrics or PipelineMetrics()
        self._strategies = strategies or []
        self._embed_timeout = embed_timeout
        self._vector_timeout = vector_timeout
        self._fulltext_timeout = fulltext_timeout
        self._search_cache_ttl = search_cache_ttl
        self._max_query_length = max_query_length
        self._max_limit = max_limit
        self._stage_executor_factory = stage_executor_factory or _stage_executor
        self._background = background_executor or ThreadPoolExecutor(
            max_workers=background_workers, thread_name_prefix="cache-write"
        )

    @property
    def metrics(self) -> PipelineMetrics:
        return self._metrics

    def search(self, request: SearchRequest) -> SearchResponse:
        """Run the pipeline for one request.

        Args:
            request: Search request.

        Returns:
            Ranked results, context window and stage timings.

        Raises:
            ValidationError: If the request is malformed.
            FatalRetrievalError: If no results are computable.
        """
        try:
            validate_request(request, self._max_query_length, self._max_limit)
        except ValidationError as e:
            self._metrics.record_validation_error()
            logger.info(f"Rejected search request: {e}")
            raise

        self._metrics.record_request()
        query = request.query.strip()
        degraded: list[str] = []

        history = self._load_history(request, degraded)
        cache_key = self.cache_key(request, history)

        cached = self._cached_response(cache_key)
        if cached is not None:
            logger.info(f"Search cache hit for '{query[:50]}'")
            return cached

        timing = SearchTiming()
        vector_results, fulltext_results = self._retrieve(request, query, timing, degraded)

        results = self._combine(request, vector_results, fulltext_results)

        reranked = False
        if request.enable_rerank:
            results, reranked = self._rerank(request, query, results, timing, degraded)

        start = perf_now()
        context = self._assembler.assemble(
            results,
            history,
            max_context_tokens=request.max_context_tokens,
            prioritize_recent=request.prioritize_recent,
        )
        timing.assemble_ms = elapsed_ms(start)

        response = SearchResponse(
            results=results,
            context=context,
            timing=timing,
            reranked=reranked,
            degraded=degraded,
        )

        logger.info(
            f"Search: returned {len(results)}/{request.limit} docs for '{query[:50]}' "
            f"(embed={timing.embed_ms}ms retrieve={timing.retrieve_ms}ms "
            f"rerank={timing.rerank_ms}ms assemble={timing.assemble_ms}ms)"
        )

        # Only responses without fallbacks are cached.
        if not degraded:
            self._store_response(cache_key, response)
        return response

    def cache_key(self, request: SearchRequest, history: list[ChatMessage]) -> str:
        """Search cache key over the query and every tunable parameter."""
        vector_weight, fulltext_weight = self._weights(request)
        return make_key(
            SEARCH_PREFIX,
            request.query.strip(),
            request.scope.to_dict(),
            request.search_type.value,
            request.limit,
            request.threshold,
            vector_weight,
            fulltext_weight,
            request.enable_rerank,
            request.rerank_top_n,
            request.min_score,
            request.max_context_tokens,
            request.prioritize_recent,
            [m.to_line() for m in history],
        )

    def close(self) -> None:
        """Wait for pending cache writes and release worker threads."""
        self._background.shutdown(wait=True)

    def _weights(self, request: SearchRequest) -> tuple[float, float]:
        defaults = self._fuser.weights
        return (
            defaults[0] if request.vector_weight is None else request.vector_weight,
            defaults[1] if request.fulltext_weight is None else request.fulltext_weight,
        )

    def _load_history(self, request: SearchRequest, degraded: list[str]) -> list[ChatMessage]:
        if request.history is not None:
            return list(request.history)
        if not request.conversation_id or self._conversations is None:
            return []

        try:
            return list(self._conversations.get_messages(request.conversation_id))
        except Exception as e:
            logger.warning(
                f"Conversation history unavailable for {request.conversation_id}: {e}"
            )
            degraded.append("history")
            return []

    def _cached_response(self, key: str) -> Optional[SearchResponse]:
        cached = self._cache.get(key)
        if cached is None:
            self._metrics.record_cache_miss("search")
            return None

        try:
            response = SearchResponse.from_dict(cached)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed cached search response: {e}")
            self._metrics.record_cache_miss("search")
            return None

        self._metrics.record_cache_hit("search")
        response.cache_hit = True
        response.timing = SearchTiming()
        return response

    def _store_response(self, key: str, response: SearchResponse) -> None:
        try:
            self._background.submit(
                self._cache.set, key, response.to_dict(), self._search_cache_ttl
            )
        except RuntimeError as e:
            logger.warning(f"Search cache write skipped: {e}")

    def _retrieve(
        self,
        request: SearchRequest,
        query: str,
        timing: SearchTiming,
        degraded: list[str],
    ) -> tuple[list[ScoredChunk], list[ScoredChunk]]:
        use_vector = request.search_type in (SearchType.HYBRID, SearchType.VECTOR)
        use_fulltext = request.search_type in (SearchType.HYBRID, SearchType.FULLTEXT)

        stages = self._stage_executor_factory()
        try:
            vector_results, vector_error, fulltext_results, fulltext_error = self._run_stages(
                stages, request, query, timing, use_vector, use_fulltext
            )
        finally:
            # Timed-out workers finish on their own client timeouts.
            stages.shutdown(wait=False, cancel_futures=True)

        failures = [e for e in (vector_error, fulltext_error) if e is not None]
        requested = int(use_vector) + int(use_fulltext)
        if failures and len(failures) == requested:
            stage = failures[0].stage if requested == 1 else "retrieve"
            self._fail(stage, failures[-1])

        for error in failures:
            self._metrics.record_retriever_failure()
            degraded.append(error.stage)
            logger.warning(f"Continuing without {error.stage} results: {error}")

        return vector_results, fulltext_results

    def _run_stages(
        self,
        stages: Executor,
        request: SearchRequest,
        query: str,
        timing: SearchTiming,
        use_vector: bool,
        use_fulltext: bool,
    ) -> tuple[list[ScoredChunk], Optional[RetrievalError], list[ScoredChunk], Optional[RetrievalError]]:
        start = perf_now()
        fulltext_future: Optional[Future] = None
        if use_fulltext:
            fulltext_future = stages.submit(
                self._fulltext.search, query, request.scope, request.limit
            )

        vector_results: list[ScoredChunk] = []
        vector_error: Optional[RetrievalError] = None
        if use_vector:
            try:
                embedding = self._await(
                    stages.submit(self._embedder.embed, query),
                    self._embed_timeout,
                    "embed",
                )
            except RetrievalError as e:
                if fulltext_future is not None:
                    fulltext_future.cancel()
                self._fail("embed", e)
            timing.embed_ms = elapsed_ms(start)

            try:
                vector_results = self._await(
                    stages.submit(
                        self._vector.search,
                        embedding,
                        request.scope,
                        request.limit,
                        request.threshold,
                    ),
                    self._vector_timeout,
                    "vector",
                )
            except RetrievalError as e:
                vector_error = e

        fulltext_results: list[ScoredChunk] = []
        fulltext_error: Optional[RetrievalError] = None
        if fulltext_future is not None:
            # Full-text search has been running since `start`.
            remaining = max(0.0, self._fulltext_timeout - (perf_now() - start))
            try:
                fulltext_results = self._await(
                    fulltext_future, self._fulltext_timeout, "fulltext", wait=remaining
                )
            except RetrievalError as e:
                fulltext_error = e

        timing.retrieve_ms = elapsed_ms(start)
        return vector_results, vector_error, fulltext_results, fulltext_error

    def _combine(
        self,
        request: SearchRequest,
        vector_results: list[ScoredChunk],
        fulltext_results: list[ScoredChunk],
    ) -> list[ScoredChunk]:
        if request.search_type is SearchType.VECTOR:
            results = list(vector_results)
        elif request.search_type is SearchType.FULLTEXT:
            results = list(fulltext_results)
        else:
            vector_weight, fulltext_weight = self._weights(request)
            results = self._fuser.fuse(
                vector_results, fulltext_results, vector_weight, fulltext_weight
            )

        strategies = list(self._strategies)
        if request.min_score is not None:
            strategies.insert(0, MinScoreStrategy(request.min_score))
        for strategy in strategies:
            results = strategy.apply(request.query, results)

        return results[:request.limit]

    def _rerank(
        self,
        request: SearchRequest,
        query: str,
        results: list[ScoredChunk],
        timing: SearchTiming,
        degraded: list[str],
    ) -> tuple[list[ScoredChunk], bool]:
        if self._reranker is None:
            logger.info("Reranking requested but no reranker is configured")
            return results, False
        if not results:
            return results, False

        start = perf_now()
        reranked = self._reranker.rerank(
            query, results, top_n=request.rerank_top_n or request.limit
        )
        timing.rerank_ms = elapsed_ms(start)

        # The rerank service hands back the same list when it falls back.
        if reranked is results:
            degraded.append("rerank")
            return results, False
        return reranked, True

    def _await(
        self, future: Future, timeout: float, stage: str, wait: Optional[float] = None
    ) -> Any:
        try:
            return future.result(timeout=timeout if wait is None else wait)
        except FuturesTimeoutError:
            future.cancel()
            logger.error(f"Stage '{stage}' timed out after {timeout}s")
            raise RetrievalError(stage, f"timed out after {timeout}s")
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(stage, e) from e

    def _fail(self, stage: str, error: RetrievalError) -> NoReturn:
        self._metrics.record_fatal_error()
        logger.error(f"Search failed at stage '{stage}': {error}")
        cause = error.cause if isinstance(error, EmbeddingError) else error
        raise FatalRetrievalError(stage, cause) from error
