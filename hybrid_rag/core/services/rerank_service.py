"""Rerank service - optional relevance reordering with fallback."""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Optional

from ...observability.metrics import PipelineMetrics
from ..models.document import ScoredChunk
from ..models.rerank import RerankHit
from ..protocols.reranker import RerankClientProtocol

logger = logging.getLogger(__name__)


class RerankService:
    """Reorders results by an external relevance model.

    Any failure of the rerank call returns the input unchanged.
    """

    def __init__(
        self,
        client: RerankClientProtocol,
        timeout: float = 15.0,
        executor: Optional[Executor] = None,
        metrics: Optional[PipelineMetrics] = None,
    ):
        """Initialize rerank service.

        Args:
            client: Rerank service client.
            timeout: Seconds to wait for the rerank call.
            executor: Executor running the call; a fresh single-thread pool
                per call by default.
            metrics: Metrics store.
        """
        self._client = client
        self._timeout = timeout
        self._executor = executor
        self._metrics = metrics or PipelineMetrics()

    def rerank(
        self,
        query: str,
        results: list[ScoredChunk],
        top_n: Optional[int] = None,
    ) -> list[ScoredChunk]:
        """Rerank results by relevance to the query.

        Args:
            query: User query.
            results: Fused results, in their current order.
            top_n: Number of results requested from the service.

        Returns:
            Results scored and ordered by relevance, or ``results``
            unchanged if reranking failed.
        """
        if not results:
            return results

        documents = [r.content for r in results]
        top_n = min(top_n or len(results), len(results))

        self._metrics.record_rerank_call()
        pool = self._executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="rerank"
        )
        try:
            future = pool.submit(self._client.rerank, query, documents, top_n)
            hits = future.result(timeout=self._timeout)
        except FuturesTimeoutError:
            future.cancel()
            return self._fallback(results, f"timed out after {self._timeout}s")
        except Exception as e:
            return self._fallback(results, str(e))
        finally:
            if pool is not self._executor:
                pool.shutdown(wait=False)

        if not hits:
            return self._fallback(results, "empty response")

        reranked = self._apply(results, hits)
        if not reranked:
            return self._fallback(results, "no mappable results")

        if logger.isEnabledFor(logging.DEBUG):
            top_scores = ", ".join(f"{r.score:.2f}" for r in reranked[:3])
            logger.debug(f"Reranker top-3 scores: [{top_scores}]")

        logger.info(f"Reranked {len(results)} → {len(reranked)} results")
        return reranked

    def _apply(self, results: list[ScoredChunk], hits: list[RerankHit]) -> list[ScoredChunk]:
        reranked: list[ScoredChunk] = []
        seen: set[int] = set()

        for hit in hits:
            index = getattr(hit, "index", None)
            if not isinstance(index, int) or not 0 <= index < len(results) or index in seen:
                logger.warning(f"Dropping unmappable rerank result: index={index}")
                continue
            try:
                relevance = float(hit.relevance_score)
            except (TypeError, ValueError):
                logger.warning(f"Dropping rerank result with bad score at index={index}")
                continue
            seen.add(index)
            original = results[index]
            reranked.append(original.with_score(relevance, rerank_score=relevance))

        reranked.sort(key=lambda r: r.score, reverse=True)
        return reranked

    def _fallback(self, results: list[ScoredChunk], reason: str) -> list[ScoredChunk]:
        logger.warning(f"Reranking failed ({reason}), keeping fused order")
        self._metrics.record_rerank_fallback()
        return results
