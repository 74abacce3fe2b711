from dataclasses import dataclass
from threading import Lock
from typing import Any


@dataclass
class _PipelineCounters:
    requests: int = 0
    search_cache_hits: int = 0
    search_cache_misses: int = 0
    embedding_cache_hits: int = 0
    embedding_cache_misses: int = 0
    embedding_calls: int = 0
    rerank_calls: int = 0
    rerank_fallbacks: int = 0
    retriever_failures: int = 0
    fatal_errors: int = 0
    validation_errors: int = 0


class PipelineMetrics:
    """Thread-safe counters for the retrieval pipeline."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._counters = _PipelineCounters()

    def _incr(self, name: str) -> None:
        with self._lock:
            setattr(self._counters, name, getattr(self._counters, name) + 1)

    def record_request(self) -> None:
        self._incr("requests")

    def record_cache_hit(self, namespace: str) -> None:
        self._incr(f"{namespace}_cache_hits")

    def record_cache_miss(self, namespace: str) -> None:
        self._incr(f"{namespace}_cache_misses")

    def record_embedding_call(self) -> None:
        self._incr("embedding_calls")

    def record_rerank_call(self) -> None:
        self._incr("rerank_calls")

    def record_rerank_fallback(self) -> None:
        self._incr("rerank_fallbacks")

    def record_retriever_failure(self) -> None:
        self._incr("retriever_failures")

    def record_fatal_error(self) -> None:
        self._incr("fatal_errors")

    def record_validation_error(self) -> None:
        self._incr("validation_errors")

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            c = self._counters
            lookups = c.search_cache_hits + c.search_cache_misses
            hit_ratio = round(c.search_cache_hits / lookups, 4) if lookups > 0 else 0.0
            return {
                "requests": c.requests,
                "search_cache_hits": c.search_cache_hits,
                "search_cache_misses": c.search_cache_misses,
                "search_cache_hit_ratio": hit_ratio,
                "embedding_cache_hits": c.embedding_cache_hits,
                "embedding_cache_misses": c.embedding_cache_misses,
                "embedding_calls": c.embedding_calls,
                "rerank_calls": c.rerank_calls,
                "rerank_fallbacks": c.rerank_fallbacks,
                "retriever_failures": c.retriever_failures,
                "fatal_errors": c.fatal_errors,
                "validation_errors": c.validation_errors,
            }
