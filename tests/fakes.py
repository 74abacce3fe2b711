"""Test doubles for the retrieval pipeline."""
import time
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional

import requests

from hybrid_rag.core.models.document import ChunkMetadata, ScoredChunk
from hybrid_rag.core.models.rerank import RerankHit
from hybrid_rag.core.protocols.embedder import QUERY_INPUT
from hybrid_rag.infrastructure.cache.memory_cache import InMemoryCacheBackend


class ImmediateExecutor(Executor):
    """Runs submitted callables inline so fire-and-forget work is observable."""

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class FakeEmbeddingClient:
    def __init__(self, vector: Optional[list[float]] = None, error: Optional[Exception] = None):
        self.vector = vector if vector is not None else [0.1, 0.2, 0.3]
        self.error = error
        self.calls: list[tuple[list[str], str]] = []

    @property
    def model_name(self) -> str:
        return "fake-embed"

    def embed(self, texts: list[str], input_type: str = QUERY_INPUT) -> list[list[float]]:
        self.calls.append((list(texts), input_type))
        if self.error is not None:
            raise self.error
        return [list(self.vector) for _ in texts]


class FakeChunkStore:
    def __init__(
        self,
        vector_results: Optional[list[ScoredChunk]] = None,
        text_results: Optional[list[ScoredChunk]] = None,
        vector_error: Optional[Exception] = None,
        text_error: Optional[Exception] = None,
    ):
        self.vector_results = vector_results or []
        self.text_results = text_results or []
        self.vector_error = vector_error
        self.text_error = text_error
        self.vector_calls: list[dict[str, Any]] = []
        self.text_calls: list[dict[str, Any]] = []

    def vector_search(self, query_embedding, scope, limit, threshold):
        self.vector_calls.append(
            {"embedding": query_embedding, "scope": scope, "limit": limit, "threshold": threshold}
        )
        if self.vector_error is not None:
            raise self.vector_error
        return list(self.vector_results)

    def text_search(self, query, scope, limit):
        self.text_calls.append({"query": query, "scope": scope, "limit": limit})
        if self.text_error is not None:
            raise self.text_error
        return list(self.text_results)

    def health(self) -> bool:
        return True


class FakeRerankClient:
    def __init__(self, hits: Optional[list[RerankHit]] = None, error: Optional[Exception] = None):
        self.hits = hits or []
        self.error = error
        self.calls: list[tuple[str, list[str], int]] = []

    def rerank(self, query: str, documents: list[str], top_n: int) -> list[RerankHit]:
        self.calls.append((query, list(documents), top_n))
        if self.error is not None:
            raise self.error
        return list(self.hits)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_chunk(
    chunk_id: str,
    score: float,
    content: Optional[str] = None,
    document_id: str = "doc-1",
    filename: str = "guide.pdf",
    page_number: Optional[int] = None,
) -> ScoredChunk:
    return ScoredChunk(
        id=chunk_id,
        document_id=document_id,
        content=content if content is not None else f"content of {chunk_id}",
        score=score,
        metadata=ChunkMetadata(filename=filename, page_number=page_number),
    )


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, get_responses=None, post_responses=None):
        self.headers = {}
        self.get_responses = list(get_responses or [])
        self.post_responses = list(post_responses or [])
        self.requests = []

    def get(self, url, **kwargs):
        self.requests.append(("GET", url, kwargs))
        return self.get_responses.pop(0)

    def post(self, url, **kwargs):
        self.requests.append(("POST", url, kwargs))
        return self.post_responses.pop(0)


class SlowEmbeddingClient(FakeEmbeddingClient):
    def __init__(self, delay: float, **kwargs: Any):
        super().__init__(**kwargs)
        self.delay = delay

    def embed(self, texts: list[str], input_type: str = QUERY_INPUT) -> list[list[float]]:
        time.sleep(self.delay)
        return super().embed(texts, input_type)


class SlowChunkStore(FakeChunkStore):
    def __init__(self, delay: float, **kwargs: Any):
        super().__init__(**kwargs)
        self.delay = delay

    def vector_search(self, query_embedding, scope, limit, threshold):
        time.sleep(self.delay)
        return super().vector_search(query_embedding, scope, limit, threshold)

    def text_search(self, query, scope, limit):
        time.sleep(self.delay)
        return super().text_search(query, scope, limit)


class SlowWriteCacheBackend(InMemoryCacheBackend):
    """Reads are instant, every write takes `delay` seconds."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    def set(self, key: str, value: Any, ttl: int) -> None:
        time.sleep(self.delay)
        super().set(key, value, ttl)
