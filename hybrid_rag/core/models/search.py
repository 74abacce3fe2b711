"""Search request/response models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .chat import ChatMessage
from .context import ContextWindow
from .document import ScoredChunk, SearchScope


class SearchType(Enum):
    """Which retrievers a request uses."""
    HYBRID = "hybrid"
    VECTOR = "vector"
    FULLTEXT = "fulltext"


@dataclass
class SearchRequest:
    """Search request into the pipeline.

    Weights left as None fall back to the configured fusion weights.
    """
    query: str
    scope: SearchScope
    limit: int = 10
    threshold: float = 0.5
    vector_weight: Optional[float] = None
    fulltext_weight: Optional[float] = None
    enable_rerank: bool = False
    rerank_top_n: Optional[int] = None
    max_context_tokens: int = 4000
    prioritize_recent: bool = True
    search_type: SearchType = SearchType.HYBRID
    min_score: Optional[float] = None
    conversation_id: Optional[str] = None
    history: Optional[list[ChatMessage]] = None


@dataclass
class SearchTiming:
    """Per-stage latency in milliseconds."""
    embed_ms: float = 0.0
    retrieve_ms: float = 0.0
    rerank_ms: float = 0.0
    assemble_ms: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "embed_ms": self.embed_ms,
            "retrieve_ms": self.retrieve_ms,
            "rerank_ms": self.rerank_ms,
            "assemble_ms": self.assemble_ms,
        }


@dataclass
class SearchResponse:
    """Pipeline output: ranked results, assembled context and timings."""
    results: list[ScoredChunk]
    context: ContextWindow
    timing: SearchTiming = field(default_factory=SearchTiming)
    cache_hit: bool = False
    reranked: bool = False
    degraded: list[str] = field(default_factory=list)

    @property
    def sources(self) -> list[str]:
        """Unique source filenames in context order."""
        seen = set()
        sources = []
        for s in self.context.sources:
            if s.filename not in seen:
                seen.add(s.filename)
                sources.append(s.filename)
        return sources

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "context": self.context.to_dict(),
            "timing": self.timing.to_dict(),
            "reranked": self.reranked,
            "degraded": list(self.degraded),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResponse":
        return cls(
            results=[ScoredChunk.from_dict(r) for r in data.get("results", [])],
            context=ContextWindow.from_dict(data.get("context") or {}),
            timing=SearchTiming(**(data.get("timing") or {})),
            reranked=bool(data.get("reranked", False)),
            degraded=list(data.get("degraded", [])),
        )
