"""Document domain models."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional


@dataclass
class ChunkMetadata:
    """Descriptive metadata of a stored chunk."""
    filename: str
    chunk_index: int = 0
    page_number: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "chunk_index": self.chunk_index,
            "page_number": self.page_number,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChunkMetadata":
        page = data.get("page_number")
        return cls(
            filename=data.get("filename") or "unknown",
            chunk_index=int(data.get("chunk_index") or 0),
            page_number=int(page) if page is not None else None,
        )


@dataclass
class ScoredChunk:
    """Chunk with a stage-specific score.

    Scores are only comparable with other scores from the same stage
    (vector similarity, lexical rank, fused weight, rerank relevance).
    """
    id: str
    document_id: str
    content: str
    score: float
    metadata: ChunkMetadata
    tags: Optional[list[str]] = None
    document_type: Optional[str] = None
    created_at: Optional[datetime] = None
    vector_score: Optional[float] = None
    fulltext_score: Optional[float] = None
    rerank_score: Optional[float] = None

    @property
    def filename(self) -> str:
        return self.metadata.filename

    def with_score(self, score: float, **changes: Any) -> "ScoredChunk":
        """Copy of this chunk with a new score."""
        return replace(self, score=score, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "content": self.content,
            "score": self.score,
            "metadata": self.metadata.to_dict(),
            "tags": list(self.tags) if self.tags is not None else None,
            "document_type": self.document_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "vector_score": self.vector_score,
            "fulltext_score": self.fulltext_score,
            "rerank_score": self.rerank_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoredChunk":
        created_at = data.get("created_at")
        return cls(
            id=data["id"],
            document_id=data["document_id"],
            content=data.get("content", ""),
            score=float(data.get("score", 0.0)),
            metadata=ChunkMetadata.from_dict(data.get("metadata") or {}),
            tags=data.get("tags"),
            document_type=data.get("document_type"),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            vector_score=data.get("vector_score"),
            fulltext_score=data.get("fulltext_score"),
            rerank_score=data.get("rerank_score"),
        )


# Fusion output has the same shape; the score is the weighted sum.
FusedResult = ScoredChunk


@dataclass
class SearchScope:
    """Ownership and allow-list filters applied by every retriever."""
    user_id: str
    document_ids: Optional[list[str]] = None
    document_types: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None

    @property
    def has_date_range(self) -> bool:
        return self.created_after is not None or self.created_before is not None

    def allows(self, owner_id: str, document_id: str,
               document_type: Optional[str] = None,
               tags: Optional[list[str]] = None,
               created_at: Optional[datetime] = None) -> bool:
        """Check a stored chunk against this scope.

        Date bounds are inclusive. A chunk without a creation time never
        matches a date range.
        """
        if owner_id != self.user_id:
            return False
        if self.document_ids is not None and document_id not in self.document_ids:
            return False
        if self.document_types and document_type not in self.document_types:
            return False
        if self.tags and not set(self.tags) & set(tags or []):
            return False
        if self.has_date_range:
            if created_at is None:
                return False
            if self.created_after is not None and created_at < self.created_after:
                return False
            if self.created_before is not None and created_at > self.created_before:
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "document_ids": sorted(self.document_ids) if self.document_ids is not None else None,
            "document_types": sorted(self.document_types) if self.document_types else None,
            "tags": sorted(self.tags) if self.tags else None,
            "created_after": self.created_after.isoformat() if self.created_after else None,
            "created_before": self.created_before.isoformat() if self.created_before else None,
        }


@dataclass
class StoredChunk:
    """Chunk as held by a chunk store, embedding included."""
    id: str
    document_id: str
    user_id: str
    content: str
    embedding: list[float]
    metadata: ChunkMetadata
    tags: list[str] = field(default_factory=list)
    document_type: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_scored(self, score: float) -> ScoredChunk:
        return ScoredChunk(
            id=self.id,
            document_id=self.document_id,
            content=self.content,
            score=score,
            metadata=self.metadata,
            tags=list(self.tags) or None,
            document_type=self.document_type,
            created_at=self.created_at,
        )
