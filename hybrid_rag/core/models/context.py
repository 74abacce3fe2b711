"""Context window models."""
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SourceAttribution:
    """Source of a chunk included in the document context."""
    document_id: str
    filename: str
    relevance_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "filename": self.filename,
            "relevance_score": self.relevance_score,
        }


@dataclass
class ContextWindow:
    """Bounded bundle of document evidence and dialogue history."""
    document_context: str = ""
    conversation_context: str = ""
    total_tokens: int = 0
    was_truncated: bool = False
    sources: list[SourceAttribution] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_context": self.document_context,
            "conversation_context": self.conversation_context,
            "total_tokens": self.total_tokens,
            "was_truncated": self.was_truncated,
            "sources": [s.to_dict() for s in self.sources],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContextWindow":
        return cls(
            document_context=data.get("document_context", ""),
            conversation_context=data.get("conversation_context", ""),
            total_tokens=int(data.get("total_tokens", 0)),
            was_truncated=bool(data.get("was_truncated", False)),
            sources=[SourceAttribution(**s) for s in data.get("sources", [])],
        )


@dataclass
class Citation:
    """Numbered citation found in a generated answer."""
    citation_index: int
    document_id: str
    filename: str
    relevance_score: float
