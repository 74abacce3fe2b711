"""Chat domain models."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass
class ChatMessage:
    """Chat message."""
    role: str  # "user" | "assistant" | "system"
    content: str
    created_at: Optional[datetime] = None

    def to_line(self) -> str:
        """Render as a transcript line."""
        return f"{self.role}: {self.content}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        return cls(role=data["role"], content=data.get("content", ""))
