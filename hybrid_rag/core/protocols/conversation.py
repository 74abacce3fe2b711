"""Conversation source protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.chat import ChatMessage


@runtime_checkable
class ConversationSourceProtocol(Protocol):
    """Read-only access to conversation history."""

    def get_messages(self, conversation_id: str) -> list[ChatMessage]:
        """Messages of a conversation, oldest first."""
        ...
