from collections import defaultdict
from threading import Lock

from hybrid_rag.core.models.chat import ChatMessage


class InMemoryConversationSource:
    """Conversation history held in process memory."""

    def __init__(self):
        self._messages: dict[str, list[ChatMessage]] = defaultdict(list)
        self._lock = Lock()

    def append(self, conversation_id: str, message: ChatMessage) -> None:
        with self._lock:
            self._messages[conversation_id].append(message)

    def get_messages(self, conversation_id: str) -> list[ChatMessage]:
        with self._lock:
            return list(self._messages.get(conversation_id, []))
