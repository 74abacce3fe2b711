"""Context assembler - fits evidence and history into a token budget."""

import logging
import math
import re

from ..errors import ValidationError
from ..models.chat import ChatMessage
from ..models.context import Citation, ContextWindow, SourceAttribution
from ..models.document import ScoredChunk

logger = logging.getLogger(__name__)

_CITATION = re.compile(r"\[(\d+)\]")


def estimate_tokens(text: str) -> int:
    """Approximate token count (~4 characters per token)."""
    return math.ceil(len(text) / 4)


def format_chunk(position: int, chunk: ScoredChunk) -> str:
    """Render a chunk with its numbered citation and source label."""
    page = chunk.metadata.page_number if chunk.metadata.page_number is not None else "N/A"
    return f"[{position}] {chunk.filename} (Page {page}): {chunk.content}"


class ContextAssembler:
    """Packs ranked chunks and conversation history into a ContextWindow."""

    def __init__(
        self,
        document_share: float = 0.7,
        relevance_floor: float = 0.5,
        recent_messages: int = 6,
    ):
        """Initialize assembler.

        Args:
            document_share: Fraction of the budget reserved for documents.
            relevance_floor: Chunks scoring at or below this are discarded.
            recent_messages: History length when prioritizing recent messages.
        """
        if not 0.0 < document_share <= 1.0:
            raise ValueError("document_share must be in (0, 1]")
        self._document_share = document_share
        self._relevance_floor = relevance_floor
        self._recent_messages = recent_messages

    def assemble(
        self,
        chunks: list[ScoredChunk],
        history: list[ChatMessage] | None = None,
        max_context_tokens: int = 4000,
        prioritize_recent: bool = True,
    ) -> ContextWindow:
        """Assemble document and conversation context.

        Args:
            chunks: Ranked chunks.
            history: Conversation messages, oldest first.
            max_context_tokens: Total token budget.
            prioritize_recent: Only consider the most recent messages.

        Returns:
            Context window within the budget.
        """
        if max_context_tokens <= 0:
            raise ValidationError("max_context_tokens", "must be positive")

        window = ContextWindow()
        document_budget = math.floor(max_context_tokens * self._document_share)

        relevant = sorted(chunks, key=lambda c: c.score, reverse=True)
        relevant = [c for c in relevant if c.score > self._relevance_floor]

        parts: list[str] = []
        for chunk in relevant:
            text = format_chunk(len(parts) + 1, chunk)
            tokens = estimate_tokens(text)
            if window.total_tokens + tokens > document_budget:
                window.was_truncated = True
                break

            parts.append(text)
            window.total_tokens += tokens
            window.sources.append(
                SourceAttribution(
                    document_id=chunk.document_id,
                    filename=chunk.filename,
                    relevance_score=chunk.score,
                )
            )
        window.document_context = "\n\n".join(parts)

        messages = list(history or [])
        if prioritize_recent:
            messages = messages[-self._recent_messages:] if self._recent_messages > 0 else []

        lines: list[str] = []
        for message in reversed(messages):
            text = message.to_line()
            tokens = estimate_tokens(text)
            if window.total_tokens + tokens > max_context_tokens:
                window.was_truncated = True
                break

            lines.insert(0, text)
            window.total_tokens += tokens
        window.conversation_context = "\n".join(lines)

        logger.info(
            f"Context: {len(window.sources)}/{len(relevant)} chunks, "
            f"{len(lines)}/{len(messages)} messages, "
            f"{window.total_tokens}/{max_context_tokens} tokens"
            f"{' (truncated)' if window.was_truncated else ''}"
        )
        return window


def parse_citations(answer: str, window: ContextWindow) -> list[Citation]:
    """Map ``[n]`` markers in a generated answer to context sources.

    Out-of-range markers are ignored; repeated markers are reported once.
    """
    citations: list[Citation] = []
    seen: set[int] = set()

    for match in _CITATION.finditer(answer or ""):
        number = int(match.group(1))
        if number in seen or not 1 <= number <= len(window.sources):
            continue
        seen.add(number)
        source = window.sources[number - 1]
        citations.append(
            Citation(
                citation_index=number,
                document_id=source.document_id,
                filename=source.filename,
                relevance_score=source.relevance_score,
            )
        )

    return citations
