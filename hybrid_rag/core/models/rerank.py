"""Rerank service models."""
from dataclasses import dataclass


@dataclass
class RerankHit:
    """Relevance score for one input document, by its original position."""
    index: int
    relevance_score: float
