
import logging
from abc import ABC, abstractmethod

from ..models.document import ScoredChunk

logger = logging.getLogger(__name__)


class ScoringStrategy(ABC):
    """Base class for post-fusion filters."""

    @abstractmethod
    def apply(self, query: str, results: list[ScoredChunk]) -> list[ScoredChunk]:
        """Apply strategy to results."""
        ...


class MinScoreStrategy(ScoringStrategy):
    """Drop results whose fused score is below an absolute minimum."""

    def __init__(self, min_score: float):
        self._min_score = min_score

    def apply(self, query: str, results: list[ScoredChunk]) -> list[ScoredChunk]:
        filtered = [r for r in results if r.score >= self._min_score]

        if len(filtered) < len(results):
            logger.info(
                f"Min score: {len(results)} → {len(filtered)} (min={self._min_score:.2f})"
            )

        return filtered


class ScoreCutoffStrategy(ScoringStrategy):
    """Filter results with score much lower than top-1."""

    def __init__(self, score_ratio: float = 0.3):
        """Initialize strategy.

        Args:
            score_ratio: Minimum ratio of score to max_score.
        """
        self._score_ratio = score_ratio

    def apply(self, query: str, results: list[ScoredChunk]) -> list[ScoredChunk]:
        """Filter results below threshold."""
        if not results:
            return results

        max_score = max(r.score for r in results)
        min_score = max_score * self._score_ratio

        filtered = [r for r in results if r.score >= min_score]

        if len(filtered) < len(results):
            logger.info(
                f"Score cutoff: {len(results)} → {len(filtered)} "
                f"(max={max_score:.2f}, min_allowed={min_score:.2f})"
            )

        return filtered
