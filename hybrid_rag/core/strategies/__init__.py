"""Scoring and filtering strategies."""
from .scoring import ScoringStrategy, MinScoreStrategy, ScoreCutoffStrategy

__all__ = [
    "ScoringStrategy",
    "MinScoreStrategy",
    "ScoreCutoffStrategy",
]
