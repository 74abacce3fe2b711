"""Result fuser - weighted-sum fusion of vector and full-text results."""

import logging

from ..models.document import FusedResult, ScoredChunk

logger = logging.getLogger(__name__)


def fuse(
    vector_results: list[ScoredChunk],
    fulltext_results: list[ScoredChunk],
    vector_weight: float = 0.7,
    fulltext_weight: float = 0.3,
) -> list[FusedResult]:
    """Merge two ranked lists into one list unique by chunk id.

    Scores are combined as raw weighted sums without normalization, so a
    bounded similarity and an unbounded lexical rank share one scale.
    Ties keep first-insertion order, vector results first. A repeated
    vector id replaces the earlier entry in place; every full-text
    occurrence of an id adds its weighted score.

    Args:
        vector_results: Results scored by similarity.
        fulltext_results: Results scored by lexical rank.
        vector_weight: Weight of the similarity score.
        fulltext_weight: Weight of the lexical score.

    Returns:
        Fused results sorted by fused score, highest first.
    """
    fused: dict[str, FusedResult] = {}

    for r in vector_results:
        fused[r.id] = r.with_score(r.score * vector_weight, vector_score=r.score)

    for r in fulltext_results:
        existing = fused.get(r.id)
        if existing is None:
            fused[r.id] = r.with_score(r.score * fulltext_weight, fulltext_score=r.score)
        else:
            fused[r.id] = existing.with_score(
                existing.score + r.score * fulltext_weight,
                fulltext_score=(existing.fulltext_score or 0.0) + r.score,
            )

    # sorted() is stable: equal scores stay in insertion order.
    results = sorted(fused.values(), key=lambda r: r.score, reverse=True)

    overlap = len(vector_results) + len(fulltext_results) - len(results)
    logger.info(
        f"Fusion: {len(vector_results)} vector + {len(fulltext_results)} full-text "
        f"→ {len(results)} unique (overlap={overlap})"
    )
    return results


class ResultFuser:
    """Fuser bound to default weights."""

    def __init__(self, vector_weight: float = 0.7, fulltext_weight: float = 0.3):
        self._vector_weight = vector_weight
        self._fulltext_weight = fulltext_weight

    @property
    def weights(self) -> tuple[float, float]:
        return self._vector_weight, self._fulltext_weight

    def fuse(
        self,
        vector_results: list[ScoredChunk],
        fulltext_results: list[ScoredChunk],
        vector_weight: float | None = None,
        fulltext_weight: float | None = None,
    ) -> list[FusedResult]:
        return fuse(
            vector_results,
            fulltext_results,
            self._vector_weight if vector_weight is None else vector_weight,
            self._fulltext_weight if fulltext_weight is None else fulltext_weight,
        )
