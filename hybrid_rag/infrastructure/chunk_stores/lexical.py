"""Lexical matching and ranking shared by the chunk stores.

Matching follows plain-text query semantics: every non-stopword query term
must occur in the chunk. The rank is unbounded and only comparable with other
lexical ranks.
"""
import math
import re
from collections import Counter

_TOKEN = re.compile(r"\w+", re.UNICODE)

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "how",
    "in", "is", "it", "of", "on", "or", "that", "the", "this", "to", "was",
    "what", "when", "where", "which", "who", "why", "with",
})


def tokenize(text: str) -> list[str]:
    return [t.lower() for t in _TOKEN.findall(text)]


def query_terms(query: str) -> list[str]:
    """Unique query terms in order, stopwords removed."""
    terms: list[str] = []
    for token in tokenize(query):
        if token not in STOPWORDS and token not in terms:
            terms.append(token)
    return terms


def rank(terms: list[str], content: str) -> float:
    """Rank content against query terms.

    Args:
        terms: Output of `query_terms`.
        content: Chunk text.

    Returns:
        0.0 if any term is missing, otherwise the sum of log(1 + tf)
        over terms divided by 1 + log(1 + document length).
    """
    if not terms:
        return 0.0

    tokens = tokenize(content)
    counts = Counter(tokens)
    if any(counts[t] == 0 for t in terms):
        return 0.0

    raw = sum(math.log1p(counts[t]) for t in terms)
    return raw / (1.0 + math.log1p(len(tokens)))
