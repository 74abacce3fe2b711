from datetime import datetime

import pytest

from hybrid_rag.core.errors import ValidationError
from hybrid_rag.core.models.document import SearchScope
from hybrid_rag.core.models.search import SearchRequest
from hybrid_rag.core.services.validation import validate_request


def _request(**overrides) -> SearchRequest:
    fields = {"query": "refund policy", "scope": SearchScope(user_id="user-1")}
    fields.update(overrides)
    return SearchRequest(**fields)


def test_valid_request_passes() -> None:
    validate_request(_request())
    validate_request(_request(scope=SearchScope(user_id="u", document_ids=["doc-1"])))
    validate_request(_request(scope=SearchScope(
        user_id="u", created_after=datetime(2024, 1, 1), created_before=datetime(2024, 1, 1)
    )))


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"query": ""}, "query"),
        ({"query": "   "}, "query"),
        ({"query": "x" * 501}, "query"),
        ({"scope": SearchScope(user_id="")}, "scope.user_id"),
        ({"scope": SearchScope(user_id="u", document_ids=[])}, "scope.document_ids"),
        ({"scope": SearchScope(user_id="u", document_ids=["a", ""])}, "scope.document_ids"),
        ({"limit": 0}, "limit"),
        ({"limit": 51}, "limit"),
        ({"threshold": 1.5}, "threshold"),
        ({"threshold": -0.1}, "threshold"),
        ({"vector_weight": -1.0}, "weights"),
        ({"vector_weight": 0.0, "fulltext_weight": 0.0}, "weights"),
        ({"rerank_top_n": 0}, "rerank_top_n"),
        ({"max_context_tokens": 0}, "max_context_tokens"),
        (
            {"scope": SearchScope(
                user_id="u",
                created_after=datetime(2024, 2, 1),
                created_before=datetime(2024, 1, 1),
            )},
            "scope.created_after",
        ),
    ],
)
def test_invalid_request_is_rejected(overrides: dict, field: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_request(_request(**overrides))

    assert exc_info.value.field == field


def test_limits_are_configurable() -> None:
    validate_request(_request(query="x" * 600, limit=80), max_query_length=1000, max_limit=100)
