"""Request validation, run before any external call."""

from ..errors import ValidationError
from ..models.document import SearchScope
from ..models.search import SearchRequest


def validate_scope(scope: SearchScope) -> None:
    if scope is None or not str(scope.user_id or "").strip():
        raise ValidationError("scope.user_id", "must be a non-empty string")

    if scope.document_ids is not None:
        if not scope.document_ids:
            raise ValidationError("scope.document_ids", "must not be an empty list")
        if any(not str(d or "").strip() for d in scope.document_ids):
            raise ValidationError("scope.document_ids", "must contain non-empty ids")

    if (
        scope.created_after is not None
        and scope.created_before is not None
        and scope.created_after > scope.created_before
    ):
        raise ValidationError("scope.created_after", "must not be later than created_before")


def validate_request(
    request: SearchRequest,
    max_query_length: int = 500,
    max_limit: int = 50,
) -> None:
    """Reject malformed requests.

    Raises:
        ValidationError: On the first invalid field.
    """
    query = (request.query or "").strip()
    if not query:
        raise ValidationError("query", "must not be empty")
    if len(query) > max_query_length:
        raise ValidationError(
            "query", f"exceeds {max_query_length} characters ({len(query)})"
        )

    validate_scope(request.scope)

    if not 1 <= request.limit <= max_limit:
        raise ValidationError("limit", f"must be between 1 and {max_limit}")
    if not 0.0 <= request.threshold <= 1.0:
        raise ValidationError("threshold", "must be between 0 and 1")

    weights = [w for w in (request.vector_weight, request.fulltext_weight) if w is not None]
    if any(w < 0 for w in weights):
        raise ValidationError("weights", "must be non-negative")
    if len(weights) == 2 and sum(weights) == 0:
        raise ValidationError("weights", "must not both be zero")

    if request.rerank_top_n is not None and request.rerank_top_n < 1:
        raise ValidationError("rerank_top_n", "must be positive")
    if request.max_context_tokens <= 0:
        raise ValidationError("max_context_tokens", "must be positive")
