from datetime import datetime

import pytest
import requests

from hybrid_rag.core.models.document import ChunkMetadata, SearchScope, StoredChunk
from hybrid_rag.infrastructure.chunk_stores.chroma_store import (
    ChromaChunkStore,
    build_where,
    build_where_document,
)
from hybrid_rag.infrastructure.chunk_stores.lexical import query_terms, rank
from hybrid_rag.infrastructure.chunk_stores.memory_store import InMemoryChunkStore

from tests.fakes import FakeResponse, FakeSession


def _stored(chunk_id, content, embedding, user_id="user-1", document_id="doc-1", **kwargs):
    return StoredChunk(
        id=chunk_id,
        document_id=document_id,
        user_id=user_id,
        content=content,
        embedding=embedding,
        metadata=ChunkMetadata(filename=f"{document_id}.pdf"),
        **kwargs,
    )


def test_query_terms_drop_stopwords_and_duplicates() -> None:
    assert query_terms("What is the refund policy for refund") == ["refund", "policy"]


def test_rank_requires_every_term() -> None:
    terms = ["refund", "policy"]

    assert rank(terms, "The refund policy covers refund requests") > 0
    assert rank(terms, "The refund window is 30 days") == 0.0
    assert rank([], "anything") == 0.0


def test_rank_prefers_denser_matches() -> None:
    terms = ["refund"]
    short = rank(terms, "refund rules")
    long = rank(terms, "refund " + "filler " * 50)

    assert short > long


def test_memory_store_vector_search_is_scoped() -> None:
    store = InMemoryChunkStore([
        _stored("a", "alpha", [1.0, 0.0]),
        _stored("b", "beta", [0.7, 0.7]),
        _stored("c", "gamma", [0.0, 1.0]),
        _stored("x", "other user", [1.0, 0.0], user_id="user-2"),
    ])

    results = store.vector_search([1.0, 0.0], SearchScope(user_id="user-1"), limit=10, threshold=0.5)

    assert [r.id for r in results] == ["a", "b"]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.7071, abs=1e-3)


def test_memory_store_respects_document_allow_list() -> None:
    store = InMemoryChunkStore([
        _stored("a", "refund policy", [1.0, 0.0], document_id="doc-1"),
        _stored("b", "refund policy", [1.0, 0.0], document_id="doc-2"),
    ])
    scope = SearchScope(user_id="user-1", document_ids=["doc-2"])

    assert [r.id for r in store.vector_search([1.0, 0.0], scope, 10, 0.0)] == ["b"]
    assert [r.id for r in store.text_search("refund policy", scope, 10)] == ["b"]


def test_memory_store_applies_date_range() -> None:
    store = InMemoryChunkStore([
        _stored("old", "refund policy", [1.0], created_at=datetime(2023, 12, 31)),
        _stored("new", "refund policy", [1.0], created_at=datetime(2024, 3, 1)),
        _stored("undated", "refund policy", [1.0]),
    ])
    scope = SearchScope(user_id="user-1", created_after=datetime(2024, 1, 1))

    assert [r.id for r in store.text_search("refund policy", scope, 10)] == ["new"]
    assert [r.id for r in store.vector_search([1.0], scope, 10, 0.0)] == ["new"]


def test_scope_date_bounds_are_inclusive_and_keyed() -> None:
    day = datetime(2024, 1, 1)
    scope = SearchScope(user_id="u", created_after=day, created_before=day)

    assert scope.allows("u", "d", created_at=day)
    assert not scope.allows("u", "d", created_at=datetime(2024, 1, 2))
    assert not scope.allows("u", "d")
    assert scope.to_dict()["created_after"] == "2024-01-01T00:00:00"
    assert SearchScope(user_id="u").to_dict()["created_before"] is None


def test_memory_store_text_search_ranks_matches() -> None:
    store = InMemoryChunkStore([
        _stored("a", "refund policy details", [1.0]),
        _stored("b", "shipping policy", [1.0]),
        _stored("c", "refund policy and refund forms", [1.0]),
    ])

    results = store.text_search("refund policy", SearchScope(user_id="user-1"), limit=10)

    assert {r.id for r in results} == {"a", "c"}
    assert results[0].score >= results[1].score
    assert len(store) == 3


def test_build_where_combines_scope_filters() -> None:
    assert build_where(SearchScope(user_id="u")) == {"user_id": {"$eq": "u"}}
    assert build_where(SearchScope(user_id="u", document_ids=["d1"], document_types=["pdf"])) == {
        "$and": [
            {"user_id": {"$eq": "u"}},
            {"document_id": {"$in": ["d1"]}},
            {"document_type": {"$in": ["pdf"]}},
        ]
    }
    assert build_where_document(["42"]) == {"$contains": "42"}
    assert build_where_document(["refund"]) == {
        "$or": [{"$contains": "refund"}, {"$contains": "Refund"}, {"$contains": "REFUND"}]
    }


def test_build_where_adds_date_bounds() -> None:
    after = datetime(2024, 1, 1)
    before = datetime(2024, 6, 30)

    where = build_where(SearchScope(user_id="u", created_after=after, created_before=before))

    assert where == {
        "$and": [
            {"user_id": {"$eq": "u"}},
            {"created_ts": {"$gte": after.timestamp()}},
            {"created_ts": {"$lte": before.timestamp()}},
        ]
    }


def _chroma(session: FakeSession) -> ChromaChunkStore:
    store = ChromaChunkStore(session=session)
    store._collection_id = "col-1"
    return store


def test_chroma_vector_search_converts_distance_to_similarity() -> None:
    session = FakeSession(post_responses=[FakeResponse({
        "ids": [["a", "b"]],
        "documents": [["alpha", "beta"]],
        "metadatas": [[
            {"user_id": "user-1", "document_id": "doc-1", "filename": "a.pdf", "page_number": 2},
            {"user_id": "user-1", "document_id": "doc-1", "filename": "a.pdf"},
        ]],
        "distances": [[0.1, 0.7]],
    })])

    results = _chroma(session).vector_search([0.1], SearchScope(user_id="user-1"), 5, 0.5)

    assert [r.id for r in results] == ["a"]
    assert results[0].score == pytest.approx(0.9)
    assert results[0].metadata.page_number == 2
    _, url, kwargs = session.requests[0]
    assert url.endswith("/collections/col-1/query")
    assert kwargs["json"]["where"] == {"user_id": {"$eq": "user-1"}}


def test_chroma_text_search_ranks_locally() -> None:
    created = datetime(2024, 5, 1, 12, 0)
    session = FakeSession(post_responses=[FakeResponse({
        "ids": ["a", "b"],
        "documents": ["refund policy text", "refund only"],
        "metadatas": [
            {"user_id": "user-1", "document_id": "doc-1", "filename": "a.pdf",
             "tags": "billing,faq", "created_at": created.isoformat()},
            {"user_id": "user-1", "document_id": "doc-2", "filename": "b.pdf"},
        ],
    })])

    results = _chroma(session).text_search("refund policy", SearchScope(user_id="user-1"), 5)

    assert [r.id for r in results] == ["a"]
    assert results[0].tags == ["billing", "faq"]
    assert results[0].created_at == created
    body = session.requests[0][2]["json"]
    assert body["where_document"] == {"$or": [
        {"$contains": "refund"}, {"$contains": "Refund"}, {"$contains": "REFUND"},
        {"$contains": "policy"}, {"$contains": "Policy"}, {"$contains": "POLICY"},
    ]}


def test_chroma_text_search_matches_capitalized_documents() -> None:
    session = FakeSession(post_responses=[FakeResponse({
        "ids": ["a"],
        "documents": ["Python is the language of the pipeline"],
        "metadatas": [{"user_id": "user-1", "document_id": "doc-1", "filename": "a.pdf"}],
    })])

    results = _chroma(session).text_search("python", SearchScope(user_id="user-1"), 5)

    assert [r.id for r in results] == ["a"]
    contains = session.requests[0][2]["json"]["where_document"]["$or"]
    assert {"$contains": "Python"} in contains


def test_chroma_tag_scoped_vector_search_overfetches() -> None:
    rows = [("a", "faq"), ("b", "billing"), ("c", "billing")]
    session = FakeSession(post_responses=[FakeResponse({
        "ids": [[r[0] for r in rows]],
        "documents": [["text"] * 3],
        "metadatas": [[
            {"user_id": "user-1", "document_id": "doc-1", "filename": "a.pdf", "tags": tag}
            for _, tag in rows
        ]],
        "distances": [[0.1, 0.2, 0.3]],
    })])
    scope = SearchScope(user_id="user-1", tags=["billing"])

    results = _chroma(session).vector_search([0.1], scope, 2, 0.5)

    assert [r.id for r in results] == ["b", "c"]
    assert session.requests[0][2]["json"]["n_results"] > 2


def test_chroma_errors_propagate() -> None:
    session = FakeSession(post_responses=[FakeResponse({"error": "boom"}, status_code=500)])

    with pytest.raises(requests.HTTPError):
        _chroma(session).vector_search([0.1], SearchScope(user_id="user-1"), 5, 0.5)


def test_chroma_add_writes_flat_metadata() -> None:
    session = FakeSession(post_responses=[FakeResponse({})])
    chunk = _stored("a", "alpha", [0.1], tags=["faq"], document_type="pdf")

    _chroma(session).add([chunk])

    body = session.requests[0][2]["json"]
    assert body["ids"] == ["a"]
    assert body["metadatas"][0] == {
        "user_id": "user-1",
        "document_id": "doc-1",
        "filename": "doc-1.pdf",
        "chunk_index": 0,
        "tags": "faq",
        "document_type": "pdf",
    }


def test_chroma_add_writes_numeric_creation_time() -> None:
    session = FakeSession(post_responses=[FakeResponse({})])
    created = datetime(2024, 5, 1, 12, 0)

    _chroma(session).add([_stored("a", "alpha", [0.1], created_at=created)])

    meta = session.requests[0][2]["json"]["metadatas"][0]
    assert meta["created_at"] == created.isoformat()
    assert meta["created_ts"] == created.timestamp()


def test_chroma_health_reports_unreachable_store() -> None:
    class DownSession(FakeSession):
        def get(self, url, **kwargs):
            raise requests.ConnectionError("refused")

    assert ChromaChunkStore(session=DownSession()).health() is False
    assert ChromaChunkStore(session=FakeSession(get_responses=[FakeResponse({})])).health() is True
