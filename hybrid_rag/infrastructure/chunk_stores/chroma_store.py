import logging
from datetime import datetime
from typing import Any, Optional

import requests

from hybrid_rag.core.models.document import (
    ChunkMetadata,
    ScoredChunk,
    SearchScope,
    StoredChunk,
)

from .lexical import query_terms, rank

logger = logging.getLogger(__name__)

# Tag filtering is local, so tag-scoped vector queries fetch extra rows.
TAG_OVERFETCH = 4


def build_where(scope: SearchScope) -> dict[str, Any]:
    """Chroma metadata filter for a scope.

    Tags are stored as a joined string and checked locally. Date bounds
    compare the numeric `created_ts` field.
    """
    clauses: list[dict[str, Any]] = [{"user_id": {"$eq": scope.user_id}}]
    if scope.document_ids is not None:
        clauses.append({"document_id": {"$in": list(scope.document_ids)}})
    if scope.document_types:
        clauses.append({"document_type": {"$in": list(scope.document_types)}})
    if scope.created_after is not None:
        clauses.append({"created_ts": {"$gte": scope.created_after.timestamp()}})
    if scope.created_before is not None:
        clauses.append({"created_ts": {"$lte": scope.created_before.timestamp()}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def case_variants(term: str) -> list[str]:
    """Lowercase, capitalized and uppercase spellings of a term."""
    variants = []
    for v in (term, term.capitalize(), term.upper()):
        if v not in variants:
            variants.append(v)
    return variants


def build_where_document(terms: list[str]) -> dict[str, Any]:
    """Chroma document filter matching any spelling of any term.

    `$contains` is case-sensitive, so each term is sent in the spellings
    prose usually has. Exact matching and ranking happen locally.
    """
    contains = [{"$contains": v} for t in terms for v in case_variants(t)]
    if len(contains) == 1:
        return contains[0]
    return {"$or": contains}


def _to_metadata(chunk: StoredChunk) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "user_id": chunk.user_id,
        "document_id": chunk.document_id,
        "filename": chunk.metadata.filename,
        "chunk_index": chunk.metadata.chunk_index,
        "tags": ",".join(chunk.tags),
    }
    # Chroma rejects null metadata values.
    if chunk.metadata.page_number is not None:
        meta["page_number"] = chunk.metadata.page_number
    if chunk.document_type:
        meta["document_type"] = chunk.document_type
    if chunk.created_at:
        meta["created_at"] = chunk.created_at.isoformat()
        meta["created_ts"] = chunk.created_at.timestamp()
    return meta


def _from_row(chunk_id: str, content: str, meta: dict[str, Any], score: float) -> ScoredChunk:
    created_at = meta.get("created_at")
    tags = [t for t in (meta.get("tags") or "").split(",") if t]
    return ScoredChunk(
        id=chunk_id,
        document_id=meta.get("document_id", ""),
        content=content or "",
        score=score,
        metadata=ChunkMetadata.from_dict(meta),
        tags=tags or None,
        document_type=meta.get("document_type"),
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


def _allowed(scope: SearchScope, meta: dict[str, Any], chunk: ScoredChunk) -> bool:
    return scope.allows(
        meta.get("user_id", ""),
        chunk.document_id,
        chunk.document_type,
        chunk.tags,
        chunk.created_at,
    )


class ChromaChunkStore:
    """Chunk store using ChromaDB HTTP API."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8001,
        collection_name: str = "document_chunks",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: float = 5.0,
        text_candidates: int = 200,
        session: Optional[requests.Session] = None,
    ):
        """Initialize ChromaDB client.

        Args:
            host: ChromaDB host.
            port: ChromaDB port.
            collection_name: Collection name.
            tenant: Tenant name.
            database: Database name.
            timeout: Request timeout in seconds.
            text_candidates: Chunks fetched per lexical search before ranking.
            session: HTTP session.
        """
        self._base_url = f"http://{host}:{port}/api/v2"
        self._tenant = tenant
        self._database = database
        self._collection_name = collection_name
        self._collection_id: Optional[str] = None
        self._timeout = timeout
        self._text_candidates = text_candidates
        self._session = session or requests.Session()

    @property
    def _collections_url(self) -> str:
        return f"{self._base_url}/tenants/{self._tenant}/databases/{self._database}/collections"

    def _ensure_collection(self) -> str:
        """Get or create collection, return ID."""
        if self._collection_id:
            return self._collection_id

        resp = self._session.get(self._collections_url, timeout=self._timeout)
        if resp.status_code == 200:
            for col in resp.json():
                if col["name"] == self._collection_name:
                    self._collection_id = col["id"]
                    return self._collection_id

        resp = self._session.post(
            self._collections_url,
            json={"name": self._collection_name, "metadata": {"hnsw:space": "cosine"}},
            timeout=self._timeout,
        )
        resp.raise_for_status()
        self._collection_id = resp.json()["id"]
        logger.info(f"Created collection: {self._collection_name}")
        return self._collection_id

    def add(self, chunks: list[StoredChunk]) -> None:
        """Add chunks to collection."""
        if not chunks:
            return
        col_id = self._ensure_collection()
        resp = self._session.post(
            f"{self._collections_url}/{col_id}/add",
            json={
                "ids": [c.id for c in chunks],
                "embeddings": [c.embedding for c in chunks],
                "documents": [c.content for c in chunks],
                "metadatas": [_to_metadata(c) for c in chunks],
            },
            timeout=self._timeout,
        )
        resp.raise_for_status()

    def vector_search(
        self,
        query_embedding: list[float],
        scope: SearchScope,
        limit: int,
        threshold: float,
    ) -> list[ScoredChunk]:
        """Search by embedding within scope."""
        col_id = self._ensure_collection()
        resp = self._session.post(
            f"{self._collections_url}/{col_id}/query",
            json={
                "query_embeddings": [query_embedding],
                "n_results": limit * TAG_OVERFETCH if scope.tags else limit,
                "where": build_where(scope),
                "include": ["documents", "metadatas", "distances"],
            },
            timeout=self._timeout,
        )
        resp.raise_for_status()

        data = resp.json()
        results = []

        if data.get("ids") and data["ids"][0]:
            for i in range(len(data["ids"][0])):
                similarity = 1.0 - data["distances"][0][i]
                if similarity < threshold:
                    continue
                meta = data["metadatas"][0][i] or {}
                chunk = _from_row(data["ids"][0][i], data["documents"][0][i], meta, similarity)
                if _allowed(scope, meta, chunk):
                    results.append(chunk)

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def text_search(self, query: str, scope: SearchScope, limit: int) -> list[ScoredChunk]:
        """Lexical search: Chroma narrows candidates, ranking is local."""
        terms = query_terms(query)
        if not terms:
            return []

        col_id = self._ensure_collection()
        resp = self._session.post(
            f"{self._collections_url}/{col_id}/get",
            json={
                "where": build_where(scope),
                "where_document": build_where_document(terms),
                "limit": self._text_candidates,
                "include": ["documents", "metadatas"],
            },
            timeout=self._timeout,
        )
        resp.raise_for_status()

        data = resp.json()
        ids = data.get("ids") or []
        documents = data.get("documents") or []
        metadatas = data.get("metadatas") or []

        results = []
        for chunk_id, content, meta in zip(ids, documents, metadatas):
            score = rank(terms, content or "")
            if score <= 0:
                continue
            meta = meta or {}
            chunk = _from_row(chunk_id, content, meta, score)
            if _allowed(scope, meta, chunk):
                results.append(chunk)

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def count(self) -> int:
        """Get chunk count."""
        col_id = self._ensure_collection()
        resp = self._session.get(f"{self._collections_url}/{col_id}/count", timeout=self._timeout)
        return resp.json() if resp.status_code == 200 else 0

    def health(self) -> bool:
        try:
            resp = self._session.get(f"{self._base_url}/heartbeat", timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning(f"Chroma heartbeat failed: {e}")
            return False
        return resp.status_code == 200
