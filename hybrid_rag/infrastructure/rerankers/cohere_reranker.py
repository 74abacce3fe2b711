import logging

import requests

from hybrid_rag.core.models.rerank import RerankHit

logger = logging.getLogger(__name__)


class CohereRerankClient:
    """Reranker using the Cohere rerank HTTP API."""

    def __init__(
        self,
        api_key: str,
        model: str = "rerank-v3.5",
        url: str = "https://api.cohere.com/v2/rerank",
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self._model = model
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def rerank(self, query: str, documents: list[str], top_n: int) -> list[RerankHit]:
        if not documents:
            return []

        resp = self._session.post(
            self._url,
            json={
                "model": self._model,
                "query": query,
                "documents": documents,
                "top_n": max(1, min(top_n, len(documents))),
            },
            timeout=self._timeout,
        )
        if resp.status_code >= 400:
            logger.error(f"Cohere rerank error {resp.status_code}: {resp.text[:240]}")
        resp.raise_for_status()

        data = resp.json()
        rows = data.get("results") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise ValueError("Invalid response format from Cohere rerank API")

        hits = []
        for row in rows:
            if not isinstance(row, dict) or "index" not in row:
                continue
            hits.append(
                RerankHit(
                    index=int(row["index"]),
                    relevance_score=float(row.get("relevance_score", 0.0)),
                )
            )
        return hits
