import logging

import requests

from hybrid_rag.core.protocols.embedder import QUERY_INPUT

logger = logging.getLogger(__name__)


class CohereEmbeddingClient:
    """Embedding client for the Cohere embed HTTP API."""

    def __init__(
        self,
        api_key: str,
        model: str = "embed-v4.0",
        url: str = "https://api.cohere.com/v2/embed",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        """Initialize client.

        Args:
            api_key: Cohere API key.
            model: Embedding model name.
            url: Embed endpoint.
            timeout: Request timeout in seconds.
            session: HTTP session (shared connection pool).
        """
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

    @property
    def model_name(self) -> str:
        return self._model

    def embed(self, texts: list[str], input_type: str = QUERY_INPUT) -> list[list[float]]:
        """Embed texts.

        Raises:
            requests.HTTPError: On a non-2xx response.
            ValueError: If the response body has no usable embeddings.
        """
        if not texts:
            return []

        resp = self._session.post(
            self._url,
            json={
                "model": self._model,
                "texts": texts,
                "input_type": input_type,
                "embedding_types": ["float"],
            },
            timeout=self._timeout,
        )
        if resp.status_code >= 400:
            logger.error(f"Cohere embed error {resp.status_code}: {resp.text[:240]}")
        resp.raise_for_status()

        data = resp.json()
        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        # v2 nests vectors by type; v1 returns a bare list.
        if isinstance(embeddings, dict):
            embeddings = embeddings.get("float")

        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise ValueError("Invalid response format from Cohere embed API")

        return [[float(v) for v in vector] for vector in embeddings]
