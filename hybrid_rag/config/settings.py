from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    # Providers
    embedding_provider: str = "cohere"  # "cohere" | "local"
    rerank_provider: str = "cohere"  # "cohere" | "local" | "none"
    chunk_store: str = "chroma"  # "chroma" | "memory"
    cache_backend: str = "memory"  # "memory" | "redis" | "tiered"

    chroma_host: str = "localhost"
    chroma_port: int = 8001
    chroma_collection: str = "document_chunks"

    cohere_api_key: str = ""
    cohere_embed_url: str = "https://api.cohere.com/v2/embed"
    cohere_rerank_url: str = "https://api.cohere.com/v2/rerank"

    embedding_model: str = "embed-v4.0"
    embedding_dimensions: int = 1024
    local_embedding_model: str = "intfloat/multilingual-e5-base"

    reranker_model: str = "rerank-v3.5"
    local_reranker_model: str = "BAAI/bge-reranker-v2-m3"

    redis_url: str = "redis://localhost:6379/0"

    # Timeouts (seconds)
    embed_timeout: float = 10.0
    vector_search_timeout: float = 5.0
    fulltext_search_timeout: float = 5.0
    rerank_timeout: float = 15.0
    cache_timeout: float = 1.0

    # Cache
    embedding_cache_ttl: int = 7 * 24 * 60 * 60
    search_cache_ttl: int = 300
    cache_l1_size: int = 1000
    cache_l1_ttl: int = 300

    # Retrieval
    rag_limit: int = 10
    rag_max_limit: int = 50
    rag_threshold: float = 0.5
    rag_vector_weight: float = 0.7
    rag_fulltext_weight: float = 0.3
    rag_score_ratio: float = 0.0
    max_query_length: int = 500
    cache_write_workers: int = 4

    # Context assembly
    max_context_tokens: int = 4000
    context_document_share: float = 0.7
    context_relevance_floor: float = 0.5
    context_recent_messages: int = 6

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
