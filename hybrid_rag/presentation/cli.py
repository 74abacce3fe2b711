import argparse
import json
import logging
import sys
from datetime import datetime
from urllib.parse import urlsplit

import httpx

from hybrid_rag.config.settings import settings
from hybrid_rag.container import configure_container, container
from hybrid_rag.core.errors import FatalRetrievalError, ValidationError
from hybrid_rag.core.models import SearchRequest, SearchScope
from hybrid_rag.core.protocols.cache import CacheBackendProtocol
from hybrid_rag.core.protocols.chunk_store import ChunkStoreProtocol
from hybrid_rag.core.services.search_service import SearchService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def check_endpoint(url: str, timeout: float = 5.0) -> bool:
    """Check that an HTTP endpoint answers at all.

    Any HTTP status counts as reachable; only transport errors do not.
    """
    parts = urlsplit(url)
    base = f"{parts.scheme}://{parts.netloc}"
    try:
        httpx.get(base, timeout=timeout)
        return True
    except httpx.HTTPError as e:
        logger.info(f"Endpoint {base} unreachable: {e}")
        return False


def cmd_search(argv: list[str]) -> int:
    """Search command - run the pipeline and print the context."""
    parser = argparse.ArgumentParser(prog="hybrid-rag search")
    parser.add_argument("query")
    parser.add_argument("--user", required=True)
    parser.add_argument("--docs", help="comma-separated document ids")
    parser.add_argument("--after", type=datetime.fromisoformat, help="ISO created-after bound")
    parser.add_argument("--before", type=datetime.fromisoformat, help="ISO created-before bound")
    parser.add_argument("--limit", type=int, default=settings.rag_limit)
    parser.add_argument("--threshold", type=float, default=settings.rag_threshold)
    parser.add_argument("--rerank", action="store_true")
    parser.add_argument("--json", action="store_true", dest="as_json")
    args = parser.parse_args(argv)

    document_ids = None
    if args.docs is not None:
        document_ids = [d.strip() for d in args.docs.split(",")]

    request = SearchRequest(
        query=args.query,
        scope=SearchScope(
            user_id=args.user,
            document_ids=document_ids,
            created_after=args.after,
            created_before=args.before,
        ),
        limit=args.limit,
        threshold=args.threshold,
        enable_rerank=args.rerank,
        max_context_tokens=settings.max_context_tokens,
    )

    configure_container(settings)
    service = container.resolve(SearchService)
    try:
        response = service.search(request)
    except ValidationError as e:
        logger.error(f"Invalid request: {e}")
        return 2
    except FatalRetrievalError as e:
        logger.error(f"Search failed: {e}")
        return 1
    finally:
        service.close()

    if args.as_json:
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(response.context.document_context or "(no relevant documents)")
    print()
    print(f"Sources: {', '.join(response.sources) or '-'}")
    print(f"Tokens: {response.context.total_tokens} (truncated={response.context.was_truncated})")
    if response.degraded:
        print(f"Degraded: {', '.join(response.degraded)}")
    return 0


def cmd_health() -> int:
    """Health command - report dependency availability."""
    configure_container(settings)

    store_ok = container.resolve(ChunkStoreProtocol).health()
    cache_ok = container.resolve(CacheBackendProtocol).health()
    logger.info(f"Chunk store ({settings.chunk_store}): {'ok' if store_ok else 'down'}")
    logger.info(f"Cache ({settings.cache_backend}): {'ok' if cache_ok else 'down'}")

    if settings.embedding_provider == "cohere":
        embed_ok = check_endpoint(settings.cohere_embed_url)
        logger.info(f"Embedding endpoint: {'ok' if embed_ok else 'down'}")

    return 0 if store_ok else 1


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: python -m hybrid_rag.presentation.cli <command>")
        print("Commands: search, health")
        sys.exit(1)

    command = sys.argv[1]

    if command == "search":
        sys.exit(cmd_search(sys.argv[2:]))
    elif command == "health":
        sys.exit(cmd_health())
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
