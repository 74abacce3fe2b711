"""Cache backend protocol for dependency injection."""
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class CacheBackendProtocol(Protocol):
    """Key-value store with TTL semantics.

    Backends may raise; ``CacheService`` absorbs their failures.
    """

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None on miss or expiry."""
        ...

    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store a JSON-serialisable value for ``ttl`` seconds."""
        ...

    def delete(self, key: str) -> bool:
        """Remove a key; True if it existed."""
        ...

    def clear(self, prefix: str = "") -> int:
        """Remove keys starting with prefix; returns the count removed."""
        ...

    def health(self) -> bool:
        """Check that the backend is reachable."""
        ...
