"""In-memory object storage."""

import asyncio
import bisect
from typing import Any


class MemoryObjectStore:
    """In-memory object store with S3 listing semantics.

    Suitable for development and testing. Data is lost on restart.
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize memory object store.

        Args:
            **kwargs: Ignored (for compatibility with other backends)
        """
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def put(self, key: str, value: bytes, content_type: str | None = None) -> None:
        """Store an object."""
        async with self._lock:
            self._data[key] = bytes(value)

    async def get(self, key: str) -> bytes | None:
        """Get an object's content."""
        async with self._lock:
            return self._data.get(key)

    async def list(
        self,
        prefix: str,
        start_after: str | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """List keys with a prefix, ascending, strictly after ``start_after``."""
        async with self._lock:
            keys = sorted(k for k in self._data if k.startswith(prefix))

        if start_after:
            keys = keys[bisect.bisect_right(keys, start_after):]
        if limit is not None:
            keys = keys[:limit]
        return keys

    async def delete(self, key: str) -> None:
        """Delete an object. Useful for testing."""
        async with self._lock:
            self._data.pop(key, None)

    async def clear(self) -> None:
        """Clear all data. Useful for testing."""
        async with self._lock:
            self._data.clear()
