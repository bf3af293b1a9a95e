"""ObjectStore protocol for flat, sorted object namespaces."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol for object storage backends (S3 and compatible, memory).

    Implementations raise :class:`callstore.exceptions.BackendError` for any
    failure other than a missing key.
    """

    async def put(self, key: str, value: bytes, content_type: str | None = None) -> None:
        """Store an object, replacing any existing one."""
        ...

    async def get(self, key: str) -> bytes | None:
        """Get an object's content. Returns None if not found."""
        ...

    async def list(
        self,
        prefix: str,
        start_after: str | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """List keys with a prefix in ascending lexicographic order.

        Only keys strictly greater than ``start_after`` are returned, at most
        ``limit`` of them.
        """
        ...
