"""Tests for in-memory object storage backend."""

import pytest

from callstore.backends.memory import MemoryObjectStore
from callstore.protocols import ObjectStore


@pytest.fixture
def store() -> MemoryObjectStore:
    """Create a memory object store."""
    return MemoryObjectStore()


class TestMemoryObjectStore:
    """Tests for MemoryObjectStore."""

    def test_satisfies_protocol(self, store) -> None:
        """The memory store is an ObjectStore."""
        assert isinstance(store, ObjectStore)

    @pytest.mark.asyncio
    async def test_put_and_get(self, store) -> None:
        """Test storing and reading an object."""
        await store.put("calls/a1/ff", b"value", content_type="application/json")
        assert await store.get("calls/a1/ff") == b"value"

    @pytest.mark.asyncio
    async def test_get_nonexistent(self, store) -> None:
        """Test reading a key that doesn't exist."""
        assert await store.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_put_overwrites(self, store) -> None:
        """Test that a second put replaces the object."""
        await store.put("k", b"one")
        await store.put("k", b"two")
        assert await store.get("k") == b"two"

    @pytest.mark.asyncio
    async def test_empty_object(self, store) -> None:
        """Zero-length objects are stored, not treated as missing."""
        await store.put("k", b"")
        assert await store.get("k") == b""

    @pytest.mark.asyncio
    async def test_list_sorted_by_prefix(self, store) -> None:
        """Listing returns matching keys in ascending order."""
        for key in ["p/c", "p/a", "q/a", "p/b", "pa"]:
            await store.put(key, b"")

        assert await store.list("p/") == ["p/a", "p/b", "p/c"]

    @pytest.mark.asyncio
    async def test_list_start_after_is_exclusive(self, store) -> None:
        """Listing resumes strictly after start_after."""
        for key in ["p/a", "p/b", "p/c"]:
            await store.put(key, b"")

        assert await store.list("p/", start_after="p/a") == ["p/b", "p/c"]
        assert await store.list("p/", start_after="p/aa") == ["p/b", "p/c"]
        assert await store.list("p/", start_after="p/c") == []

    @pytest.mark.asyncio
    async def test_list_limit(self, store) -> None:
        """Listing returns at most limit keys."""
        for i in range(10):
            await store.put(f"p/{i}", b"")

        assert await store.list("p/", limit=3) == ["p/0", "p/1", "p/2"]
        assert await store.list("p/", start_after="p/7", limit=3) == ["p/8", "p/9"]

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, store) -> None:
        """Test the testing helpers."""
        await store.put("a", b"1")
        await store.put("b", b"2")

        await store.delete("a")
        assert await store.get("a") is None

        await store.clear()
        assert await store.list("") == []
