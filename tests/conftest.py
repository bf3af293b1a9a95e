"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from callstore.backends.memory import MemoryObjectStore
from callstore.ids import new_call_id
from callstore.models import CallRecord
from callstore.store import CallStore

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary for testing."""
    return {
        "storage": {"backend": "memory"},
        "index": {"marker_failure_policy": "log"},
        "listing": {"default_per_page": 10, "max_per_page": 50, "time_seek": True},
        "logging": {"level": "DEBUG", "format": "text"},
    }


@pytest.fixture
def object_store() -> MemoryObjectStore:
    """Create an in-memory object store."""
    return MemoryObjectStore()


@pytest.fixture
def call_store(object_store: MemoryObjectStore) -> CallStore:
    """Create a call store over the in-memory backend."""
    return CallStore(object_store)


def make_call(
    app_id: str = "a1",
    path: str = "/f",
    created_at: datetime = T0,
    call_id: str | None = None,
    **payload,
) -> CallRecord:
    """Build a call whose id embeds its creation time."""
    return CallRecord(
        id=call_id or new_call_id(created_at),
        app_id=app_id,
        path=path,
        created_at=created_at,
        payload=payload,
    )


def make_calls(count: int, app_id: str = "a1", path: str = "/f", start: datetime = T0) -> list[CallRecord]:
    """Build calls one second apart, oldest first."""
    return [make_call(app_id, path, start + timedelta(seconds=i)) for i in range(count)]


@pytest.fixture
def call_factory():
    """Factory building calls whose ids embed their creation time."""
    return make_call


@pytest.fixture
def calls_factory():
    """Factory building runs of calls one second apart, oldest first."""
    return make_calls
