"""Tests for server routes."""

from datetime import datetime, timedelta, timezone

import pytest
from starlette.testclient import TestClient

from callstore.backends.memory import MemoryObjectStore
from callstore.exceptions import BackendError, InvalidFilterError
from callstore.keys import primary_key
from callstore.models import LogRecord
from callstore.server.app import create_app
from callstore.server.routes import parse_time
from callstore.store import CallStore

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class BrokenObjectStore(MemoryObjectStore):
    """Memory store whose reads fail."""

    async def get(self, key: str) -> bytes | None:
        raise BackendError(f"failed to read {key}: injected")


@pytest.fixture
def store(object_store: MemoryObjectStore) -> CallStore:
    """Create a call store with a small page size."""
    return CallStore(object_store, default_per_page=2, max_per_page=10)


@pytest.fixture
def client(store: CallStore):
    """Create a test client with its lifespan running."""
    with TestClient(create_app(store)) as test_client:
        yield test_client


@pytest.fixture
def seeded(client: TestClient, store: CallStore, calls_factory):
    """Insert five calls on /f, oldest first."""
    calls = calls_factory(5)
    for call in calls:
        client.portal.call(store.insert_call, call)
    return calls


class TestParseTime:
    """Tests for query time parsing."""

    def test_epoch_seconds(self) -> None:
        """Epoch seconds are read as UTC."""
        assert parse_time(str(T0.timestamp())) == T0

    def test_rfc3339(self) -> None:
        """RFC 3339 with Z or an offset is accepted."""
        assert parse_time("2024-03-01T12:00:00Z") == T0
        assert parse_time("2024-03-01T14:00:00+02:00") == T0

    def test_naive_is_utc(self) -> None:
        """Times without an offset are taken as UTC."""
        assert parse_time("2024-03-01T12:00:00") == T0

    def test_missing(self) -> None:
        """Absent values mean no bound."""
        assert parse_time(None) is None
        assert parse_time("") is None

    def test_invalid(self) -> None:
        """Garbage is rejected."""
        with pytest.raises(InvalidFilterError):
            parse_time("yesterday")


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_returns_ok(self, client: TestClient) -> None:
        """Health endpoint returns status ok."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data


class TestListCalls:
    """Tests for the call listing endpoint."""

    def test_first_page(self, client: TestClient, seeded) -> None:
        """The default page holds the newest calls."""
        response = client.get("/v1/apps/a1/calls")

        assert response.status_code == 200
        data = response.json()
        assert [c["id"] for c in data["calls"]] == [seeded[4].id, seeded[3].id]
        assert data["next_cursor"] == seeded[3].id

    def test_cursor_and_path(self, client: TestClient, seeded) -> None:
        """The cursor resumes a path listing."""
        response = client.get(
            "/v1/apps/a1/calls",
            params={"path": "/f", "cursor": seeded[3].id, "per_page": 10},
        )

        data = response.json()
        assert [c["id"] for c in data["calls"]] == [seeded[2].id, seeded[1].id, seeded[0].id]
        assert data["next_cursor"] == seeded[0].id

    def test_time_window(self, client: TestClient, seeded) -> None:
        """from_time and to_time bound the listing."""
        response = client.get(
            "/v1/apps/a1/calls",
            params={
                "per_page": 10,
                "from_time": (T0 + timedelta(seconds=1)).isoformat(),
                "to_time": (T0 + timedelta(seconds=3)).isoformat(),
            },
        )

        assert [c["id"] for c in response.json()["calls"]] == [seeded[2].id, seeded[1].id]

    def test_empty_app(self, client: TestClient) -> None:
        """An unknown app lists nothing."""
        response = client.get("/v1/apps/nobody/calls")

        assert response.json() == {"calls": [], "next_cursor": None}

    @pytest.mark.parametrize(
        "params",
        [{"per_page": "ten"}, {"per_page": 0}, {"from_time": "soon"}, {"cursor": "café"}],
    )
    def test_bad_query(self, client: TestClient, params) -> None:
        """Invalid query parameters are client errors."""
        response = client.get("/v1/apps/a1/calls", params=params)

        assert response.status_code == 400
        assert "error" in response.json()

    def test_request_id_echoed(self, client: TestClient) -> None:
        """Responses carry the request id."""
        response = client.get("/v1/apps/a1/calls", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"


class TestGetCall:
    """Tests for reading single calls and logs."""

    def test_get_call(self, client: TestClient, seeded) -> None:
        """A stored call is returned as JSON."""
        call = seeded[0]
        response = client.get(f"/v1/apps/a1/calls/{call.id}")

        assert response.status_code == 200
        assert response.json() == call.to_dict()

    def test_get_missing_call(self, client: TestClient) -> None:
        """Unknown calls are 404."""
        response = client.get("/v1/apps/a1/calls/00000001")

        assert response.status_code == 404

    def test_get_log(self, client: TestClient, store: CallStore) -> None:
        """Logs are returned as plain text."""
        client.portal.call(
            store.insert_log, LogRecord(app_id="a1", call_id="00000001", content=b"hello\n")
        )

        response = client.get("/v1/apps/a1/calls/00000001/log")

        assert response.status_code == 200
        assert response.text == "hello\n"
        assert response.headers["content-type"].startswith("text/plain")

    def test_get_missing_log(self, client: TestClient) -> None:
        """Unknown logs are 404."""
        response = client.get("/v1/apps/a1/calls/00000001/log")

        assert response.status_code == 404

    def test_backend_failure(self) -> None:
        """Storage failures are server errors."""
        with TestClient(create_app(CallStore(BrokenObjectStore()))) as client:
            response = client.get("/v1/apps/a1/calls/00000001")

        assert response.status_code == 500
        assert "injected" in response.json()["error"]

    @pytest.mark.parametrize("suffix", ["", "/log"])
    def test_non_ascii_call_id(self, client: TestClient, suffix: str) -> None:
        """Ids that cannot be stored are 404, not server errors."""
        response = client.get(f"/v1/apps/a1/calls/caf%C3%A9{suffix}")

        assert response.status_code == 404
        assert "error" in response.json()

    def test_corrupt_call(self, client: TestClient, object_store) -> None:
        """Records that do not decode are reported as JSON server errors."""
        client.portal.call(object_store.put, primary_key("a1", "00000001"), b"{")

        response = client.get("/v1/apps/a1/calls/00000001")

        assert response.status_code == 500
        assert "does not decode" in response.json()["error"]
