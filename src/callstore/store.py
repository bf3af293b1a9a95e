"""Call and log store on top of a flat object store."""

import dataclasses
from typing import Any

from callstore.config import Config, MarkerFailurePolicy
from callstore.exceptions import CallNotFoundError, InvalidKeyError, LogNotFoundError
from callstore.index import CallIndexWriter
from callstore.keys import log_key, primary_key
from callstore.listing import CallLister
from callstore.models import CallFilter, CallPage, CallRecord, LogRecord
from callstore.observability import get_logger
from callstore.plugins import create_object_store
from callstore.protocols import ObjectStore

logger = get_logger(__name__)


class CallStore:
    """Stores calls and their logs, and lists calls newest first.

    Listing requires an app id. Calls can be listed per app, or per app and
    path through the marker index.
    """

    def __init__(
        self,
        store: ObjectStore,
        marker_failure_policy: MarkerFailurePolicy = MarkerFailurePolicy.RAISE,
        time_seek: bool = True,
        default_per_page: int = 30,
        max_per_page: int = 100,
    ) -> None:
        """Initialize the call store.

        Args:
            store: Object store backend
            marker_failure_policy: Whether a failed marker write fails an insert
            time_seek: Prune listings using the time embedded in call ids
            default_per_page: Page size used when a caller does not pick one
            max_per_page: Upper bound applied to requested page sizes
        """
        self.store = store
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page
        self._writer = CallIndexWriter(store, marker_failure_policy)
        self._lister = CallLister(store, time_seek=time_seek)

    @classmethod
    def from_config(cls, config: Config) -> "CallStore":
        """Create a call store with the backend named in the configuration."""
        store = create_object_store(config.storage.backend, **config.storage.backend_kwargs())
        return cls(
            store,
            marker_failure_policy=config.index.marker_failure_policy,
            time_seek=config.listing.time_seek,
            default_per_page=config.listing.default_per_page,
            max_per_page=config.listing.max_per_page,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallStore":
        """Create a call store from a configuration dictionary."""
        return cls.from_config(Config.from_dict(data))

    async def open(self) -> None:
        """Prepare the backend (e.g. ensure the bucket exists)."""
        opener = getattr(self.store, "open", None)
        if opener is not None:
            await opener()

    async def close(self) -> None:
        """Release backend resources."""
        closer = getattr(self.store, "close", None)
        if closer is not None:
            await closer()

    async def insert_call(self, call: CallRecord) -> None:
        """Store a call and index it under its path.

        Raises:
            BackendError: If the call record cannot be written
            MarkerWriteError: If only the path marker failed and the store
                is configured to raise
        """
        await self._writer.insert(call)

    async def get_call(self, app_id: str, call_id: str) -> CallRecord:
        """Get a call by app and id.

        Raises:
            CallNotFoundError: If the call does not exist
            CorruptRecordError: If the stored record does not decode
        """
        try:
            key = primary_key(app_id, call_id)
        except InvalidKeyError as e:
            # nothing can be stored under an id that does not encode
            raise CallNotFoundError(f"call {call_id!r} not found in app {app_id!r}") from e
        logger.debug("Downloading call", context={"key": key})
        raw = await self.store.get(key)
        if raw is None:
            raise CallNotFoundError(f"call {call_id} not found in app {app_id}")
        return CallRecord.from_json(raw)

    async def get_calls(self, call_filter: CallFilter) -> CallPage:
        """List one page of calls, newest first.

        The page size is capped at ``max_per_page``. Pass the returned
        cursor back as ``call_filter.cursor`` to read the next page.
        """
        if call_filter.per_page > self.max_per_page:
            call_filter = dataclasses.replace(call_filter, per_page=self.max_per_page)
        return await self._lister.list(call_filter)

    def new_filter(self, app_id: str, **kwargs: Any) -> CallFilter:
        """Build a filter using the configured default page size."""
        kwargs.setdefault("per_page", self.default_per_page)
        return CallFilter(app_id=app_id, **kwargs)

    async def insert_log(self, log: LogRecord) -> None:
        """Store the log of a call, replacing any previous one."""
        key = log_key(log.app_id, log.call_id)
        logger.debug("Uploading log", context={"key": key})
        await self.store.put(key, log.content, content_type="text/plain")

    async def get_log(self, app_id: str, call_id: str) -> LogRecord:
        """Get the log of a call.

        Raises:
            LogNotFoundError: If no log was stored for the call
        """
        try:
            key = log_key(app_id, call_id)
        except InvalidKeyError as e:
            raise LogNotFoundError(f"log for call {call_id!r} not found in app {app_id!r}") from e
        logger.debug("Downloading log", context={"key": key})
        content = await self.store.get(key)
        if content is None:
            raise LogNotFoundError(f"log for call {call_id} not found in app {app_id}")
        return LogRecord(app_id=app_id, call_id=call_id, content=content)
