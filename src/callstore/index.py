"""Call writes with a path index built from marker objects.

An insert is two independent writes: the call record, then an empty marker
under the call's path. There is no transaction between them. A failed or
cancelled marker write leaves a call that is readable by id but missing from
path-scoped listings; the marker failure policy decides whether the caller
hears about it as an error or only through the logs.
"""

from callstore.config import MarkerFailurePolicy
from callstore.exceptions import BackendError, MarkerWriteError
from callstore.keys import marker_key, primary_key
from callstore.models import CallRecord
from callstore.observability import get_logger
from callstore.protocols import ObjectStore

logger = get_logger(__name__)


class CallIndexWriter:
    """Writes call records together with their path markers."""

    def __init__(
        self,
        store: ObjectStore,
        marker_failure_policy: MarkerFailurePolicy = MarkerFailurePolicy.RAISE,
    ) -> None:
        """Initialize the writer.

        Args:
            store: Backend holding records and markers
            marker_failure_policy: Whether a failed marker write fails the insert
        """
        self.store = store
        self.marker_failure_policy = MarkerFailurePolicy(marker_failure_policy)

    async def insert(self, call: CallRecord) -> None:
        """Store a call and index it under its path.

        Raises:
            InvalidKeyError: If the app or call id cannot be encoded
            BackendError: If the call record write fails
            MarkerWriteError: If the marker write fails under the ``raise``
                policy. The call record is already stored at that point.
        """
        # both keys are built up front so a bad id fails before any write
        record_key = primary_key(call.app_id, call.id)
        index_key = marker_key(call.app_id, call.path, call.id)

        logger.debug("Uploading call", context={"key": record_key})
        await self.store.put(record_key, call.to_json(), content_type="application/json")

        logger.debug("Uploading call marker", context={"key": index_key})
        try:
            await self.store.put(index_key, b"", content_type="text/plain")
        except BackendError as e:
            if self.marker_failure_policy is MarkerFailurePolicy.RAISE:
                raise MarkerWriteError(
                    f"failed to write marker key for call {call.id}: {e}",
                    primary_key=record_key,
                    marker_key=index_key,
                ) from e
            logger.error(
                "Failed to write call marker, call is missing from path listings",
                context={
                    "app_id": call.app_id,
                    "call_id": call.id,
                    "path": call.path,
                    "key": index_key,
                },
                error=e,
            )
