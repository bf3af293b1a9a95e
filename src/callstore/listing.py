"""Cursor-paginated, newest-first call listing.

A listing reads one page of keys from the call namespace of an app (or the
marker namespace of an app and path), fetches the call behind every key and
trims the result against the filter's time bounds.

Time bounds are approximate:

- ``from_time`` is exact once a record is fetched (older records are
  dropped), and with time seek enabled the scan also stops at the first key
  whose id was minted before ``from_time``. Such a page has no cursor.
- ``to_time``: records created at or after it are skipped while the scan
  is still ahead of the window. Once the page holds a record inside the
  window, the next record at or after ``to_time`` ends the page and becomes
  its cursor. This assumes id order tracks ``created_at``; records out of
  order with respect to their ids can end a page early.
"""

import asyncio
from datetime import datetime

from callstore.ids import to_utc
from callstore.keys import SEPARATOR, Namespace, decode_key, encode_fragment, namespace_prefix, primary_key
from callstore.models import CallFilter, CallPage, CallRecord
from callstore.observability import Timer, get_logger
from callstore.protocols import ObjectStore
from callstore.seek import SeekBoundary

logger = get_logger(__name__)


class CallLister:
    """Serves call listings from an object store."""

    def __init__(self, store: ObjectStore, time_seek: bool = True) -> None:
        """Initialize the lister.

        Args:
            store: Backend holding records and markers
            time_seek: Stop scans early using the time embedded in call ids
        """
        self.store = store
        self.time_seek = time_seek

    def _boundary(self, from_time: datetime | None) -> SeekBoundary:
        if not self.time_seek:
            return SeekBoundary()
        return SeekBoundary.from_time(from_time)

    async def list(self, call_filter: CallFilter) -> CallPage:
        """List one page of calls matching a filter, newest first.

        Raises:
            InvalidFilterError: If the filter has no app id or a bad page size
            InvalidKeyError: If a listed key does not decode. The whole page
                fails rather than hiding corrupt entries.
            BackendError: If listing or fetching fails
        """
        call_filter.validate()
        namespace = Namespace.MARKERS if call_filter.path else Namespace.CALLS
        prefix = namespace_prefix(call_filter.app_id, call_filter.path)

        # the cursor is a call id, translate it into this namespace's key
        start_after = None
        if call_filter.cursor:
            start_after = prefix + encode_fragment(call_filter.cursor)

        from_time = to_utc(call_filter.from_time) if call_filter.from_time else None
        to_time = to_utc(call_filter.to_time) if call_filter.to_time else None
        boundary = self._boundary(from_time)

        with Timer() as timer:
            keys = await self.store.list(prefix, start_after, call_filter.per_page)

            page = CallPage()
            call_ids: list[str] = []
            for key in keys:
                _, call_id = decode_key(key, namespace)
                page.cursor = call_id
                if boundary.is_past(call_id, key.rsplit(SEPARATOR, 1)[-1]):
                    # every later key is older still
                    page.cursor = None
                    break
                call_ids.append(call_id)

            # s3 has no multi-get, so fetch the page's records concurrently
            results = await asyncio.gather(
                *[self.store.get(primary_key(call_filter.app_id, cid)) for cid in call_ids],
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result

            for call_id, raw in zip(call_ids, results):
                if raw is None:
                    logger.error(
                        "Listed call not found, skipping",
                        context={"app_id": call_filter.app_id, "call_id": call_id},
                    )
                    continue

                call = CallRecord.from_json(raw)
                if from_time and call.created_at < from_time:
                    continue
                if to_time and call.created_at >= to_time:
                    if not page.calls:
                        # still ahead of the window, newest first
                        continue
                    # out of id order inside the window, end the page here
                    # and resume right after this record
                    page.cursor = call_id
                    break
                page.calls.append(call)

        logger.debug(
            "Listed calls",
            context={
                "app_id": call_filter.app_id,
                "path": call_filter.path,
                "prefix": prefix,
                "keys": len(keys),
                "calls": len(page.calls),
            },
            duration_ms=timer.duration_ms,
        )
        return page
