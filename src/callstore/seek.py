"""Approximate scan pruning from time bounds.

Call ids carry their creation time in their leading characters (see
:mod:`callstore.ids`), and listable keys hold the ids descending-encoded. So
the descending fragment of a time-only id sorts after every record created
at or after that time and before every record created earlier.

This is an optimization, not a filter. It relies on the id generator
embedding creation time, and records are still checked against their own
``created_at`` after they are fetched. Ids without the time-prefixed shape
are never pruned.
"""

from dataclasses import dataclass
from datetime import datetime

from callstore.ids import TIME_LENGTH, encode_id, is_time_ordered_id, time_buffer
from callstore.keys import encode_fragment


def time_prefix(bound: datetime) -> str:
    """Descending key fragment for the millisecond of ``bound``.

    Returns an empty string (no pruning) when the time does not fit the id
    format.
    """
    buf = time_buffer(bound)
    if buf is None:
        return ""
    return encode_fragment(encode_id(buf)[:TIME_LENGTH])


@dataclass(frozen=True)
class SeekBoundary:
    """Point in a newest-first scan past which every record is too old."""

    prefix: str = ""

    @classmethod
    def from_time(cls, from_time: datetime | None) -> "SeekBoundary":
        """Boundary for a lower time bound. No bound means no pruning."""
        if from_time is None:
            return cls()
        return cls(time_prefix(from_time))

    def is_past(self, call_id: str, fragment: str) -> bool:
        """Check whether a listed record was created before the bound.

        Args:
            call_id: Decoded call id of the listed key
            fragment: Descending id fragment of the listed key

        Returns:
            True only when the id is time-prefixed and its millisecond is
            strictly older than the bound
        """
        if not self.prefix or not is_time_ordered_id(call_id):
            return False
        return fragment[: len(self.prefix)] > self.prefix
