"""Call and log records, listing filters and result pages."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from callstore.exceptions import CorruptRecordError, InvalidFilterError
from callstore.ids import to_utc

CALL_FIELDS = ("id", "app_id", "path", "created_at")


@dataclass
class CallRecord:
    """A function call.

    Only the four indexed fields are interpreted here. Everything else the
    calling system records travels in ``payload`` untouched.
    """

    id: str
    app_id: str
    path: str
    created_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = dict(self.payload)
        data.update(
            {
                "id": self.id,
                "app_id": self.app_id,
                "path": self.path,
                "created_at": to_utc(self.created_at).isoformat(),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallRecord":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            app_id=data["app_id"],
            path=data.get("path", ""),
            created_at=to_utc(datetime.fromisoformat(data["created_at"])),
            payload={k: v for k, v in data.items() if k not in CALL_FIELDS},
        )

    def to_json(self) -> bytes:
        """Serialize for storage."""
        return json.dumps(self.to_dict()).encode()

    @classmethod
    def from_json(cls, raw: bytes) -> "CallRecord":
        """Deserialize a stored record.

        Raises:
            CorruptRecordError: If the bytes are not a call record
        """
        try:
            return cls.from_dict(json.loads(raw.decode()))
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptRecordError(f"stored call record does not decode: {e!r}") from e


@dataclass
class LogRecord:
    """The log output of one call."""

    app_id: str
    call_id: str
    content: bytes


@dataclass
class CallFilter:
    """Parameters of a call listing.

    ``cursor`` is the id of the last call of the previous page; the listing
    resumes strictly after it.
    """

    app_id: str
    per_page: int
    path: str | None = None
    from_time: datetime | None = None
    to_time: datetime | None = None
    cursor: str | None = None

    def validate(self) -> None:
        """Reject filters that cannot be served.

        Raises:
            InvalidFilterError: If the app id is missing or malformed, the page
                size is not positive, or the cursor is not a call id
        """
        if not self.app_id:
            raise InvalidFilterError("listing calls across all apps is not supported, app_id is required")
        if "/" in self.app_id:
            raise InvalidFilterError(f"invalid app_id: {self.app_id!r}")
        if self.per_page < 1:
            raise InvalidFilterError(f"per_page must be positive, got {self.per_page}")
        if self.cursor and not self.cursor.isascii():
            raise InvalidFilterError(f"invalid cursor: {self.cursor!r}")


@dataclass
class CallPage:
    """One page of a call listing, newest first.

    ``cursor`` is the id to resume after, or None once the listing is done:
    nothing left to read, or the scan passed ``from_time``.
    A page shorter than ``per_page`` does not mean the listing is exhausted.
    """

    calls: list[CallRecord] = field(default_factory=list)
    cursor: str | None = None
