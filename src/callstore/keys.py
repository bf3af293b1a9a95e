"""Object key layout for calls, path markers and logs.

Object stores only list keys in ascending order. Every call id embedded in a
listable key goes through :func:`encode_descending` first, so an ascending
listing walks the calls newest first.

Layout::

    calls/{app}/{fragment(id)}                   call record
    markers/{app}/{escape(path)}/{fragment(id)}  empty path index entry
    logs/{app}/{id}                              call log

``fragment`` is the lowercase hex of the descending-encoded id bytes. Hex is
order preserving, so fragments sort in reverse id order. ``escape`` is
unpadded URL-safe base64 because paths contain ``/``.
"""

import base64
import binascii
import re
from enum import Enum

from callstore.exceptions import InvalidKeyError

SEPARATOR = "/"

_FRAGMENT_RE = re.compile(r"^(?:[0-9a-f]{2})+$")
_ESCAPED_RE = re.compile(r"^[A-Za-z0-9_-]*$")


class Namespace(str, Enum):
    """Key namespaces that can be listed."""

    CALLS = "calls"
    MARKERS = "markers"

    @property
    def field_count(self) -> int:
        """Number of separator-delimited fields in a key of this namespace."""
        return 3 if self is Namespace.CALLS else 4


LOGS_NAMESPACE = "logs"


def encode_descending(buf: bytes) -> bytes:
    """Order-reversing, length-preserving transform over byte strings.

    Complements every byte. For equal-length ``a < b`` the result satisfies
    ``encode_descending(a) > encode_descending(b)``. The map is its own
    inverse.
    """
    return bytes(0xFF - b for b in buf)


def decode_descending(buf: bytes) -> bytes:
    """Inverse of :func:`encode_descending`."""
    return encode_descending(buf)


def encode_fragment(call_id: str) -> str:
    """Encode a call id, or a leading part of one, as a descending key fragment."""
    try:
        raw = call_id.encode("ascii")
    except UnicodeEncodeError:
        raise InvalidKeyError(f"call id must be ASCII: {call_id!r}") from None
    return encode_descending(raw).hex()


def decode_fragment(fragment: str) -> str:
    """Decode a key fragment back to the call id it was built from."""
    if not _FRAGMENT_RE.match(fragment):
        raise InvalidKeyError(f"malformed id fragment: {fragment!r}")
    raw = decode_descending(bytes.fromhex(fragment))
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError:
        raise InvalidKeyError(f"id fragment does not decode to ASCII: {fragment!r}") from None


def escape_path(path: str) -> str:
    """Escape a route path into a single key segment."""
    return base64.urlsafe_b64encode(path.encode("utf-8")).rstrip(b"=").decode("ascii")


def unescape_path(segment: str) -> str:
    """Inverse of :func:`escape_path`."""
    if not _ESCAPED_RE.match(segment) or len(segment) % 4 == 1:
        raise InvalidKeyError(f"malformed path segment: {segment!r}")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidKeyError(f"malformed path segment: {segment!r}") from e


def _check_app(app_id: str) -> str:
    if not app_id or SEPARATOR in app_id:
        raise InvalidKeyError(f"app id must be non-empty and must not contain '/': {app_id!r}")
    return app_id


def _check_id(call_id: str) -> str:
    if not call_id:
        raise InvalidKeyError("call id must be non-empty")
    return call_id


def calls_prefix(app_id: str) -> str:
    """List prefix covering every call of an app."""
    return f"{Namespace.CALLS.value}/{_check_app(app_id)}/"


def markers_prefix(app_id: str, path: str) -> str:
    """List prefix covering every marker of an app and path."""
    return f"{Namespace.MARKERS.value}/{_check_app(app_id)}/{escape_path(path)}/"


def namespace_prefix(app_id: str, path: str | None = None) -> str:
    """List prefix for an app, narrowed to a path when one is given."""
    if path:
        return markers_prefix(app_id, path)
    return calls_prefix(app_id)


def primary_key(app_id: str, call_id: str) -> str:
    """Key of the full call record."""
    return calls_prefix(app_id) + encode_fragment(_check_id(call_id))


def marker_key(app_id: str, path: str, call_id: str) -> str:
    """Key of the empty path index entry for a call."""
    return markers_prefix(app_id, path) + encode_fragment(_check_id(call_id))


def log_key(app_id: str, call_id: str) -> str:
    """Key of a call's log. Logs are never listed, so the id is kept as is."""
    return f"{LOGS_NAMESPACE}/{_check_app(app_id)}/{_check_id(call_id)}"


def decode_key(raw: str, namespace: Namespace) -> tuple[str, str]:
    """Split a listed key into ``(app_id, call_id)``.

    Raises:
        InvalidKeyError: If the key does not have the layout of ``namespace``
    """
    fields = raw.split(SEPARATOR)
    if len(fields) != namespace.field_count:
        raise InvalidKeyError(f"invalid key in {namespace.value}: {raw!r}")
    if fields[0] != namespace.value:
        raise InvalidKeyError(f"key is not in namespace {namespace.value}: {raw!r}")

    app_id = fields[1]
    if not app_id:
        raise InvalidKeyError(f"invalid key in {namespace.value}: {raw!r}")
    if namespace is Namespace.MARKERS:
        unescape_path(fields[2])

    return app_id, decode_fragment(fields[-1])
