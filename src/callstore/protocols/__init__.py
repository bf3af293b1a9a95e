"""Protocol interfaces for pluggable backends."""

from callstore.protocols.object_store import ObjectStore

__all__ = [
    "ObjectStore",
]
