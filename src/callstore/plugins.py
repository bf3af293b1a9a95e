"""Backend discovery via Python entry points."""

from importlib.metadata import entry_points
from typing import Any

from callstore.protocols import ObjectStore

BACKEND_GROUP = "callstore.backends"


def discover_backends(group: str = BACKEND_GROUP) -> dict[str, Any]:
    """Discover all registered object store backends.

    Args:
        group: Entry point group name

    Returns:
        Dictionary mapping backend names to their classes
    """
    eps = entry_points(group=group)
    return {ep.name: ep.load() for ep in eps}


def get_backend(name: str, group: str = BACKEND_GROUP) -> Any:
    """Get a specific backend class by name.

    Args:
        name: The backend name (e.g., "memory", "s3")
        group: Entry point group name

    Raises:
        ValueError: If the backend is not found
    """
    backends = discover_backends(group)
    if name not in backends:
        available = ", ".join(sorted(backends.keys())) or "(none)"
        raise ValueError(
            f"Backend '{name}' not found in group '{group}'. Available: {available}"
        )
    return backends[name]


def create_object_store(backend: str, **kwargs: Any) -> ObjectStore:
    """Create an ObjectStore instance.

    Args:
        backend: The backend name (e.g., "memory", "s3")
        **kwargs: Backend-specific configuration
    """
    cls = get_backend(backend)
    return cls(**kwargs)
