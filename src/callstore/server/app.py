"""ASGI application for standalone deployment."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.middleware import Middleware

from callstore.server.middleware import RequestContextMiddleware

if TYPE_CHECKING:
    from callstore.config import Config
    from callstore.store import CallStore


def create_app(store: "CallStore") -> Starlette:
    """Create the ASGI application.

    The store is opened on startup and closed on shutdown.

    Args:
        store: The configured CallStore instance

    Returns:
        Starlette application
    """
    from callstore.server.routes import create_routes

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await store.open()
        try:
            yield
        finally:
            await store.close()

    return Starlette(
        routes=create_routes(store),
        middleware=[Middleware(RequestContextMiddleware)],
        lifespan=lifespan,
    )


def serve(config: "Config", host: str | None = None, port: int | None = None) -> None:
    """Start the HTTP server.

    Args:
        config: Loaded configuration
        host: Host to bind to (defaults to config value)
        port: Port to bind to (defaults to config value)
    """
    import uvicorn

    from callstore.observability import configure_logging
    from callstore.store import CallStore

    configure_logging(config.logging.level, config.logging.format)
    app = create_app(CallStore.from_config(config))
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
    )
