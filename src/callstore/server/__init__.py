"""HTTP Server module."""

from callstore.server.app import create_app, serve
from callstore.server.middleware import RequestContextMiddleware
from callstore.server.routes import create_routes

__all__ = [
    "RequestContextMiddleware",
    "create_app",
    "create_routes",
    "serve",
]
