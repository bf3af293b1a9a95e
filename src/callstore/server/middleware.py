"""Request middleware for the HTTP server."""

from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from callstore.observability import RequestContext


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the logging context of every request.

    The id is taken from the request header when present, otherwise a new
    one is generated. It is echoed back in the response header.
    """

    def __init__(self, app: Any, header_name: str = "X-Request-ID") -> None:
        """Initialize request context middleware.

        Args:
            app: The ASGI application
            header_name: Header carrying the request id
        """
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        """Run the request inside a logging context."""
        with RequestContext(request_id=request.headers.get(self.header_name)) as ctx:
            request.state.request_id = ctx.request_id
            response = await call_next(request)
        response.headers[self.header_name] = ctx.request_id
        return response
