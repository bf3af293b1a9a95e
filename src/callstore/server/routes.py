"""HTTP route handlers for reading calls and logs."""

import functools
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from callstore.exceptions import CallStoreError, InvalidFilterError, NotFoundError
from callstore.observability import RequestContext, get_logger

if TYPE_CHECKING:
    from callstore.store import CallStore

logger = get_logger(__name__)


def parse_time(value: str | None) -> datetime | None:
    """Parse a query time given as RFC 3339 or as epoch seconds.

    Raises:
        InvalidFilterError: If the value is neither
    """
    if not value:
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        pass
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidFilterError(f"invalid time: {value!r}") from None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def handle_errors(
    handler: Callable[[Request], Awaitable[Response]],
) -> Callable[[Request], Awaitable[Response]]:
    """Decorator mapping store errors to JSON error responses.

    Runs the handler inside a logging context bound to the path's app and
    call ids.
    """

    @functools.wraps(handler)
    async def wrapper(request: Request) -> Response:
        with RequestContext(
            request_id=getattr(request.state, "request_id", None),
            app_id=request.path_params.get("app_id"),
            call_id=request.path_params.get("call_id"),
        ):
            try:
                return await handler(request)
            except InvalidFilterError as e:
                return JSONResponse({"error": str(e)}, status_code=400)
            except NotFoundError as e:
                return JSONResponse({"error": str(e)}, status_code=404)
            except CallStoreError as e:
                logger.error("Request failed", error=e)
                return JSONResponse({"error": str(e)}, status_code=500)

    return wrapper


def create_routes(store: "CallStore") -> list[Route]:
    """Create HTTP routes for a call store.

    Args:
        store: The call store to serve

    Returns:
        List of Starlette routes
    """

    async def health(request: Request) -> Response:
        """Health check endpoint."""
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": time.time(),
            }
        )

    @handle_errors
    async def list_calls(request: Request) -> Response:
        """List calls of an app, newest first."""
        params = request.query_params
        try:
            per_page = int(params.get("per_page", store.default_per_page))
        except ValueError:
            raise InvalidFilterError(f"invalid per_page: {params.get('per_page')!r}") from None

        call_filter = store.new_filter(
            request.path_params["app_id"],
            per_page=per_page,
            path=params.get("path") or None,
            from_time=parse_time(params.get("from_time")),
            to_time=parse_time(params.get("to_time")),
            cursor=params.get("cursor") or None,
        )
        page = await store.get_calls(call_filter)
        return JSONResponse(
            {
                "calls": [call.to_dict() for call in page.calls],
                "next_cursor": page.cursor,
            }
        )

    @handle_errors
    async def get_call(request: Request) -> Response:
        """Get one call."""
        call = await store.get_call(request.path_params["app_id"], request.path_params["call_id"])
        return JSONResponse(call.to_dict())

    @handle_errors
    async def get_log(request: Request) -> Response:
        """Get the log of one call."""
        log = await store.get_log(request.path_params["app_id"], request.path_params["call_id"])
        return PlainTextResponse(log.content)

    return [
        Route("/health", health, methods=["GET"]),
        Route("/v1/apps/{app_id}/calls", list_calls, methods=["GET"]),
        Route("/v1/apps/{app_id}/calls/{call_id}", get_call, methods=["GET"]),
        Route("/v1/apps/{app_id}/calls/{call_id}/log", get_log, methods=["GET"]),
    ]
