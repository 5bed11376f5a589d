"""Process-wide fallback handlers.

Overrides the framework's default answers for unmatched routes and
oversized request bodies so they use the same response envelope as
every service route.
"""

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from core.envelope import read_body, respond
from core.errors import ENTITY_TOO_LARGE, RequestError
from core.logger import get_logger

logger = get_logger(__name__)

NOT_FOUND_ERROR = "Oops, the requested resource could not be found!"
TOO_LARGE_ERROR = "Oops, the request payload is too large!"


async def not_found_handler(request: Request, exc: Exception) -> Response:
    """Answer unmatched routes with a 404 envelope echoing the request body."""
    if not isinstance(exc, StarletteHTTPException) or exc.status_code != 404:
        return await http_exception_handler(request, exc)  # type: ignore[arg-type]

    try:
        body = await read_body(request)
    except RequestError as error:
        if error.type == ENTITY_TOO_LARGE:
            return await payload_error_handler(request, error)
        body = None

    return respond(
        body,
        status=404,
        message=NOT_FOUND_ERROR,
        debug=NOT_FOUND_ERROR,
    )


async def payload_error_handler(request: Request, exc: Exception) -> Response:
    """Answer oversized bodies with 413; any other body error propagates."""
    if isinstance(exc, RequestError) and exc.type == ENTITY_TOO_LARGE:
        logger.warning("request.too_large", path=request.url.path, error=exc.message)
        return respond(
            None,
            status=413,
            message=TOO_LARGE_ERROR,
            debug=exc.message,
        )
    raise exc


def register_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.add_exception_handler(RequestError, payload_error_handler)
