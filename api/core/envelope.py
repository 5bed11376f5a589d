"""Response envelope shaping and request data extraction."""

import json
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from core.errors import ENTITY_PARSE_FAILED, RequestError
from schemas import Envelope


def respond(
    payload: Any,
    *,
    status: int,
    message: str | None = None,
    debug: str | None = None,
) -> JSONResponse:
    """Wrap ``payload`` in the envelope and send it with ``status``.

    Unset members are left out of the body rather than sent as null.
    """
    envelope = Envelope(message=message, payload=payload, debug=debug)
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder(envelope, exclude_none=True),
    )


async def read_body(request: Request) -> dict[str, Any]:
    """Parse the request body into a mapping.

    JSON objects and urlencoded forms are understood; any other body
    (or a JSON value that is not an object) yields an empty mapping.
    """
    raw = await request.body()
    if not raw:
        return {}

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/x-www-form-urlencoded"):
        return dict(parse_qsl(raw.decode("utf-8", errors="replace")))

    if content_type and "json" not in content_type:
        return {}

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise RequestError(ENTITY_PARSE_FAILED, str(e)) from e

    return parsed if isinstance(parsed, dict) else {}


async def request_data(request: Request) -> dict[str, Any]:
    """Merge body and query parameters; query parameters win on collisions."""
    data = await read_body(request)
    data.update(request.query_params)
    return data
