"""ASGI middleware for the request body limit and request context."""

from __future__ import annotations

import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.errors import ENTITY_TOO_LARGE, RequestError
from core.logger import bind_contextvars, clear_contextvars


class BodySizeLimitMiddleware:
    """Rejects request bodies larger than ``max_body_size`` bytes.

    The check happens when the body is read, so the resulting
    ``RequestError`` surfaces inside the route and reaches the
    application's exception handlers. Both the declared Content-Length
    and the streamed byte count are enforced.
    """

    def __init__(self, app: ASGIApp, max_body_size: int) -> None:
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = _content_length(scope)
        limit = self.max_body_size
        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            if declared is not None and declared > limit:
                raise RequestError(ENTITY_TOO_LARGE, _too_large(declared, limit))

            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise RequestError(ENTITY_TOO_LARGE, _too_large(received, limit))
            return message

        await self.app(scope, limited_receive, send)


class RequestContextMiddleware:
    """Binds request id, method and path to the structlog context.

    Echoes the request id back in ``X-Request-Id``; an incoming
    ``X-Request-Id`` header is reused.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _header(scope, b"x-request-id") or uuid.uuid4().hex
        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            method=scope.get("method"),
            path=scope.get("path"),
        )

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            clear_contextvars()


def _header(scope: Scope, name: bytes) -> str | None:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def _content_length(scope: Scope) -> int | None:
    value = _header(scope, b"content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _too_large(size: int, limit: int) -> str:
    return f"request entity too large: {size} bytes exceeds the {limit} byte limit"
