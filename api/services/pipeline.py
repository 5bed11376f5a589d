"""Per-route request pipeline.

A pipeline is the single handler registered for one method + path. It
runs its stages in a fixed order, threading one value through them:

    authentication gate -> before-hooks -> terminal -> after-hooks

and answers with exactly one response envelope. The gate only decides
whether the request may continue; every other stage receives the
previous stage's result (the first receives the merged body and query
data) and returns the value for the next one.

Stages may be plain functions or coroutines.
"""

import copy
import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import Request
from fastapi.responses import JSONResponse

from core.envelope import request_data, respond
from core.errors import AuthenticationError
from core.logger import get_logger

if TYPE_CHECKING:
    from core.application import Application

logger = get_logger(__name__)

Hook = Callable[[Any], Any | Awaitable[Any]]

AUTHENTICATION_ERROR = "Oops, authentication error occurred!"


@dataclass(frozen=True)
class Outcome:
    """Status and message used to shape one kind of response."""

    status: int
    message: str | None = None


async def invoke(hook: Hook, value: Any) -> Any:
    result = hook(value)
    if inspect.isawaitable(result):
        result = await result
    return result


class Pipeline:
    def __init__(
        self,
        path: str,
        *,
        success: Outcome,
        failure: Outcome,
        terminal: Hook | None = None,
        before: Sequence[Hook] = (),
        after: Sequence[Hook] = (),
        gate: "Application | None" = None,
    ) -> None:
        self.path = path
        self.success = success
        self.failure = failure
        self.terminal = terminal
        self.before = tuple(before)
        self.after = tuple(after)
        self.gate = gate

    async def handle(self, request: Request) -> JSONResponse:
        """Route endpoint: answers one request with one envelope."""
        data = await request_data(request)

        if self.gate is not None:
            rejection = await self.authenticate(self.gate, data)
            if rejection is not None:
                return rejection

        raw = copy.deepcopy(data)
        try:
            result = await self.run(data)
        except Exception as e:
            logger.warning(
                "service.request.failed",
                route=self.path,
                status=self.failure.status,
                error=str(e),
                error_type=type(e).__name__,
            )
            return respond(
                raw,
                status=self.failure.status,
                message=self.failure.message,
                debug=str(e),
            )

        return respond(result, status=self.success.status, message=self.success.message)

    async def authenticate(
        self, gate: "Application", data: dict[str, Any]
    ) -> JSONResponse | None:
        """None when the gate admits the request, else the 412 response."""
        try:
            if not await gate.authenticate(data):
                raise AuthenticationError(AUTHENTICATION_ERROR)
        except Exception as e:
            logger.info("service.request.unauthenticated", route=self.path, error=str(e))
            return respond(
                data,
                status=412,
                message=AUTHENTICATION_ERROR,
                debug=str(e),
            )
        return None

    async def run(self, data: Any) -> Any:
        """Thread ``data`` through the before-hooks, terminal and after-hooks."""
        value = data
        for hook in self.before:
            value = await invoke(hook, value)

        if self.terminal is not None:
            value = await invoke(self.terminal, value)

        for hook in self.after:
            value = await invoke(hook, value)

        return value
