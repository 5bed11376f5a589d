"""Service base class: CRUD routes and hooked sub-routes for one resource.

A service is named after its resource. Given a store, it registers the
four CRUD routes at ``/<name>``; ``add_services`` then adds named
sub-routes (``/<name>/<suffix>``) described by ``Microservice``
descriptors. Every route is served by one ``Pipeline``, so hook order,
the authentication gate and response shaping are the same everywhere.

Example:
    class Notes(Service[Note]):
        def __init__(self, context):
            super().__init__(context, name="note", store="note")
            self.add_services({
                "archive": Microservice(
                    method=HttpMethod.POST,
                    message="Hi, the note has been archived!",
                    error="Oops, could not archive the note!",
                    authenticate=True,
                    before=(require_id,),
                    callback=self.archive,
                ),
            })
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.errors import NotFoundError
from core.logger import get_logger
from core.routing import HttpMethod
from models import Document
from schemas import Page
from services.pipeline import Hook, Outcome, Pipeline

if TYPE_CHECKING:
    from core.application import Application
    from stores.base import Store

logger = get_logger(__name__)


@dataclass(frozen=True)
class Microservice:
    """Static configuration for one sub-route."""

    method: HttpMethod | str
    message: str | None = None
    error: str | None = None
    authenticate: bool = False
    before: Sequence[Hook] = ()
    after: Sequence[Hook] = ()
    callback: Hook | None = None

    def __post_init__(self) -> None:
        # Stored as a parsed verb and tuples of hooks
        object.__setattr__(self, "method", HttpMethod.parse(self.method))
        object.__setattr__(self, "before", tuple(self.before))
        object.__setattr__(self, "after", tuple(self.after))


@dataclass(frozen=True)
class ServiceHooks:
    """Hooks run around the built-in CRUD operations, keyed by verb."""

    before: Mapping[HttpMethod, Sequence[Hook]] = field(default_factory=dict)
    after: Mapping[HttpMethod, Sequence[Hook]] = field(default_factory=dict)

    def for_method(self, method: HttpMethod) -> tuple[tuple[Hook, ...], tuple[Hook, ...]]:
        return tuple(self.before.get(method, ())), tuple(self.after.get(method, ()))


def _number(value: Any) -> float:
    """Whole-number value of a page/size parameter, rounded down.

    NaN when absent or invalid.
    """
    if isinstance(value, bool) or value is None:
        return math.nan
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return float(math.floor(number)) if math.isfinite(number) else math.nan


class Service[DocumentT: Document]:
    def __init__(
        self,
        context: Application,
        *,
        name: str,
        store: str | None = None,
        hooks: ServiceHooks | None = None,
    ) -> None:
        self.context = context
        self.name = name
        self.store_name = store
        self.hooks = hooks or ServiceHooks()
        self.routes: dict[tuple[HttpMethod, str], Pipeline] = {}

        if store:
            self.crud()

    @property
    def store(self) -> Store[DocumentT]:
        if self.store_name is None:
            raise LookupError(f"Service {self.name!r} has no store")
        return self.context.query(self.store_name)

    def register(self, method: HttpMethod, pipeline: Pipeline) -> None:
        key = (method, pipeline.path)
        if key in self.routes:
            raise ValueError(f"{method.value} {pipeline.path} is already registered")
        self.routes[key] = pipeline
        self.context.route(
            method,
            pipeline.path,
            pipeline.handle,
            name=f"{self.name}:{method.value.lower()}:{pipeline.path}",
        )

    def add_services(self, services: Mapping[str, Microservice]) -> None:
        """Register one pipeline per named sub-route."""
        for key, value in services.items():
            pipeline = Pipeline(
                f"/{self.name}/{key}",
                success=Outcome(200, value.message),
                failure=Outcome(422, value.error),
                terminal=value.callback,
                before=value.before,
                after=value.after,
                gate=self.context if value.authenticate else None,
            )
            self.register(HttpMethod.parse(value.method), pipeline)
            logger.debug(
                "service.subroute.registered",
                service=self.name,
                route=pipeline.path,
                authenticate=value.authenticate,
                before=len(value.before),
                after=len(value.after),
            )

    def crud(self) -> None:
        """Register POST/GET/PUT/DELETE at ``/<name>``."""
        name = self.name
        routes = (
            (
                HttpMethod.POST,
                self.create,
                Outcome(201, f"Hi, an {name} has been created!"),
                Outcome(422, f"Oops, could not create {name}!"),
            ),
            (
                HttpMethod.GET,
                self.read,
                Outcome(200, "Hi, a data payload is provided!"),
                Outcome(404, f"Oops, could not find {name} list!"),
            ),
            (
                HttpMethod.PUT,
                self.update,
                Outcome(200, f"Hi, an {name} has been updated!"),
                Outcome(413, f"Oops, could not update {name}!"),
            ),
            (
                HttpMethod.DELETE,
                self.delete,
                Outcome(200, f"Hi, an {name} has been removed!"),
                Outcome(422, f"Oops, could not remove {name}!"),
            ),
        )
        for method, terminal, success, failure in routes:
            before, after = self.hooks.for_method(method)
            self.register(
                method,
                Pipeline(
                    f"/{name}",
                    success=success,
                    failure=failure,
                    terminal=terminal,
                    before=before,
                    after=after,
                ),
            )

    # CRUD operations; subclasses may override.

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        document = await self.store.create(data)
        return document.to_dict()

    async def read(self, data: dict[str, Any]) -> list[dict[str, Any]] | dict[str, Any]:
        """List matching records, or one page of them with the total count.

        ``page`` and ``size`` are removed from the filter and rounded down;
        pagination applies only when ``page > -1`` and ``size > 0``.
        """
        query = dict(data)
        page = _number(query.pop("page", None))
        size = _number(query.pop("size", None))

        if page > -1 and size > 0:
            limit = int(size)
            documents = await self.store.find(query, skip=int(page) * limit, limit=limit)
            length = await self.store.count(query)
            return Page(
                page=[document.to_dict() for document in documents],
                length=length,
            ).model_dump()

        documents = await self.store.find(query)
        return [document.to_dict() for document in documents]

    async def update(self, data: dict[str, Any]) -> dict[str, Any]:
        record_id = data.get("id")
        document = await self.store.update_one(record_id, data) if record_id else None
        if document is None:
            raise NotFoundError(f"Oops, {self.name} does not exist!")
        return document.to_dict()

    async def delete(self, data: dict[str, Any]) -> dict[str, Any]:
        record_id = data.get("id")
        document = await self.store.remove_one(record_id) if record_id else None
        if document is None:
            raise NotFoundError(f"Oops, could not remove {self.name}!")
        return document.to_dict()
