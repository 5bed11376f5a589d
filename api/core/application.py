"""Application context shared by every store and service.

Wraps the FastAPI instance together with the database engine, the
registry of stores and services, and the authenticator used by
protected sub-routes.

Usage:
    application = Application(settings)
    application.add_store(UserStore)
    users = application.add_service(UserService)
    application.use_authenticator(users.authenticate)
    app = application.http  # serve with uvicorn
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from core.config import Settings, get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
)
from core.errors import AuthenticationError
from core.handlers import register_handlers
from core.logger import get_logger
from core.middleware import BodySizeLimitMiddleware, RequestContextMiddleware
from core.routing import HttpMethod

if TYPE_CHECKING:
    from services.base import Service
    from stores.base import Store

logger = get_logger(__name__)

Authenticator = Callable[[dict[str, Any]], Any]


class Application:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        engine: AsyncEngine | None = None,
        authenticator: Authenticator | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.engine = engine or create_engine(self.settings)
        self.session_maker = create_session_maker(self.engine)
        self.authenticator = authenticator

        self.stores: dict[str, Store] = {}
        self.services: dict[str, Service] = {}

        docs_enabled = self.settings.enable_docs or self.settings.debug
        self.http = FastAPI(
            title=self.settings.project_name,
            version=self.settings.api_version,
            lifespan=self.lifespan,
            docs_url="/docs" if docs_enabled else None,
            redoc_url="/redoc" if docs_enabled else None,
            openapi_url="/openapi.json" if docs_enabled else None,
        )
        self.http.state.context = self

        register_handlers(self.http)
        self.http.add_middleware(
            BodySizeLimitMiddleware, max_body_size=self.settings.max_body_size
        )
        # Outermost, so every log line of the request carries its context.
        self.http.add_middleware(RequestContextMiddleware)

    # Registry

    def add_store[StoreT: Store](
        self, factory: Callable[[Application], StoreT]
    ) -> StoreT:
        store = factory(self)
        if store.name in self.stores:
            raise ValueError(f"A store named {store.name!r} is already registered")
        self.stores[store.name] = store
        return store

    def add_service[ServiceT: Service](
        self, factory: Callable[[Application], ServiceT]
    ) -> ServiceT:
        service = factory(self)
        if service.name in self.services:
            raise ValueError(f"A service named {service.name!r} is already registered")
        self.services[service.name] = service
        return service

    def query(self, name: str) -> Store:
        """Look up a registered store by resource name."""
        try:
            return self.stores[name]
        except KeyError:
            raise LookupError(f"No store named {name!r} is registered") from None

    def service(self, name: str) -> Service:
        try:
            return self.services[name]
        except KeyError:
            raise LookupError(f"No service named {name!r} is registered") from None

    # Routing

    def route(
        self,
        method: HttpMethod,
        path: str,
        endpoint: Callable[..., Awaitable[Any]],
        *,
        name: str | None = None,
    ) -> None:
        self.http.add_api_route(path, endpoint, methods=[method.value], name=name)
        logger.debug("route.registered", method=method.value, path=path)

    # Authentication

    def use_authenticator(self, authenticator: Authenticator) -> None:
        self.authenticator = authenticator

    async def authenticate(self, data: dict[str, Any]) -> Any:
        """Run the configured authenticator; its result may be sync or async."""
        if self.authenticator is None:
            raise AuthenticationError("Oops, no authenticator is configured!")
        result = self.authenticator(data)
        if inspect.isawaitable(result):
            result = await result
        return result

    # Lifecycle

    async def startup(self) -> None:
        await init_db(self.engine)
        if self.settings.store_preload:
            for store in self.stores.values():
                await store.preload()
        logger.info("init.complete", stores=sorted(self.stores))

    async def shutdown(self) -> None:
        for store in self.stores.values():
            store.close()
        await dispose_engine(self.engine)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        await self.startup()
        try:
            yield
        finally:
            await self.shutdown()
