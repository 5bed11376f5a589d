"""Base store: binds one mapped document class to the database.

A store owns the model handle for its resource type and is the only way
services read and write records of that type. It also keeps an
in-memory mirror of the records (see ``core.cache``) up to date by
listening to the ORM's post-insert, post-update and post-delete events.

Construction order:
1. register the mirror's lifecycle listeners on the schema
2. ``onmodel(schema)`` - customise the raw schema before it is compiled
3. compile the schema into the live model handle (``storage``)
4. ``oninit()``
5. ``onready()``
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import ColumnElement, event, func, inspect, select
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.cache import StoreCache
from core.errors import PersistenceError, ValidationError
from core.logger import get_logger
from models import Document

if TYPE_CHECKING:
    from core.application import Application

logger = get_logger(__name__)

# Columns the database maintains; never taken from request data on writes
MANAGED_FIELDS = frozenset({"created_at", "updated_at"})

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class Store[DocumentT: Document]:
    """Persistence binding for one resource type."""

    def __init__(
        self,
        context: Application,
        *,
        name: str,
        storage: type[DocumentT],
    ) -> None:
        self.context = context
        self.name = name
        self.cache = StoreCache(maxsize=context.settings.store_cache_size)
        self._listeners: list[tuple[str, Callable[..., None]]] = []

        self.hooks(storage)
        self.onmodel(storage)
        self.storage: type[DocumentT] = self._compile(storage)

        self.oninit()
        self.onready()
        logger.info("store.ready", store=self.name, table=self.storage.__tablename__)

    # Lifecycle extension points; subclasses override as needed.

    def onmodel(self, schema: type[DocumentT]) -> None:
        """Called with the raw schema before it is compiled."""

    def oninit(self) -> None:
        """Called once the model handle exists."""

    def onready(self) -> None:
        """Called last, when the store is usable."""

    def hooks(self, schema: type[DocumentT]) -> None:
        """Keep the mirror in step with inserts, updates and deletes."""
        engine = self.context.engine.sync_engine

        # Listeners are per mapped class; only writes through this
        # application's engine belong in its mirror.
        def after_insert(mapper, connection, target: DocumentT) -> None:
            if connection.engine is engine:
                self.cache.put(target.id, target.to_dict(), inserted=True)

        def after_update(mapper, connection, target: DocumentT) -> None:
            if connection.engine is engine:
                self.cache.put(target.id, target.to_dict())

        def after_delete(mapper, connection, target: DocumentT) -> None:
            if connection.engine is engine:
                self.cache.discard(target.id)

        for identifier, listener in (
            ("after_insert", after_insert),
            ("after_update", after_update),
            ("after_delete", after_delete),
        ):
            event.listen(schema, identifier, listener)
            self._listeners.append((identifier, listener))

    def close(self) -> None:
        """Detach the mirror's listeners from the schema."""
        for identifier, listener in self._listeners:
            if event.contains(self.storage, identifier, listener):
                event.remove(self.storage, identifier, listener)
        self._listeners.clear()

    def _compile(self, schema: type[DocumentT]) -> type[DocumentT]:
        try:
            mapper = inspect(schema)
        except NoInspectionAvailable as e:
            raise TypeError(f"{schema!r} is not a mapped document class") from e
        return mapper.class_

    async def preload(self) -> int:
        """Bulk-load every persisted record into the mirror.

        Returns the number of records loaded.
        """
        documents = await self.find({})
        self.cache.load({document.id: document.to_dict() for document in documents})
        logger.info("store.preloaded", store=self.name, count=self.cache.count)
        return self.cache.count

    # Data access

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Commits on success, rolls back on exception.

        Database errors are re-raised as ``PersistenceError``.
        """
        async with self.context.session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                if isinstance(e, SQLAlchemyError):
                    raise PersistenceError(str(e)) from e
                raise

    def values(
        self, data: dict[str, Any], *, exclude: frozenset[str] = frozenset()
    ) -> dict[str, Any]:
        """Known fields of ``data`` coerced to their column types.

        Unknown keys are dropped.
        """
        fields = self.storage.fields()
        return {
            key: self._coerce(key, fields[key], value)
            for key, value in data.items()
            if key in fields and key not in exclude
        }

    def filters(self, data: dict[str, Any]) -> list[ColumnElement[bool]]:
        """Equality clauses for every known field in ``data``."""
        return [
            getattr(self.storage, key) == value
            for key, value in self.values(data).items()
        ]

    def _coerce(self, key: str, column: Any, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value

        try:
            if python_type is bool:
                return value.strip().lower() in _TRUTHY
            if python_type in (int, float, Decimal):
                return python_type(value)
            if python_type is datetime:
                return datetime.fromisoformat(value)
        except (ValueError, ArithmeticError) as e:
            raise ValidationError(f"Oops, {key} has an invalid value: {value!r}") from e
        return value

    async def create(self, data: dict[str, Any]) -> DocumentT:
        values = self.values(data, exclude=MANAGED_FIELDS)
        if not values.get("id"):
            values.pop("id", None)

        async with self.session() as session:
            document = self.storage(**values)
            session.add(document)
            await session.flush()
            return document

    async def find(
        self,
        data: dict[str, Any],
        *,
        skip: int | None = None,
        limit: int | None = None,
    ) -> list[DocumentT]:
        query = (
            select(self.storage)
            .where(*self.filters(data))
            .order_by(self.storage.created_at, self.storage.id)
        )
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)

        async with self.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def find_one(self, data: dict[str, Any]) -> DocumentT | None:
        documents = await self.find(data, limit=1)
        return documents[0] if documents else None

    async def find_by_id(self, record_id: str) -> DocumentT | None:
        async with self.session() as session:
            return await session.get(self.storage, record_id)

    async def count(self, data: dict[str, Any]) -> int:
        query = (
            select(func.count()).select_from(self.storage).where(*self.filters(data))
        )
        async with self.session() as session:
            return (await session.scalar(query)) or 0

    async def update_one(
        self, record_id: str, data: dict[str, Any]
    ) -> DocumentT | None:
        """Set every known field in ``data`` on the record; None if missing."""
        values = self.values(data, exclude=MANAGED_FIELDS | {"id"})

        async with self.session() as session:
            document = await session.get(self.storage, record_id)
            if document is None:
                return None
            for key, value in values.items():
                setattr(document, key, value)
            await session.flush()
            return document

    async def remove_one(self, record_id: str) -> DocumentT | None:
        async with self.session() as session:
            document = await session.get(self.storage, record_id)
            if document is None:
                return None
            await session.delete(document)
            await session.flush()
            return document
