"""SQLAlchemy models for service-backed resources."""

import uuid
from datetime import UTC, datetime
from typing import Any, ClassVar

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from core.database import Base


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def new_id() -> str:
    return uuid.uuid4().hex


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Document(TimestampMixin, Base):
    """A resource record owned by a store.

    Subclasses list fields that must never leave the server in
    ``__hidden__``; they are skipped by ``to_dict``.
    """

    __abstract__ = True
    __hidden__: ClassVar[frozenset[str]] = frozenset()

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    @classmethod
    def fields(cls) -> dict[str, Any]:
        """Column name -> Column for every mapped column."""
        return {column.key: column for column in cls.__table__.columns}

    def to_dict(self) -> dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in self.fields()
            if key not in self.__hidden__
        }


class User(Document):
    """An account that can authorize and receive a session token.

    Passwords are stored and compared as plaintext; see DESIGN.md.
    """

    __tablename__ = "users"
    __hidden__ = frozenset({"password", "token"})

    username: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fullname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)


class Client(Document):
    """A debt-counselling client, assigned to a counsellor (user)."""

    __tablename__ = "clients"

    counsellor: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    pin: Mapped[str | None] = mapped_column(String(32), nullable=True)
    fullname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mobile: Mapped[str | None] = mapped_column(String(32), nullable=True)

    physical: Mapped[str | None] = mapped_column(Text, nullable=True)
    postal: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    marital: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    employment: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    income: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    expenses: Mapped[list | None] = mapped_column(JSON, nullable=True)
    debts: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Where the client is in the counselling process
    state: Mapped[str] = mapped_column(String(32), default="application")
