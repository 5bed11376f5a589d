"""Pydantic schemas for API responses."""

from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    """Uniform response body for every route, success or failure."""

    message: str | None = None
    payload: Any = None
    debug: str | None = None


class Page(BaseModel):
    """A paginated read: one slice of records plus the total match count."""

    page: list[dict[str, Any]]
    length: int
