"""Store for user accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from models import User
from stores.base import Store

if TYPE_CHECKING:
    from core.application import Application


class UserStore(Store[User]):
    def __init__(self, context: Application) -> None:
        super().__init__(context, name="user", storage=User)

    async def find_by_token(self, token: str | None) -> User | None:
        """The user holding ``token``, or None for a missing/blank token."""
        if not token:
            return None
        return await self.find_one({"token": token})
