"""User service: account CRUD plus authorize and profile sub-routes.

Passwords are compared as stored (plaintext). That mirrors how accounts
were checked historically and is not fit for production use; see the
credentials note in DESIGN.md.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any

from core.errors import AuthenticationError, NotFoundError, ValidationError
from core.logger import get_logger
from core.routing import HttpMethod
from models import User
from services.base import Microservice, Service
from stores.user_store import UserStore

if TYPE_CHECKING:
    from core.application import Application

logger = get_logger(__name__)

TOKEN_BYTES = 32


class UserService(Service[User]):
    def __init__(self, context: Application) -> None:
        super().__init__(context, name="user", store="user")
        self.add_services(user_services(self))

    @property
    def users(self) -> UserStore:
        return self.store  # type: ignore[return-value]

    async def authorize(self, data: dict[str, Any]) -> dict[str, Any]:
        """Return the account matching ``username`` and ``password``.

        Raises:
            ValidationError: No username was given.
            AuthenticationError: No account has that username/password pair.
        """
        username = data.get("username")
        if not username:
            raise ValidationError("Oops, username is required!")

        user = await self.users.find_one(
            {"username": username, "password": data.get("password", "")}
        )
        if user is None:
            logger.info("user.authorize.rejected", username=username)
            raise AuthenticationError("Oops, username or password is incorrect!")

        logger.info("user.authorize.accepted", user_id=user.id)
        return user.to_dict()

    async def issue_token(self, record: dict[str, Any]) -> dict[str, Any]:
        """Store a fresh session token on the authorized account."""
        token = secrets.token_hex(TOKEN_BYTES)
        user = await self.users.update_one(record["id"], {"token": token})
        if user is None:
            raise NotFoundError("Oops, user does not exist!")
        # Only the authorize response ever carries the token
        return {**user.to_dict(), "token": token}

    async def profile(self, data: dict[str, Any]) -> dict[str, Any]:
        user = await self.users.find_by_token(data.get("token"))
        if user is None:
            raise AuthenticationError("Oops, authentication error occurred!")
        return user.to_dict()

    async def authenticate(self, data: dict[str, Any]) -> User | None:
        """Application authenticator: the account owning ``data["token"]``."""
        return await self.users.find_by_token(data.get("token"))


def user_services(service: UserService) -> dict[str, Microservice]:
    return {
        "authorize": Microservice(
            method=HttpMethod.POST,
            message="Hi, you have been authorized!",
            error="Oops, could not authorize user!",
            callback=service.authorize,
            after=(service.issue_token,),
        ),
        "profile": Microservice(
            method=HttpMethod.GET,
            message="Hi, a data payload is provided!",
            error="Oops, could not find user profile!",
            authenticate=True,
            callback=service.profile,
        ),
    }
