"""Tests for core.application: registry, authenticator and lifecycle."""

import pytest

from core.errors import AuthenticationError
from stores import UserStore


@pytest.mark.integration
class TestRegistry:
    async def test_stores_and_services_are_registered(self, application):
        assert sorted(application.stores) == ["client", "user"]
        assert sorted(application.services) == ["client", "user"]

    async def test_duplicate_store_is_rejected(self, application):
        with pytest.raises(ValueError, match="already registered"):
            application.add_store(UserStore)

    async def test_unknown_service_lookup(self, application):
        with pytest.raises(LookupError, match="No service named"):
            application.service("nothing")

    async def test_http_state_points_back_to_context(self, application):
        assert application.http.state.context is application


@pytest.mark.integration
class TestAuthenticate:
    async def test_without_authenticator_raises(self, application):
        application.use_authenticator(None)

        with pytest.raises(AuthenticationError, match="no authenticator"):
            await application.authenticate({})

    async def test_sync_authenticator(self, application):
        application.use_authenticator(lambda data: data.get("token") == "t")

        assert await application.authenticate({"token": "t"}) is True

    async def test_async_authenticator(self, application):
        async def authenticator(data):
            return {"id": "u1"}

        application.use_authenticator(authenticator)

        assert await application.authenticate({}) == {"id": "u1"}


@pytest.mark.integration
class TestLifecycle:
    async def test_shutdown_detaches_store_listeners(self, app_factory):
        application = await app_factory()
        users = application.query("user")

        await application.shutdown()

        assert users._listeners == []
