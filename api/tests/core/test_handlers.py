"""Tests for core.handlers: 404 and 413 fallbacks.

Unit tests call the handlers directly; integration tests go through the
assembled application so the middleware and handler wiring is covered.
"""

import json

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from core.errors import ENTITY_PARSE_FAILED, ENTITY_TOO_LARGE, RequestError
from core.handlers import (
    NOT_FOUND_ERROR,
    TOO_LARGE_ERROR,
    not_found_handler,
    payload_error_handler,
)


def _request(body: bytes = b"") -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/missing",
        "headers": [(b"content-type", b"application/json")],
        "query_string": b"",
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.mark.unit
class TestHandlersDirect:
    async def test_not_found_echoes_body(self):
        response = await not_found_handler(
            _request(b'{"a": 1}'), StarletteHTTPException(status_code=404)
        )

        assert response.status_code == 404
        assert json.loads(response.body) == {
            "message": NOT_FOUND_ERROR,
            "payload": {"a": 1},
            "debug": NOT_FOUND_ERROR,
        }

    async def test_not_found_with_unparseable_body_has_no_payload(self):
        response = await not_found_handler(
            _request(b"{oops"), StarletteHTTPException(status_code=404)
        )

        assert response.status_code == 404
        assert "payload" not in json.loads(response.body)

    async def test_other_http_errors_use_default_handler(self):
        response = await not_found_handler(
            _request(), StarletteHTTPException(status_code=405)
        )
        assert response.status_code == 405

    async def test_too_large_answers_413(self):
        error = RequestError(ENTITY_TOO_LARGE, "request entity too large")

        response = await payload_error_handler(_request(), error)

        assert response.status_code == 413
        assert json.loads(response.body) == {
            "message": TOO_LARGE_ERROR,
            "debug": "request entity too large",
        }

    async def test_other_request_errors_propagate(self):
        error = RequestError(ENTITY_PARSE_FAILED, "bad json")

        with pytest.raises(RequestError):
            await payload_error_handler(_request(), error)


@pytest.mark.integration
class TestFallbacksOverHttp:
    async def test_unmatched_route_is_404_envelope(self, client):
        response = await client.post("/nowhere", json={"hello": "world"})

        assert response.status_code == 404
        body = response.json()
        assert body["message"] == NOT_FOUND_ERROR
        assert body["debug"] == NOT_FOUND_ERROR
        assert body["payload"] == {"hello": "world"}

    async def test_oversized_body_is_413_on_service_route(self, app_factory):
        application = await app_factory(max_body_size=64)
        transport = ASGITransport(app=application.http)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.post("/client", json={"fullname": "x" * 200})

        assert response.status_code == 413
        body = response.json()
        assert body["message"] == TOO_LARGE_ERROR
        assert "exceeds the 64 byte limit" in body["debug"]
        assert "payload" not in body

    async def test_oversized_body_is_413_on_unmatched_route(self, app_factory):
        application = await app_factory(max_body_size=64)
        transport = ASGITransport(app=application.http)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.post("/nowhere", json={"blob": "x" * 200})

        assert response.status_code == 413
        assert response.json()["message"] == TOO_LARGE_ERROR

    async def test_invalid_json_is_a_server_error(self, application):
        transport = ASGITransport(app=application.http, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.post(
                "/client",
                content=b"{not json",
                headers={"content-type": "application/json"},
            )

        assert response.status_code == 500

    async def test_responses_carry_request_id(self, client):
        response = await client.get("/client")
        assert response.headers["x-request-id"]
