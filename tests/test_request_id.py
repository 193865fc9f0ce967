"""Tests for the request ID middleware and the health endpoint."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from reader.app.core.logging import request_id_var
from reader.app.middleware.request_id import RequestIdMiddleware, get_request_id


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {"state": get_request_id(request), "context": request_id_var.get()}

    return app


class TestRequestIdMiddleware:
    """Test RequestIdMiddleware."""

    def test_generates_request_id(self):
        client = TestClient(_app())
        response = client.get("/echo")

        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 36
        assert response.json() == {"state": request_id, "context": request_id}

    def test_propagates_incoming_request_id(self):
        client = TestClient(_app())
        response = client.get("/echo", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json()["context"] == "abc-123"

    def test_context_variable_is_reset(self):
        client = TestClient(_app())
        client.get("/echo", headers={"X-Request-ID": "abc-123"})
        assert request_id_var.get() is None

    def test_get_request_id_without_middleware(self):
        app = FastAPI()

        @app.get("/plain")
        async def plain(request: Request) -> dict:
            return {"id": get_request_id(request)}

        assert TestClient(app).get("/plain").json() == {"id": "unknown"}


class TestHealth:
    """Test GET /health."""

    @pytest.mark.asyncio
    async def test_health_reports_database(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert "status" in data
        assert "database" in data["components"]
        assert "X-Request-ID" in response.headers
