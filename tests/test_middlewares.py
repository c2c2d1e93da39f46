"""
Tests for the security, content-type and correlation middlewares.
"""

import pytest
from fastapi import FastAPI, Response
from fastapi.testclient import TestClient

from nutribite_api.core.middlewares import register_middlewares
from nutribite_shared.infrastructure.correlation import resolve_request_id


@pytest.fixture
def middleware_client():
    app = FastAPI()
    register_middlewares(app)

    @app.get("/ping")
    def ping():
        return Response(content="{}", media_type="application/json", headers={"Server": "uvicorn"})

    @app.post("/echo")
    def echo():
        return {"ok": True}

    return TestClient(app)


class TestSecurityHeadersMiddleware:
    def test_adds_security_headers(self, middleware_client):
        """Should add nosniff, frame and CSP headers."""
        response = middleware_client.get("/ping")

        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "default-src 'none'" in response.headers["Content-Security-Policy"]

    def test_strips_server_header(self, middleware_client):
        """Should remove the Server header set by the app."""
        response = middleware_client.get("/ping")

        assert "server" not in response.headers


class TestContentTypeValidationMiddleware:
    def test_rejects_form_body(self, middleware_client):
        """Should answer 415 for a non-JSON body."""
        response = middleware_client.post(
            "/echo", content="a=1", headers={"Content-Type": "application/x-www-form-urlencoded"}
        )
        assert response.status_code == 415

    def test_allows_json_and_bodyless_posts(self, middleware_client):
        """Should let JSON and body-less POSTs through."""
        assert middleware_client.post("/echo", json={}).status_code == 200
        assert middleware_client.post("/echo").status_code == 200


class TestCorrelationId:
    def test_generates_id_when_missing(self, middleware_client):
        """Should generate a request id when the caller sends none."""
        response = middleware_client.get("/ping")
        assert len(response.headers["X-Request-ID"]) == 32

    @pytest.mark.parametrize("incoming", ["", "has spaces", "x" * 65, "<script>"])
    def test_untrusted_ids_replaced(self, incoming):
        """Should replace empty, overlong or unprintable ids."""
        assert resolve_request_id(incoming) != incoming
