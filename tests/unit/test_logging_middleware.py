"""Tests for app.middleware.logging_middleware: request IDs, timing, access log."""

from unittest.mock import patch

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.middleware.logging_middleware import LoggingMiddleware


@pytest.fixture
def app() -> FastAPI:
    application = FastAPI()
    application.add_middleware(LoggingMiddleware)

    @application.get("/api/v1/products/{asin}")
    async def product(asin: str):
        return {"asin": asin, "context": structlog.contextvars.get_contextvars()}

    @application.get("/health")
    async def health():
        return {"status": "healthy"}

    return application


class TestRequestId:

    def test_generates_request_id(self, app):
        response = TestClient(app).get("/api/v1/products/B09C5RG6KV")

        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 8
        assert response.json()["context"]["request_id"] == request_id

    def test_reuses_valid_incoming_id(self, app):
        response = TestClient(app).get(
            "/api/v1/products/B09C5RG6KV", headers={"X-Request-ID": "edge-42.a"}
        )
        assert response.headers["X-Request-ID"] == "edge-42.a"

    def test_replaces_unsafe_incoming_id(self, app):
        response = TestClient(app).get(
            "/api/v1/products/B09C5RG6KV", headers={"X-Request-ID": "bad id with spaces"}
        )
        assert response.headers["X-Request-ID"] != "bad id with spaces"
        assert len(response.headers["X-Request-ID"]) == 8

    def test_response_time_header(self, app):
        response = TestClient(app).get("/api/v1/products/B09C5RG6KV")
        assert response.headers["X-Response-Time"].endswith("ms")


class TestAccessLog:

    @patch("app.middleware.logging_middleware.logger")
    def test_logs_api_requests(self, mock_logger, app):
        TestClient(app).get("/api/v1/products/B09C5RG6KV")

        mock_logger.info.assert_called_once()
        message = mock_logger.info.call_args[0][0]
        assert "GET /api/v1/products/B09C5RG6KV" in message
        assert "200" in message

    @patch("app.middleware.logging_middleware.logger")
    def test_health_checks_not_logged(self, mock_logger, app):
        TestClient(app).get("/health")
        mock_logger.info.assert_not_called()
