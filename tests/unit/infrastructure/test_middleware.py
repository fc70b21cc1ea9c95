"""Unit tests for RequestLoggingMiddleware."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from musicflow.infrastructure.observability.middleware import (
    RequestLoggingMiddleware,
    redact_query,
)


class TestRequestLoggingMiddleware:
    """Test suite for RequestLoggingMiddleware."""

    @pytest.fixture
    def app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)

        @app.get("/rest/ping")
        async def ping(request: Request) -> dict:
            return {"query": redact_query(request)}

        @app.get("/error")
        async def error_endpoint() -> dict:
            raise ValueError("Test error")

        return app

    @pytest.fixture
    def client(self, app: FastAPI) -> TestClient:
        return TestClient(app)

    def test_credentials_are_redacted(self, client: TestClient) -> None:
        response = client.get("/rest/ping?u=alice&p=secret&t=abc&s=salt&f=json")

        assert response.json()["query"] == "u=alice&p=***&t=***&s=***&f=json"

    def test_correlation_id_header_is_echoed(self, client: TestClient) -> None:
        response = client.get("/rest/ping", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_is_generated(self, client: TestClient) -> None:
        response = client.get("/rest/ping")

        assert len(response.headers["X-Correlation-ID"]) == 36

    def test_successful_request_logs_completion(self, client: TestClient) -> None:
        with patch("musicflow.infrastructure.observability.middleware.logger") as mock_logger:
            client.get("/rest/ping?p=secret")

        assert mock_logger.info.call_count == 2
        started = mock_logger.info.call_args_list[0]
        assert started.kwargs["extra"]["query_params"] == "p=***"
        finished = mock_logger.info.call_args_list[1]
        assert finished.kwargs["extra"]["status_code"] == 200
        assert "duration_ms" in finished.kwargs["extra"]

    def test_failed_request_logs_exception(self, client: TestClient) -> None:
        with patch("musicflow.infrastructure.observability.middleware.logger") as mock_logger:
            with pytest.raises(ValueError):
                client.get("/error")

        mock_logger.exception.assert_called_once()
        assert mock_logger.exception.call_args.kwargs["extra"]["error_type"] == "ValueError"
