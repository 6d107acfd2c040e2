"""
Unit tests for server exception handlers.

Tests cover rendering of domain errors, request validation failures and
unhandled exceptions, both through the handlers directly and through an
application with the handlers registered.
"""

from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field

from advancia_pay.core.errors import (
    InsufficientBalanceError,
    NotFoundError,
    PaymentProviderError,
    WebhookSignatureError,
)
from advancia_pay.server.exception_handlers import setup_exception_handlers
from advancia_pay.server.exception_handlers.domain_handler import domain_exception_handler
from advancia_pay.server.exception_handlers.global_handler import global_exception_handler

pytestmark = pytest.mark.asyncio


@pytest.fixture
def mock_request():
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/withdrawals"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestGlobalExceptionHandler:
    async def test_logs_and_returns_500(self, mock_request):
        with patch("advancia_pay.server.exception_handlers.global_handler.logger") as mock_logger, patch(
            "advancia_pay.server.exception_handlers.global_handler.log_error"
        ) as mock_log_error:
            response = await global_exception_handler(mock_request, ValueError("Test error"))

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["extra"]["error_type"] == "ValueError"
        mock_log_error.assert_called_once()

    async def test_error_id_in_body(self, mock_request):
        with patch("advancia_pay.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, RuntimeError("boom"))

        body = response.body.decode()
        assert '"detail":"Internal server error"' in body
        assert '"error_id"' in body

    async def test_request_without_client(self, mock_request):
        mock_request.client = None
        with patch("advancia_pay.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("boom"))

        assert mock_logger.error.call_args.kwargs["extra"]["client"] == "unknown"


class TestDomainExceptionHandler:
    async def test_details_are_merged_into_body(self, mock_request):
        response = await domain_exception_handler(mock_request, InsufficientBalanceError("100", "10"))

        assert response.status_code == 400
        assert response.body == b'{"detail":"Insufficient balance","required":"100","current":"10"}'

    async def test_server_side_errors_log_at_error(self, mock_request):
        with patch("advancia_pay.server.exception_handlers.domain_handler.logger") as mock_logger:
            response = await domain_exception_handler(
                mock_request, PaymentProviderError("nowpayments", "upstream down", status_code=503)
            )

        assert response.status_code == 503
        mock_logger.error.assert_called_once()
        mock_logger.info.assert_not_called()


class PayoutBody(BaseModel):
    amount: float = Field(..., gt=0)


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Withdrawal not found")

    @app.post("/webhook")
    async def webhook():
        raise WebhookSignatureError("nowpayments")

    @app.post("/payout")
    async def payout(body: PayoutBody):
        return body

    @app.get("/crash")
    async def crash():
        raise RuntimeError("unexpected")

    return app


class TestRegisteredHandlers:
    async def test_domain_errors(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            missing = await client.get("/missing")
            webhook = await client.post("/webhook")

        assert missing.status_code == 404
        assert missing.json() == {"detail": "Withdrawal not found"}
        assert webhook.status_code == 400
        assert webhook.json()["detail"] == "Invalid signature"

    async def test_validation_errors_are_400_with_fields(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/payout", json={"amount": -5})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Validation failed"
        assert body["errors"][0]["field"] == "amount"

    async def test_unhandled_errors_are_500(self, app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/crash")

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"
