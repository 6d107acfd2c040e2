"""
Unit tests for the request logging middleware.

This test suite covers:
- Request/response processing and the X-Process-Time header
- Logfire request reporting
- Error propagation
- Slow request detection
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from starlette.responses import Response

from advancia_pay.server.middleware import RequestLoggingMiddleware

MODULE = "advancia_pay.server.middleware.request_logging"


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "POST"
    request.url = MagicMock()
    request.url.path = "/api/withdrawals"
    return request


@pytest.fixture
def middleware() -> RequestLoggingMiddleware:
    return RequestLoggingMiddleware(app=AsyncMock())


@pytest.mark.asyncio
class TestRequestLoggingMiddleware:
    async def test_successful_request_is_reported(self, middleware, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=201)

        with patch(f"{MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 201
        assert float(response.headers["X-Process-Time"]) >= 0
        kwargs = mock_log.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["path"] == "/api/withdrawals"
        assert kwargs["status_code"] == 201

    async def test_exception_is_reported_as_500_and_reraised(self, middleware, mock_request):
        async def call_next(request):
            raise RuntimeError("database gone")

        with patch(f"{MODULE}.log_api_request") as mock_log, patch(f"{MODULE}.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args.kwargs["status_code"] == 500
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["extra"]["error"] == "database gone"

    async def test_slow_request_warning(self, middleware, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        with patch(f"{MODULE}.log_api_request"), patch(f"{MODULE}.logger") as mock_logger, patch(
            f"{MODULE}.time.perf_counter", side_effect=[0.0, 2.5]
        ):
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args.args[0]
        assert mock_logger.warning.call_args.kwargs["extra"]["duration_ms"] == 2500

    async def test_fast_request_has_no_warning(self, middleware, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        with patch(f"{MODULE}.log_api_request"), patch(f"{MODULE}.logger") as mock_logger, patch(
            f"{MODULE}.time.perf_counter", side_effect=[0.0, 0.01]
        ):
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_not_called()
