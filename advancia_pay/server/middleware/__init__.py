"""
Middleware modules for the Advancia Pay Ledger server.
"""

from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
