"""
Exception handlers for the Advancia Pay Ledger server.

Domain errors and request validation failures become JSON error bodies with
the matching status; anything else is logged and answered with a 500 carrying
an error id.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
