"""Advancia Pay Ledger backend."""

__version__ = "1.0.0"
