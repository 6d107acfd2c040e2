"""Unit tests for the database layer in advancia_pay/core/database.

Repositories run against in-memory SQLite; guarded balance updates and
compare-and-set status transitions are exercised directly.
"""
