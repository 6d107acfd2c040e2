"""
Monitoring and Tracing Configuration Module.

This module wires Logfire into the service for tracing of API requests, database
operations and outbound provider calls, and offers small helpers that record the
money-moving events (withdrawal transitions, webhook deliveries) as structured
Logfire records.

Logfire is only configured when ``LOGFIRE_ENABLED`` is true and a token is present;
otherwise every helper degrades to a debug log line.
"""

import logging
import os
from typing import Any, Optional

import logfire
from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "advancia-pay-ledger")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "1.0.0")

LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_HTTPX = os.getenv("LOGFIRE_TRACE_HTTPX", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

_configured = False


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire monitoring and tracing.

    Instruments SQLAlchemy, HTTPX and (when ``app`` is given) FastAPI according to
    the ``LOGFIRE_TRACE_*`` flags.

    Args:
        app: FastAPI application instance for endpoint instrumentation (optional).

    Returns:
        True when Logfire was configured.
    """
    global _configured

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        if not _configured:
            logfire.configure(
                token=LOGFIRE_TOKEN,
                service_name=LOGFIRE_SERVICE_NAME,
                service_version=LOGFIRE_SERVICE_VERSION,
                environment=LOGFIRE_ENVIRONMENT,
            )
            _configured = True

            if LOGFIRE_TRACE_SQLALCHEMY:
                try:
                    logfire.instrument_sqlalchemy()
                    logger.info("Logfire: SQLAlchemy instrumentation enabled")
                except Exception as e:
                    logger.warning(f"Failed to instrument SQLAlchemy: {e}")

            if LOGFIRE_TRACE_HTTPX:
                try:
                    logfire.instrument_httpx()
                    logger.info("Logfire: HTTPX instrumentation enabled")
                except Exception as e:
                    logger.warning(f"Failed to instrument HTTPX: {e}")

        if LOGFIRE_TRACE_FASTAPI and app is not None:
            try:
                logfire.instrument_fastapi(app=app)
                logger.info("Logfire: FastAPI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument FastAPI: {e}")

        logger.info(
            f"Logfire monitoring initialized: environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}"
        )
        return True
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not _configured:
        logger.debug("Logfire not configured; skipping record")
        return
    try:
        logfire.info(
            "API request completed",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
    except Exception:
        logger.debug(f"Could not log API request to Logfire: {method} {path}")


def log_withdrawal_transition(withdrawal_id: str, from_status: str, to_status: str, actor_id: str) -> None:
    """Record a withdrawal state change."""
    if not _configured:
        logger.debug("Logfire not configured; skipping record")
        return
    try:
        logfire.info(
            "Withdrawal {withdrawal_id} {from_status} -> {to_status}",
            withdrawal_id=withdrawal_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
        )
    except Exception:
        logger.debug(f"Could not log withdrawal transition to Logfire: {withdrawal_id}")


def log_webhook_event(provider: str, event_type: str, event_id: str, outcome: str) -> None:
    """
    Record a provider webhook delivery and how it was handled.

    Args:
        provider: Payment provider name
        event_type: Provider event type or status
        event_id: Provider-side event identity
        outcome: success, error, duplicate or rejected
    """
    if not _configured:
        logger.debug("Logfire not configured; skipping record")
        return
    try:
        logfire.info(
            "Webhook {provider} {event_type}: {outcome}",
            provider=provider,
            event_type=event_type,
            event_id=event_id,
            outcome=outcome,
        )
    except Exception:
        logger.debug(f"Could not log webhook event to Logfire: {provider} {event_id}")


def log_error(error_type: str, error_message: str, context: Optional[dict[str, Any]] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _configured:
        logger.debug("Logfire not configured; skipping record")
        return
    try:
        logfire.error(
            "{error_type}: {error_message}",
            error_type=error_type,
            error_message=error_message,
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
