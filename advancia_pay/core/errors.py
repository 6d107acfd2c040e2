"""
Domain error taxonomy.

Every error raised by the service layer derives from :class:`AdvanciaError` and
carries the HTTP status it should surface as, plus optional structured details
that are merged into the JSON error body by the exception handlers.
"""

from __future__ import annotations

from typing import Any, Optional


class AdvanciaError(Exception):
    """Base class of all domain errors."""

    status_code: int = 400

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, **self.details}


class ValidationFailedError(AdvanciaError):
    """Request data is well-formed JSON but violates a business rule."""

    status_code = 400


class InsufficientBalanceError(AdvanciaError):
    status_code = 400

    def __init__(self, required: Any, current: Any):
        super().__init__("Insufficient balance", details={"required": str(required), "current": str(current)})


class InvalidTransitionError(AdvanciaError):
    """A state machine transition is not allowed from the entity's current status."""

    status_code = 400

    def __init__(self, entity: str, current_status: str):
        super().__init__(f"{entity} is already {current_status.lower()}", details={"status": current_status})
        self.current_status = current_status


class AuthenticationError(AdvanciaError):
    status_code = 401


class PermissionDeniedError(AdvanciaError):
    status_code = 403


class NotFoundError(AdvanciaError):
    status_code = 404


class ConflictError(AdvanciaError):
    status_code = 409


class WebhookSignatureError(AdvanciaError):
    """A webhook payload failed signature verification."""

    status_code = 400

    def __init__(self, provider: str, message: str = "Invalid signature"):
        super().__init__(message)
        self.provider = provider


class PaymentProviderError(AdvanciaError):
    """An outbound call to a payment provider failed."""

    status_code = 502

    def __init__(self, provider: str, message: str, *, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.provider = provider


class ServiceNotConfiguredError(AdvanciaError):
    """An integration was used without the credentials it needs."""

    status_code = 503


class WebhookProcessingError(AdvanciaError):
    """A verified webhook could not be applied; the delivery is kept for retry."""

    status_code = 500
