"""
Webhook intake.

Each provider delivery is verified against the raw request body, recorded as a
:class:`WebhookEvent`, and then applied by :class:`PaymentWebhookProcessor`
inside its own transaction. The event record is committed before processing so
that a failed delivery stays visible and can be retried by an admin.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Optional

from advancia_pay.core.database.base import utc_now
from advancia_pay.core.database.entities import WebhookEvent
from advancia_pay.core.database.repositories import WebhookEventRepository
from advancia_pay.core.errors import (
    NotFoundError,
    ServiceNotConfiguredError,
    ValidationFailedError,
    WebhookProcessingError,
    WebhookSignatureError,
)
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import PaymentProvider, WebhookProcessingResult
from advancia_pay.core.monitoring import log_error, log_webhook_event
from advancia_pay.payments.processor import PaymentWebhookProcessor
from advancia_pay.payments.signatures import verify_alchemy_pay_signature, verify_nowpayments_signature
from advancia_pay.payments.stripe_gateway import StripeGateway
from advancia_pay.realtime import events
from advancia_pay.server.core.config import Settings, settings as default_settings

from .base import TransactionalService

logger = get_logger(__name__)


def _parse_json(raw: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ValidationFailedError("Invalid JSON payload") from e
    if not isinstance(payload, dict):
        raise ValidationFailedError("Invalid JSON payload")
    return payload


class WebhookService(TransactionalService):
    """Verify, record and apply payment provider webhooks."""

    def __init__(
        self, *args, stripe_gateway: Optional[StripeGateway] = None, config: Optional[Settings] = None, **kwargs
    ) -> None:
        super().__init__(*args, **kwargs)
        self.config = config or default_settings
        self.stripe = stripe_gateway or StripeGateway(self.config.stripe)
        self.events = WebhookEventRepository(self.session)
        self.processor = PaymentWebhookProcessor(self.session, self.notifier)

    # ------------------------------------------------------------------
    # Provider endpoints
    # ------------------------------------------------------------------

    async def handle_nowpayments(self, raw: bytes, signature: Optional[str]) -> dict[str, Any]:
        secret = self.config.nowpayments.ipn_secret
        if not secret:
            raise ServiceNotConfiguredError("NOWPayments is not configured")
        if not verify_nowpayments_signature(raw, signature, secret):
            log_webhook_event(PaymentProvider.nowpayments.value, "ipn", "-", "rejected")
            raise WebhookSignatureError(PaymentProvider.nowpayments.value)

        payload = _parse_json(raw)
        status = str(payload.get("payment_status") or "unknown")
        return await self._record_and_process(
            provider=PaymentProvider.nowpayments,
            event_type=status,
            event_id=f"{payload.get('payment_id')}:{status}",
            raw=raw,
            signature=signature,
            apply=lambda: self.processor.process_nowpayments(payload),
        )

    async def handle_alchemy_pay(self, raw: bytes, signature: Optional[str]) -> dict[str, Any]:
        secret = self.config.alchemy_pay.secret
        if not secret:
            raise ServiceNotConfiguredError("Alchemy Pay is not configured")
        if not verify_alchemy_pay_signature(raw, signature, secret):
            log_webhook_event(PaymentProvider.alchemy_pay.value, "order", "-", "rejected")
            raise WebhookSignatureError(PaymentProvider.alchemy_pay.value)

        payload = _parse_json(raw)
        status = str(payload.get("status") or "UNKNOWN")
        return await self._record_and_process(
            provider=PaymentProvider.alchemy_pay,
            event_type=status,
            event_id=f"{payload.get('merchantOrderNo') or payload.get('orderNo')}:{status}",
            raw=raw,
            signature=signature,
            apply=lambda: self.processor.process_alchemy_pay(payload),
        )

    async def handle_stripe(self, raw: bytes, signature: Optional[str]) -> dict[str, Any]:
        try:
            self.stripe.construct_event(raw, signature)
        except WebhookSignatureError:
            log_webhook_event(PaymentProvider.stripe.value, "event", "-", "rejected")
            raise

        payload = _parse_json(raw)
        event_type = str(payload.get("type") or "unknown")
        data_object = (payload.get("data") or {}).get("object") or {}
        return await self._record_and_process(
            provider=PaymentProvider.stripe,
            event_type=event_type,
            event_id=str(payload.get("id")),
            raw=raw,
            signature=signature,
            apply=lambda: self.processor.process_stripe_event(event_type, data_object),
        )

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def status(self, limit: int = 100) -> dict[str, Any]:
        recent = await self.events.list_recent(limit)
        return {
            "stats": await self.events.stats(),
            "events": [events.serialize(e, exclude={"payload", "signature"}) for e in recent],
        }

    async def retry(self, webhook_event_id: str) -> dict[str, Any]:
        """Re-apply a stored delivery that previously failed."""
        async with self.unit_of_work():
            event = await self.events.get_by_id(webhook_event_id)
            if event is None:
                raise NotFoundError("Webhook event not found")
            if event.processing_result == WebhookProcessingResult.success.value:
                raise ValidationFailedError("Webhook event already processed")
            if event.retry_count >= event.max_retries:
                raise ValidationFailedError(
                    "Maximum retry attempts reached", details={"retryCount": event.retry_count}
                )
            event.retry_count += 1
            event = await self.events.update(event)
            provider, raw = event.provider, event.payload.encode("utf-8")

        payload = _parse_json(raw)

        async def apply() -> Any:
            if provider == PaymentProvider.nowpayments.value:
                return await self.processor.process_nowpayments(payload)
            if provider == PaymentProvider.alchemy_pay.value:
                return await self.processor.process_alchemy_pay(payload)
            if provider == PaymentProvider.stripe.value:
                data_object = (payload.get("data") or {}).get("object") or {}
                return await self.processor.process_stripe_event(str(payload.get("type")), data_object)
            raise ValidationFailedError(f"Unsupported webhook provider: {provider}")

        logger.info(f"Retrying webhook event {webhook_event_id} ({provider})")
        await self._process(webhook_event_id, apply)
        refreshed = await self.events.get_by_id(webhook_event_id, fresh=True)
        return {"success": True, "event": events.serialize(refreshed, exclude={"payload", "signature"})}

    # ------------------------------------------------------------------
    # Recording and processing
    # ------------------------------------------------------------------

    async def _record_and_process(
        self,
        *,
        provider: PaymentProvider,
        event_type: str,
        event_id: str,
        raw: bytes,
        signature: Optional[str],
        apply: Callable[[], Awaitable[Any]],
    ) -> dict[str, Any]:
        async with self.unit_of_work():
            if await self.events.find_successful(provider.value, event_id) is not None:
                duplicate = True
            else:
                duplicate = False
                event = await self.events.create(
                    WebhookEvent(
                        provider=provider.value,
                        event_type=event_type[:128],
                        event_id=event_id[:255],
                        payload=raw.decode("utf-8", errors="replace"),
                        signature=(signature or "")[:512] or None,
                    )
                )
                event_pk = event.id

        if duplicate:
            logger.info(f"Duplicate {provider.value} webhook {event_id}; already processed")
            log_webhook_event(provider.value, event_type, event_id, "duplicate")
            return {"received": True, "duplicate": True}

        await self._process(event_pk, apply)
        log_webhook_event(provider.value, event_type, event_id, "success")
        return {"received": True}

    async def _process(self, event_pk: str, apply: Callable[[], Awaitable[Any]]) -> None:
        try:
            async with self.unit_of_work():
                await apply()
                event = await self.events.get_by_id(event_pk)
                event.processed = True
                event.processing_result = WebhookProcessingResult.success.value
                event.error_message = None
                event.processed_at = utc_now()
                await self.events.update(event)
        except Exception as e:
            logger.error(f"Webhook event {event_pk} processing failed: {e}", exc_info=True)
            log_error(type(e).__name__, str(e), {"webhook_event_id": event_pk})
            async with self.unit_of_work():
                event = await self.events.get_by_id(event_pk, fresh=True)
                event.processed = False
                event.processing_result = WebhookProcessingResult.error.value
                event.error_message = str(e)[:2000]
                event.processed_at = utc_now()
                await self.events.update(event)
            raise WebhookProcessingError("Webhook processing failed", details={"eventId": event_pk}) from e
