"""
Admin ledger operations.

Admins credit, deduct or correct a user's balance directly, browse the
ledger across users and freeze or unfreeze accounts. Every balance change is
a guarded UPDATE plus a signed ``ADJUSTMENT`` ledger entry carrying the acting
admin and the reason, and a COMPLETED ``ADJUSTMENT`` transaction the user can
see.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from advancia_pay.core.database.entities import Transaction, User
from advancia_pay.core.database.repositories import LedgerRepository, TransactionRepository, UserRepository
from advancia_pay.core.errors import InsufficientBalanceError, NotFoundError, ValidationFailedError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import (
    LedgerEntryType,
    NotificationLevel,
    TransactionStatus,
    TransactionType,
)
from advancia_pay.realtime import events

from .base import TransactionalService
from .withdrawals import balance_field

logger = get_logger(__name__)

MIN_DEDUCTION_REASON_LENGTH = 10
MIN_ADJUSTMENT_REASON_LENGTH = 15


class LedgerAdminService(TransactionalService):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.users = UserRepository(self.session)
        self.ledger = LedgerRepository(self.session)
        self.transactions = TransactionRepository(self.session)

    async def credit(
        self,
        admin: User,
        user_id: str,
        *,
        amount: Decimal,
        currency: str,
        reason: str,
        tx_hash: Optional[str] = None,
    ) -> dict[str, Any]:
        """Add funds to a user's balance."""
        reason = self._require_reason(reason)
        self._require_positive(amount)
        return await self._adjust(admin, user_id, amount, currency.upper(), reason, tx_hash=tx_hash)

    async def deduct(self, admin: User, user_id: str, *, amount: Decimal, currency: str, reason: str) -> dict[str, Any]:
        """
        Remove funds from a user's balance.

        Raises:
            ValidationFailedError: amount is not positive or the reason is shorter than 10 characters.
            InsufficientBalanceError: the routed balance does not cover the amount.
        """
        reason = self._require_reason(reason)
        if len(reason) < MIN_DEDUCTION_REASON_LENGTH:
            raise ValidationFailedError(
                f"Reason must be at least {MIN_DEDUCTION_REASON_LENGTH} characters long for deductions"
            )
        self._require_positive(amount)
        return await self._adjust(admin, user_id, -amount, currency.upper(), reason)

    async def adjust(self, admin: User, user_id: str, *, amount: Decimal, currency: str, reason: str) -> dict[str, Any]:
        """Apply a signed correction; negative amounts are guarded like deductions."""
        reason = self._require_reason(reason)
        if len(reason) < MIN_ADJUSTMENT_REASON_LENGTH:
            raise ValidationFailedError(
                f"Reason must be at least {MIN_ADJUSTMENT_REASON_LENGTH} characters long for adjustments"
            )
        if amount is None or amount == 0:
            raise ValidationFailedError("Adjustment amount must not be zero")
        return await self._adjust(admin, user_id, amount, currency.upper(), reason)

    async def history(
        self, *, user_id: Optional[str] = None, entry_type: Optional[str] = None, page: int, limit: int
    ) -> tuple[list[dict[str, Any]], int]:
        filters = {"user_id": user_id, "entry_type": entry_type.upper() if entry_type else None}
        rows = await self.ledger.list_recent(filters, limit=limit, offset=(page - 1) * limit)
        return [events.serialize(e) for e in rows], await self.ledger.count(filters)

    async def user_statement(
        self, user_id: str, *, currency: Optional[str] = None, limit: int = 100, offset: int = 0
    ) -> dict[str, Any]:
        user = await self.users.get_by_id(user_id, fresh=True)
        if user is None:
            raise NotFoundError("User not found")
        entries = await self.ledger.list_for_user(user_id, currency=currency, limit=limit, offset=offset)
        return {
            "user": {"id": user.id, "email": user.email, "username": user.username, "active": user.active},
            "balance": str(user.balance),
            "cryptoBalance": str(user.crypto_balance),
            "entries": [events.serialize(e) for e in entries],
            "total": str(await self.ledger.sum_for_user(user_id, currency)),
            "held": str(await self.ledger.held_amount(user_id, currency)),
            "currency": currency.upper() if currency else None,
        }

    async def set_frozen(self, admin: User, user_id: str, *, frozen: bool, reason: Optional[str] = None) -> User:
        """Deactivate or reactivate an account; a frozen user can no longer authenticate."""
        if user_id == admin.id:
            raise ValidationFailedError("Admins cannot freeze their own account")
        admin_id = admin.id

        async with self.unit_of_work():
            user = await self.users.get_by_id(user_id, fresh=True)
            if user is None:
                raise NotFoundError("User not found")
            user.active = not frozen
            user = await self.users.update(user)
            if frozen:
                title, message = "Account frozen", f"Your account has been frozen: {reason or 'contact support'}."
            else:
                title, message = "Account restored", "Your account has been unfrozen."
            await self.notifier.create_notification(
                user_id,
                title,
                message,
                level=NotificationLevel.warning if frozen else NotificationLevel.success,
                data={"actorId": admin_id},
            )

        logger.info(f"User {user_id} {'frozen' if frozen else 'unfrozen'} by {admin_id}")
        return user

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _adjust(
        self,
        admin: User,
        user_id: str,
        signed_amount: Decimal,
        currency: str,
        reason: str,
        *,
        tx_hash: Optional[str] = None,
    ) -> dict[str, Any]:
        admin_id = admin.id
        field = balance_field(currency)
        amount = abs(signed_amount)

        async with self.unit_of_work():
            user = await self.users.get_by_id(user_id, fresh=True)
            if user is None:
                raise NotFoundError("User not found")
            if not user.active:
                raise ValidationFailedError("User account is frozen. Cannot process financial operations.")

            if signed_amount > 0:
                await self.users.credit(user_id, field, amount)
            elif not await self.users.debit(user_id, field, amount):
                raise InsufficientBalanceError(amount, getattr(user, field))

            transaction = Transaction(
                user_id=user_id,
                type=TransactionType.adjustment.value,
                amount=amount,
                currency=currency,
                status=TransactionStatus.completed.value,
                description=f"Admin adjustment ({currency}): {reason}",
            )
            direction = "credit" if signed_amount > 0 else "debit"
            transaction.set_details({"actorId": admin_id, "direction": direction, "txHash": tx_hash})
            transaction = await self.transactions.create(transaction)
            entry = await self.ledger.record(
                user_id=user_id,
                currency=currency,
                amount=signed_amount,
                entry_type=LedgerEntryType.adjustment.value,
                reference_id=transaction.id,
                actor_id=admin_id,
                reason=reason,
            )

            verb = "credited to" if signed_amount > 0 else "deducted from"
            await self.notifier.create_notification(
                user_id,
                "Balance adjusted",
                f"{amount} {currency} was {verb} your account: {reason}",
                level=NotificationLevel.info,
                data={"transactionId": transaction.id},
            )
            refreshed = await self.users.get_by_id(user_id, fresh=True)
            self.notifier.notify_balance_update(refreshed)
            self.notifier.notify_transaction(transaction)

        logger.info(f"Ledger adjustment {entry.id} by {admin_id} for {user_id}: {signed_amount} {currency}")
        return {"entry": events.serialize(entry), "transaction": events.serialize(transaction)}

    @staticmethod
    def _require_reason(reason: Optional[str]) -> str:
        if not reason or not reason.strip():
            raise ValidationFailedError("Reason is required")
        return reason.strip()

    @staticmethod
    def _require_positive(amount: Optional[Decimal]) -> None:
        if amount is None or amount <= 0:
            raise ValidationFailedError("Amount must be greater than zero")
