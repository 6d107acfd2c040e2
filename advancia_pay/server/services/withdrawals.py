"""
Withdrawal approval workflow.

    PENDING --approve--> APPROVED --process--> PROCESSED
       |
       +----reject-----> REJECTED

Funds are held when the request is created: the balance is debited with a
guarded UPDATE and a ``WITHDRAWAL_HOLD`` ledger entry is written. Rejection
returns the held funds; processing closes the hold. Every transition is a
compare-and-set on the current status, so concurrent reviewers cannot both win.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from advancia_pay.core.database.base import utc_now
from advancia_pay.core.database.entities import Transaction, User, Withdrawal
from advancia_pay.core.database.repositories import (
    LedgerRepository,
    TransactionRepository,
    UserRepository,
    WithdrawalRepository,
)
from advancia_pay.core.errors import (
    InsufficientBalanceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import (
    LedgerEntryType,
    NotificationLevel,
    TransactionStatus,
    TransactionType,
    WithdrawalStatus,
)
from advancia_pay.core.monitoring import log_withdrawal_transition
from advancia_pay.realtime import events
from advancia_pay.server.core.config import settings

from .base import TransactionalService

logger = get_logger(__name__)


def balance_field(currency: str) -> str:
    """Name of the user balance a currency settles against."""
    return "balance" if currency.upper() in settings.fiat_currencies else "crypto_balance"


class WithdrawalService(TransactionalService):
    """Request, review and pay out withdrawals."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.withdrawals = WithdrawalRepository(self.session)
        self.transactions = TransactionRepository(self.session)
        self.users = UserRepository(self.session)
        self.ledger = LedgerRepository(self.session)

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    async def request_withdrawal(
        self,
        user: User,
        *,
        amount: Decimal,
        currency: str,
        wallet_address: str,
        notes: Optional[str] = None,
    ) -> Withdrawal:
        """
        Create a PENDING withdrawal and hold the funds.

        Raises:
            ValidationFailedError: amount is not positive or wallet address is blank.
            InsufficientBalanceError: the routed balance does not cover the amount.
        """
        if amount is None or amount <= 0:
            raise ValidationFailedError("Amount must be greater than zero")
        if not wallet_address or not wallet_address.strip():
            raise ValidationFailedError("Wallet address is required")

        currency = currency.upper()
        field = balance_field(currency)
        user_id = user.id

        async with self.unit_of_work():
            if not await self.users.debit(user_id, field, amount):
                current = await self.users.get_by_id(user_id, fresh=True)
                raise InsufficientBalanceError(amount, getattr(current, field) if current else Decimal("0"))

            withdrawal = await self.withdrawals.create(
                Withdrawal(
                    user_id=user_id,
                    amount=amount,
                    currency=currency,
                    wallet_address=wallet_address.strip(),
                    notes=notes,
                )
            )
            await self.ledger.record(
                user_id=user_id,
                currency=currency,
                amount=-amount,
                entry_type=LedgerEntryType.withdrawal_hold.value,
                reference_id=withdrawal.id,
                actor_id=user_id,
                reason="Withdrawal requested",
            )
            transaction = Transaction(
                user_id=user_id,
                type=TransactionType.withdrawal.value,
                amount=amount,
                currency=currency,
                status=TransactionStatus.pending.value,
                description=f"Withdrawal to {withdrawal.wallet_address}",
                reference_id=withdrawal.id,
            )
            transaction.set_details({"walletAddress": withdrawal.wallet_address})
            transaction = await self.transactions.create(transaction)

            await self.notifier.create_notification(
                user_id,
                "Withdrawal requested",
                f"Your withdrawal of {amount} {currency} is pending review.",
                data={"withdrawalId": withdrawal.id},
            )
            await self.notifier.notify_admins(
                "New withdrawal request",
                f"{user.email} requested a withdrawal of {amount} {currency}.",
                data={"withdrawalId": withdrawal.id, "userId": user_id},
            )
            await self._push_balance(user_id)
            self.notifier.notify_withdrawal(withdrawal)
            self.notifier.notify_transaction(transaction)

        log_withdrawal_transition(withdrawal.id, "NEW", withdrawal.status, user_id)
        logger.info(f"Withdrawal {withdrawal.id} requested by {user_id}: {amount} {currency}")
        return withdrawal

    async def list_for_user(self, user: User, *, page: int, limit: int) -> tuple[list[Withdrawal], int]:
        return await self.withdrawals.list_for_user(user.id, limit=limit, offset=(page - 1) * limit)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def list_pending(self, *, page: int, limit: int) -> tuple[list[dict[str, Any]], int]:
        rows, total = await self.withdrawals.list_pending_with_users(limit=limit, offset=(page - 1) * limit)
        items = []
        for withdrawal, owner in rows:
            item = events.serialize(withdrawal)
            item["user"] = {
                "id": owner.id,
                "email": owner.email,
                "username": owner.username,
                "firstName": owner.first_name,
                "lastName": owner.last_name,
                "trustScore": owner.trust_score,
            }
            items.append(item)
        return items, total

    async def approve(self, withdrawal_id: str, admin: User, *, notes: Optional[str] = None) -> Withdrawal:
        admin_id = admin.id
        async with self.unit_of_work():
            withdrawal = await self._transition(
                withdrawal_id,
                WithdrawalStatus.pending,
                WithdrawalStatus.approved,
                reviewed_by=admin_id,
                reviewed_at=utc_now(),
                admin_notes=notes,
            )
            await self.notifier.create_notification(
                withdrawal.user_id,
                "Withdrawal approved",
                f"Your withdrawal of {withdrawal.amount} {withdrawal.currency} was approved and will be sent shortly.",
                level=NotificationLevel.success,
                data={"withdrawalId": withdrawal.id},
            )
            self.notifier.notify_withdrawal(withdrawal)

        log_withdrawal_transition(withdrawal.id, WithdrawalStatus.pending.value, withdrawal.status, admin_id)
        logger.info(f"Withdrawal {withdrawal.id} approved by {admin_id}")
        return withdrawal

    async def reject(self, withdrawal_id: str, admin: User, *, reason: Optional[str]) -> Withdrawal:
        """Reject a pending withdrawal and return the held funds."""
        if not reason or not reason.strip():
            raise ValidationFailedError("Rejection reason is required")
        reason = reason.strip()
        admin_id = admin.id

        async with self.unit_of_work():
            withdrawal = await self._transition(
                withdrawal_id,
                WithdrawalStatus.pending,
                WithdrawalStatus.rejected,
                reviewed_by=admin_id,
                reviewed_at=utc_now(),
                rejection_reason=reason,
            )
            await self.users.credit(withdrawal.user_id, balance_field(withdrawal.currency), withdrawal.amount)
            await self.ledger.record(
                user_id=withdrawal.user_id,
                currency=withdrawal.currency,
                amount=withdrawal.amount,
                entry_type=LedgerEntryType.withdrawal_release.value,
                reference_id=withdrawal.id,
                actor_id=admin_id,
                reason=reason,
            )
            transaction = await self._settle_transaction(withdrawal, TransactionStatus.failed, rejectionReason=reason)

            await self.notifier.create_notification(
                withdrawal.user_id,
                "Withdrawal rejected",
                f"Your withdrawal of {withdrawal.amount} {withdrawal.currency} was rejected: {reason}. "
                "The funds have been returned to your balance.",
                level=NotificationLevel.error,
                data={"withdrawalId": withdrawal.id},
            )
            await self._push_balance(withdrawal.user_id)
            self.notifier.notify_withdrawal(withdrawal)
            if transaction is not None:
                self.notifier.notify_transaction(transaction)

        log_withdrawal_transition(withdrawal.id, WithdrawalStatus.pending.value, withdrawal.status, admin_id)
        logger.info(f"Withdrawal {withdrawal.id} rejected by {admin_id}")
        return withdrawal

    async def process(
        self, withdrawal_id: str, admin: User, *, tx_hash: Optional[str] = None, notes: Optional[str] = None
    ) -> Withdrawal:
        """Mark an approved withdrawal as paid out."""
        admin_id = admin.id
        values: dict[str, Any] = {"processed_by": admin_id, "processed_at": utc_now(), "tx_hash": tx_hash}
        if notes:
            values["admin_notes"] = notes

        async with self.unit_of_work():
            withdrawal = await self._transition(
                withdrawal_id, WithdrawalStatus.approved, WithdrawalStatus.processed, **values
            )
            await self.ledger.record(
                user_id=withdrawal.user_id,
                currency=withdrawal.currency,
                amount=Decimal("0"),
                entry_type=LedgerEntryType.withdrawal_complete.value,
                reference_id=withdrawal.id,
                actor_id=admin_id,
                reason=f"Payout sent{f' ({tx_hash})' if tx_hash else ''}",
            )
            transaction = await self._settle_transaction(withdrawal, TransactionStatus.completed, txHash=tx_hash)

            await self.notifier.create_notification(
                withdrawal.user_id,
                "Withdrawal sent",
                f"Your withdrawal of {withdrawal.amount} {withdrawal.currency} has been sent.",
                level=NotificationLevel.success,
                data={"withdrawalId": withdrawal.id, "txHash": tx_hash},
            )
            self.notifier.notify_withdrawal(withdrawal)
            if transaction is not None:
                self.notifier.notify_transaction(transaction)

        log_withdrawal_transition(withdrawal.id, WithdrawalStatus.approved.value, withdrawal.status, admin_id)
        logger.info(f"Withdrawal {withdrawal.id} processed by {admin_id}")
        return withdrawal

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _transition(
        self, withdrawal_id: str, from_status: WithdrawalStatus, to_status: WithdrawalStatus, **values: Any
    ) -> Withdrawal:
        updated = await self.withdrawals.transition(withdrawal_id, from_status.value, to_status.value, **values)
        if updated is not None:
            return updated

        current = await self.withdrawals.get_by_id(withdrawal_id, fresh=True)
        if current is None:
            raise NotFoundError("Withdrawal request not found")
        raise InvalidTransitionError("Withdrawal", current.status)

    async def _settle_transaction(
        self, withdrawal: Withdrawal, status: TransactionStatus, **details: Any
    ) -> Optional[Transaction]:
        transaction = await self.transactions.get_by_reference(withdrawal.id, TransactionType.withdrawal.value)
        if transaction is None:
            logger.warning(f"Withdrawal {withdrawal.id} has no linked transaction")
            return None
        return await self.transactions.set_status(transaction, status.value, **details)

    async def _push_balance(self, user_id: str) -> None:
        user = await self.users.get_by_id(user_id, fresh=True)
        if user is not None:
            self.notifier.notify_balance_update(user)
