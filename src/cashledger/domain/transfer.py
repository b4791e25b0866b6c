"""Transfer coordinator domain service.

A transfer between two accounts is two ordinary transactions sharing a
transfer reference: an expense leg on the source and an income leg on the
destination. Both legs are written, and optionally confirmed, in one atomic
unit so no reader ever sees half a transfer.
"""

import logging
import secrets
import time
from datetime import date
from decimal import Decimal
from typing import Optional

from cashledger.config import LedgerConfig
from cashledger.database.base import Database
from cashledger.domain.account import AccountService
from cashledger.domain.entities import Expense, Income, Transfer
from cashledger.domain.enums import (
    Direction,
    ExpenseCategory,
    IncomeCategory,
    PaymentMethod,
    TransactionState,
)
from cashledger.domain.errors import (
    ValidationError,
    account_inactive,
    transfer_not_found,
    NotFoundError,
)
from cashledger.domain.transaction import (
    TransactionService,
    validate_amount,
    validate_description,
)

logger = logging.getLogger(__name__)


def generate_transfer_ref() -> str:
    """Return a new unique transfer reference, e.g. TRF-1718000000000-a1b2c3."""
    return f"TRF-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


class TransferService:
    """Service for moving money between two accounts."""

    def __init__(
        self,
        db: Database,
        config: Optional[LedgerConfig] = None,
        transaction_service: Optional[TransactionService] = None,
    ):
        """Initialize transfer service.

        Args:
            db: Database instance
            config: Ledger configuration (defaults apply when omitted)
            transaction_service: Transaction engine sharing the same database
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.transactions = transaction_service or TransactionService(db, self.config)
        self.accounts: AccountService = self.transactions.accounts

    def create_transfer(
        self,
        source_account_id: int,
        destination_account_id: int,
        amount: Decimal,
        date: date,
        description: str,
        reference: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> Transfer:
        """Move amount from the source account to the destination account.

        Legs are confirmed immediately unless the configuration says
        otherwise, in which case both stay PENDIENTE.

        Args:
            source_account_id: Account the money leaves
            destination_account_id: Account the money enters
            amount: Strictly positive amount
            date: Transfer date
            description: Shared description for both legs
            reference: Receipt or bank reference for both legs (default: the
                transfer reference)
            created_by: Acting user id

        Returns:
            Transfer with both legs

        Raises:
            ValidationError: On self-transfer, non-positive amount, inactive
                accounts or currency mismatch
            NotFoundError: If either account does not exist
        """
        if source_account_id == destination_account_id:
            raise ValidationError("Source and destination accounts must be different")
        amount = validate_amount(amount)
        description = validate_description(description)
        post = self.config.transfers_post_immediately

        def operation() -> str:
            source = self.accounts.require_account(source_account_id)
            destination = self.accounts.require_account(destination_account_id)
            for account in (source, destination):
                if not account.active:
                    raise ValidationError(account_inactive(account.id))
            if source.currency != destination.currency:
                raise ValidationError(
                    f"Cannot transfer between {source.currency} and "
                    f"{destination.currency} accounts"
                )

            transfer_ref = generate_transfer_ref()
            self.transactions.create_transaction(
                kind=Expense(ExpenseCategory.TRANSFERENCIA_SALIDA),
                amount=amount,
                account_id=source.id,
                date=date,
                description=f"{description} → {destination.name}",
                payment_method=PaymentMethod.TRANSFERENCIA,
                reference=reference or transfer_ref,
                transfer_ref=transfer_ref,
                created_by=created_by,
                confirm=post,
            )
            self.transactions.create_transaction(
                kind=Income(IncomeCategory.TRANSFERENCIA_ENTRADA),
                amount=amount,
                account_id=destination.id,
                date=date,
                description=f"{description} ← {source.name}",
                payment_method=PaymentMethod.TRANSFERENCIA,
                reference=reference or transfer_ref,
                transfer_ref=transfer_ref,
                created_by=created_by,
                confirm=post,
            )
            return transfer_ref

        transfer_ref = self.db.run_atomic(operation, self.config.max_retries)
        logger.info(
            "Transfer %s: %s from account %d to account %d",
            transfer_ref,
            amount,
            source_account_id,
            destination_account_id,
        )
        return self.get_transfer(transfer_ref)

    def get_transfer(self, transfer_ref: str) -> Transfer:
        """Get both legs of a transfer.

        Raises:
            NotFoundError: If no complete transfer has this reference
        """
        legs = self.db.list_transactions(transfer_ref=transfer_ref)
        expense = [leg for leg in legs if leg.direction is Direction.EXPENSE]
        income = [leg for leg in legs if leg.direction is Direction.INCOME]
        if len(expense) != 1 or len(income) != 1:
            raise NotFoundError(transfer_not_found(transfer_ref))
        return Transfer(transfer_ref=transfer_ref, expense_leg=expense[0], income_leg=income[0])

    def void_transfer(self, transfer_ref: str, reason: Optional[str] = None) -> Transfer:
        """Void both legs of a transfer in one atomic unit.

        Legs already ANULADO are left as they are.

        Raises:
            NotFoundError: If transfer not found
            InvalidStateError: If a leg is CONCILIADO
        """

        def operation() -> None:
            transfer = self.get_transfer(transfer_ref)
            for leg in transfer.legs:
                if leg.state is TransactionState.ANULADO:
                    continue
                self.transactions.void(leg.id, reason, review_sibling=False)

        self.db.run_atomic(operation, self.config.max_retries)
        logger.info("Voided transfer %s", transfer_ref)
        return self.get_transfer(transfer_ref)
