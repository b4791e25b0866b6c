"""Transaction engine domain service.

Owns the movimiento lifecycle::

    PENDIENTE --confirm--> CONFIRMADO --reconcile--> CONCILIADO
        |                      |
        +-------void-----------+--> ANULADO

Every transition that touches a balance runs the state write and the balance
write inside one atomic unit.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from cashledger.config import LedgerConfig
from cashledger.database.base import Database
from cashledger.domain.account import CENT, AccountService
from cashledger.domain.cost_center import CostCenterService
from cashledger.domain.entities import (
    Expense,
    FinancialAccount,
    Income,
    MovementKind,
    Transaction,
)
from cashledger.domain.enums import (
    DEFAULT_PAYMENT_METHOD,
    Direction,
    PaymentMethod,
    TransactionState,
)
from cashledger.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    account_inactive,
    ledger_account_not_found,
    ledger_account_not_imputable,
    transaction_not_found,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TransactionState, frozenset[TransactionState]] = {
    TransactionState.PENDIENTE: frozenset(
        {TransactionState.CONFIRMADO, TransactionState.ANULADO}
    ),
    TransactionState.CONFIRMADO: frozenset(
        {TransactionState.CONCILIADO, TransactionState.ANULADO}
    ),
    TransactionState.CONCILIADO: frozenset(),
    TransactionState.ANULADO: frozenset(),
}

EDITABLE_FIELDS = frozenset(
    {
        "kind",
        "payment_method",
        "amount",
        "currency",
        "description",
        "reference",
        "attachment_url",
        "date",
        "account_id",
        "ledger_account_id",
        "cost_center_id",
        "customer_id",
        "ticket_id",
    }
)


def check_transition(current: TransactionState, requested: TransactionState) -> None:
    """Raise InvalidStateError unless current -> requested is a legal transition."""
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateError(current.value, requested.value)


def validate_amount(amount: Decimal | str | int) -> Decimal:
    """Return amount as a Decimal, rejecting anything not strictly positive."""
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount '{amount}'")
    if not value.is_finite() or value <= 0:
        raise ValidationError(f"Amount must be greater than zero, got {amount}")
    if value != value.quantize(CENT):
        raise ValidationError(f"Amount cannot have more than two decimals, got {amount}")
    return value


def validate_description(description: Optional[str]) -> str:
    if description is None or len(description.strip()) < 3:
        raise ValidationError("Description must have at least 3 characters")
    description = description.strip()
    if len(description) > 500:
        raise ValidationError("Description cannot exceed 500 characters")
    return description


def parse_payment_method(method: PaymentMethod | str) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError:
        raise ValidationError(f"Invalid payment method '{method}'")


class TransactionService:
    """Service for creating transactions and moving them through their states."""

    def __init__(
        self,
        db: Database,
        config: Optional[LedgerConfig] = None,
        account_service: Optional[AccountService] = None,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            config: Ledger configuration (defaults apply when omitted)
            account_service: Account registry sharing the same database
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.accounts = account_service or AccountService(db, self.config)
        self.cost_centers = CostCenterService(db)

    def _require_active_account(self, account_id: int) -> FinancialAccount:
        account = self.accounts.require_account(account_id)
        if not account.active:
            raise ValidationError(account_inactive(account_id))
        return account

    def _validate_classification(self, ledger_account_id: Optional[int]) -> None:
        if ledger_account_id is None:
            return
        node = self.db.get_ledger_account(ledger_account_id)
        if node is None:
            raise NotFoundError(ledger_account_not_found(ledger_account_id))
        if not node.imputable or not node.active:
            raise ValidationError(ledger_account_not_imputable(node.code))

    def _validate_cost_center(self, cost_center_id: Optional[int]) -> None:
        if cost_center_id is not None:
            self.cost_centers.require_assignable(cost_center_id)

    @staticmethod
    def _check_currency(account: FinancialAccount, currency: Optional[str]) -> str:
        if currency is None:
            return account.currency
        if currency != account.currency:
            raise ValidationError(
                f"Currency {currency} does not match account currency {account.currency}"
            )
        return currency

    def create_transaction(
        self,
        kind: MovementKind,
        amount: Decimal,
        account_id: int,
        date: date,
        description: str,
        payment_method: Optional[PaymentMethod | str] = None,
        currency: Optional[str] = None,
        reference: Optional[str] = None,
        attachment_url: Optional[str] = None,
        ledger_account_id: Optional[int] = None,
        cost_center_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        ticket_id: Optional[int] = None,
        created_by: Optional[int] = None,
        idempotency_key: Optional[str] = None,
        transfer_ref: Optional[str] = None,
        confirm: bool = False,
    ) -> int:
        """Create a transaction in PENDIENTE state.

        Args:
            kind: Income(category) or Expense(category)
            amount: Strictly positive amount
            account_id: Account the movement is posted to
            date: Transaction date
            description: Free text, 3 to 500 characters
            payment_method: Defaults to the account kind's usual method
            currency: Must match the account currency when given
            reference: Optional receipt or invoice number (comprobante)
            attachment_url: Optional stored receipt location
            ledger_account_id: Optional imputable chart node classifying the movement
            cost_center_id: Optional active cost center the movement is charged to
            customer_id: Optional counterparty id
            ticket_id: Optional originating ticket id
            created_by: Acting user id
            idempotency_key: Client key; a repeated key returns the existing transaction
            transfer_ref: Set by the transfer coordinator on transfer legs
            confirm: If True, confirm in the same atomic unit

        Returns:
            Transaction ID

        Raises:
            ValidationError: On invalid amount, description, kind, payment method,
                currency, inactive account or cost center, or non-imputable
                classification
            NotFoundError: If account, chart node or cost center does not exist
        """
        if not isinstance(kind, (Income, Expense)):
            raise ValidationError("Transaction kind must be Income(...) or Expense(...)")
        amount = validate_amount(amount)
        description = validate_description(description)

        def operation() -> int:
            if idempotency_key is not None:
                existing = self.db.get_transaction_by_idempotency_key(idempotency_key)
                if existing is not None:
                    logger.info(
                        "Idempotency key %s already used by %s; not creating again",
                        idempotency_key,
                        existing.code,
                    )
                    return existing.id

            account = self._require_active_account(account_id)
            method = (
                parse_payment_method(payment_method)
                if payment_method is not None
                else DEFAULT_PAYMENT_METHOD[account.kind]
            )
            txn_currency = self._check_currency(account, currency)
            self._validate_classification(ledger_account_id)
            self._validate_cost_center(cost_center_id)

            transaction_id = self.db.create_transaction(
                direction=kind.direction,
                category=kind.category.value,
                payment_method=method.value,
                amount=amount,
                currency=txn_currency,
                description=description,
                date=date,
                account_id=account_id,
                state=TransactionState.PENDIENTE,
                reference=reference,
                attachment_url=attachment_url,
                ledger_account_id=ledger_account_id,
                cost_center_id=cost_center_id,
                customer_id=customer_id,
                ticket_id=ticket_id,
                transfer_ref=transfer_ref,
                created_by=created_by,
                idempotency_key=idempotency_key,
            )
            if confirm:
                self._apply_transition(transaction_id, TransactionState.CONFIRMADO)
            return transaction_id

        transaction_id = self.db.run_atomic(operation, self.config.max_retries)
        logger.info(
            "Created %s transaction %d on account %d for %s",
            kind.direction.value,
            transaction_id,
            account_id,
            amount,
        )
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> Transaction:
        """Get transaction by ID or raise NotFoundError."""
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def _apply_transition(
        self,
        transaction_id: int,
        requested: TransactionState,
        reason: Optional[str] = None,
    ) -> Transaction:
        """Check and apply one transition with its balance effect.

        Must run inside an atomic unit; raises before writing anything when the
        transition is illegal.
        """
        txn = self.require_transaction(transaction_id)
        check_transition(txn.state, requested)

        description = None
        if requested is TransactionState.ANULADO:
            suffix = f" [ANULADO: {reason}]" if reason else " [ANULADO]"
            description = (txn.description + suffix)[:500]

        self.db.update_transaction_state(
            transaction_id, expected=txn.state, new=requested, description=description
        )

        if requested is TransactionState.CONFIRMADO:
            self.accounts.apply_delta(txn.account_id, txn.signed_amount)
        elif requested is TransactionState.ANULADO and txn.is_posted:
            self.accounts.apply_delta(txn.account_id, -txn.signed_amount)

        return txn

    def _transition(
        self,
        transaction_id: int,
        requested: TransactionState,
        reason: Optional[str] = None,
    ) -> Transaction:
        previous = self.db.run_atomic(
            lambda: self._apply_transition(transaction_id, requested, reason),
            self.config.max_retries,
        )
        logger.info(
            "Transaction %s: %s -> %s",
            previous.code,
            previous.state.value,
            requested.value,
        )
        return self.require_transaction(transaction_id)

    def confirm(self, transaction_id: int) -> Transaction:
        """Confirm a pending transaction and apply its amount to the account.

        Raises:
            NotFoundError: If transaction not found
            InvalidStateError: If the transaction is not PENDIENTE
        """
        return self._transition(transaction_id, TransactionState.CONFIRMADO)

    def reconcile(self, transaction_id: int) -> Transaction:
        """Mark a confirmed transaction as matched against the bank statement.

        Raises:
            NotFoundError: If transaction not found
            InvalidStateError: If the transaction is not CONFIRMADO
        """
        return self._transition(transaction_id, TransactionState.CONCILIADO)

    def void(
        self,
        transaction_id: int,
        reason: Optional[str] = None,
        *,
        review_sibling: bool = True,
    ) -> Transaction:
        """Void a pending or confirmed transaction.

        A confirmed transaction has its balance effect reversed in the same
        atomic unit. Voiding one leg of a transfer leaves the other leg
        untouched; it is logged for review unless review_sibling is False.

        Args:
            transaction_id: Transaction ID
            reason: Optional reason appended to the description
            review_sibling: Log a warning naming the other transfer leg

        Raises:
            NotFoundError: If transaction not found
            InvalidStateError: If already ANULADO or CONCILIADO
        """
        txn = self._transition(transaction_id, TransactionState.ANULADO, reason)

        if review_sibling and txn.transfer_ref is not None:
            siblings = [
                leg
                for leg in self.db.list_transactions(transfer_ref=txn.transfer_ref)
                if leg.id != txn.id and leg.state is not TransactionState.ANULADO
            ]
            for leg in siblings:
                logger.warning(
                    "Voided %s of transfer %s; linked leg %s is still %s and needs review",
                    txn.code,
                    txn.transfer_ref,
                    leg.code,
                    leg.state.value,
                )
        return txn

    def update_transaction(self, transaction_id: int, **fields: Any) -> Transaction:
        """Edit a pending transaction.

        Raises:
            NotFoundError: If transaction, account, chart node or cost center not found
            InvalidStateError: If the transaction is not PENDIENTE
            ConflictError: If the transaction is a transfer leg
            ValidationError: If a field is not editable or invalid
        """
        not_allowed = set(fields) - EDITABLE_FIELDS
        if not_allowed:
            raise ValidationError(
                f"Cannot update transaction fields: {', '.join(sorted(not_allowed))}"
            )
        if "kind" in fields and not isinstance(fields["kind"], (Income, Expense)):
            raise ValidationError("Transaction kind must be Income(...) or Expense(...)")

        def operation() -> None:
            txn = self.require_transaction(transaction_id)
            if txn.state is not TransactionState.PENDIENTE:
                raise InvalidStateError(
                    txn.state.value, "edited", subject="Transaction"
                )
            if txn.transfer_ref is not None:
                raise ConflictError(
                    f"Transaction {txn.code} is a leg of transfer {txn.transfer_ref} "
                    "and cannot be edited on its own"
                )

            changes: dict[str, Any] = {}
            if "kind" in fields:
                kind = fields["kind"]
                changes["direction"] = kind.direction
                changes["category"] = kind.category.value
            if "amount" in fields:
                changes["amount"] = validate_amount(fields["amount"])
            if "description" in fields:
                changes["description"] = validate_description(fields["description"])
            if "payment_method" in fields:
                changes["payment_method"] = parse_payment_method(fields["payment_method"]).value

            account_id = fields.get("account_id", txn.account_id)
            account = self._require_active_account(account_id)
            if "account_id" in fields:
                changes["account_id"] = account_id
            if "currency" in fields or "account_id" in fields:
                changes["currency"] = self._check_currency(
                    account, fields.get("currency", txn.currency)
                )
            if "ledger_account_id" in fields:
                self._validate_classification(fields["ledger_account_id"])
                changes["ledger_account_id"] = fields["ledger_account_id"]
            if "cost_center_id" in fields:
                self._validate_cost_center(fields["cost_center_id"])
                changes["cost_center_id"] = fields["cost_center_id"]

            for name in ("reference", "attachment_url", "date", "customer_id", "ticket_id"):
                if name in fields:
                    changes[name] = fields[name]

            self.db.update_transaction(transaction_id, **changes)

        self.db.run_atomic(operation, self.config.max_retries)
        return self.require_transaction(transaction_id)

    def list_transactions(
        self,
        account_id: Optional[int] = None,
        direction: Optional[Direction | str] = None,
        state: Optional[TransactionState | str] = None,
        ledger_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions with filters, newest first.

        Args:
            account_id: Optional account ID filter
            direction: Optional INGRESO/EGRESO filter
            state: Optional state filter
            ledger_account_id: Optional chart node filter
            start_date: Optional start date filter
            end_date: Optional end date filter
            search: Optional text matched against description and reference
            limit: Optional page size
            offset: Rows to skip

        Returns:
            List of transaction entities
        """
        return self.db.list_transactions(
            **self._filters(account_id, direction, state, ledger_account_id, start_date, end_date, search),
            limit=limit,
            offset=offset,
        )

    def count_transactions(
        self,
        account_id: Optional[int] = None,
        direction: Optional[Direction | str] = None,
        state: Optional[TransactionState | str] = None,
        ledger_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> int:
        """Count transactions matching the same filters as list_transactions."""
        return self.db.count_transactions(
            **self._filters(account_id, direction, state, ledger_account_id, start_date, end_date, search)
        )

    @staticmethod
    def _filters(account_id, direction, state, ledger_account_id, start_date, end_date, search) -> dict:
        try:
            direction = Direction(direction) if direction is not None else None
            states = [TransactionState(state)] if state is not None else None
        except ValueError as exc:
            raise ValidationError(str(exc))
        return {
            "account_id": account_id,
            "direction": direction,
            "states": states,
            "ledger_account_id": ledger_account_id,
            "start_date": start_date,
            "end_date": end_date,
            "search": search,
        }
