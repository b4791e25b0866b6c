"""Abstract database interface."""

import logging
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, TypeVar

# Import entities directly to avoid circular import through domain/__init__.py
from cashledger.domain.entities import (
    CostCenter,
    FinancialAccount,
    LedgerAccount,
    Transaction,
)
from cashledger.domain.enums import Direction, LedgerClass, TransactionState
from cashledger.domain.errors import AtomicityFailure, ConcurrentUpdateError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Database(ABC):
    """Abstract database interface for cashledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Unit of work
    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Open an all-or-nothing unit; nested calls join the outer unit.

        Writes made inside the block are committed together when the
        outermost block exits and rolled back if it raises. A version
        conflict surfaces as ConcurrentUpdateError, any other store failure
        as AtomicityFailure.
        """
        pass

    @property
    @abstractmethod
    def in_atomic(self) -> bool:
        """True while an atomic unit is open."""
        pass

    def run_atomic(self, operation: Callable[[], T], max_retries: int = 3) -> T:
        """Run operation inside an atomic unit, re-running it on version conflicts.

        The operation must re-read whatever state it validates, since every
        attempt starts from freshly loaded rows.

        Args:
            operation: Callable performing reads, checks and writes
            max_retries: Attempts before giving up

        Returns:
            Whatever operation returns

        Raises:
            AtomicityFailure: If every attempt hit a conflict
        """
        last_error: Optional[ConcurrentUpdateError] = None
        for attempt in range(1, max_retries + 1):
            try:
                with self.atomic():
                    return operation()
            except ConcurrentUpdateError as exc:
                if self.in_atomic:
                    # The enclosing unit owns the retry
                    raise
                last_error = exc
                logger.warning(
                    "Concurrent update detected (attempt %d/%d): %s",
                    attempt,
                    max_retries,
                    exc,
                )

        logger.error("Giving up after %d conflicting attempts", max_retries)
        raise AtomicityFailure(
            f"Operation could not be committed after {max_retries} attempts"
        ) from last_error

    # Financial account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        kind: str,
        initial_balance: Decimal,
        currency: str,
        bank_name: Optional[str] = None,
        account_number: Optional[str] = None,
        cbu: Optional[str] = None,
        alias: Optional[str] = None,
        investment_type: Optional[str] = None,
        annual_rate: Optional[Decimal] = None,
        maturity_date: Optional[date] = None,
        ledger_account_id: Optional[int] = None,
    ) -> int:
        """Create a financial account with current_balance = initial_balance. Returns ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[FinancialAccount]:
        """Get account by exact name."""
        pass

    @abstractmethod
    def list_accounts(self, include_inactive: bool = False) -> list[FinancialAccount]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def update_account(self, account_id: int, **fields: Any) -> None:
        """Update non-balance account columns."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def apply_balance_delta(self, account_id: int, delta: Decimal) -> Decimal:
        """Add delta to current_balance under the row's version check. Returns new balance."""
        pass

    @abstractmethod
    def count_account_transactions(
        self, account_id: int, states: Optional[Iterable[TransactionState]] = None
    ) -> int:
        """Count transactions on an account, optionally restricted to states."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        direction: Direction,
        category: str,
        payment_method: str,
        amount: Decimal,
        currency: str,
        description: str,
        date: date,
        account_id: int,
        state: TransactionState = TransactionState.PENDIENTE,
        reference: Optional[str] = None,
        attachment_url: Optional[str] = None,
        ledger_account_id: Optional[int] = None,
        cost_center_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        ticket_id: Optional[int] = None,
        transfer_ref: Optional[str] = None,
        created_by: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """Create a transaction and assign its code. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, reading the row fresh from the store."""
        pass

    @abstractmethod
    def get_transaction_by_idempotency_key(self, key: str) -> Optional[Transaction]:
        """Get transaction by its client-supplied idempotency key."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **fields: Any) -> None:
        """Update descriptive transaction columns."""
        pass

    @abstractmethod
    def update_transaction_state(
        self,
        transaction_id: int,
        expected: TransactionState,
        new: TransactionState,
        description: Optional[str] = None,
    ) -> None:
        """Move a transaction from expected to new state under its version check.

        Raises:
            ConcurrentUpdateError: If the stored state is no longer expected
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        account_ids: Optional[Iterable[int]] = None,
        direction: Optional[Direction] = None,
        states: Optional[Iterable[TransactionState]] = None,
        exclude_states: Optional[Iterable[TransactionState]] = None,
        ledger_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        transfer_ref: Optional[str] = None,
        exclude_transfers: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions newest first with optional filters.

        Args:
            account_id: Optional single account filter
            account_ids: Optional set of accounts
            direction: Optional INCOME/EXPENSE filter
            states: Only these states
            exclude_states: Never these states
            ledger_account_id: Optional classification node filter
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            search: Case-insensitive text matched against description and reference
            transfer_ref: Only legs of this transfer
            exclude_transfers: If True, skip transfer legs
            limit: Optional page size
            offset: Rows to skip
        """
        pass

    @abstractmethod
    def count_transactions(self, **filters: Any) -> int:
        """Count transactions matching the list_transactions filters."""
        pass

    # Ledger account operations
    @abstractmethod
    def create_ledger_account(
        self,
        code: str,
        name: str,
        classification: LedgerClass,
        level: int,
        parent_id: Optional[int] = None,
        imputable: bool = True,
        description: Optional[str] = None,
    ) -> int:
        """Create a chart-of-accounts node. Returns node ID."""
        pass

    @abstractmethod
    def get_ledger_account(self, ledger_account_id: int) -> Optional[LedgerAccount]:
        """Get chart node by ID."""
        pass

    @abstractmethod
    def get_ledger_account_by_code(self, code: str) -> Optional[LedgerAccount]:
        """Get chart node by code."""
        pass

    @abstractmethod
    def list_ledger_accounts(
        self,
        include_inactive: bool = False,
        classification: Optional[LedgerClass] = None,
        imputable: Optional[bool] = None,
    ) -> list[LedgerAccount]:
        """List chart nodes ordered by code."""
        pass

    @abstractmethod
    def update_ledger_account(self, ledger_account_id: int, **fields: Any) -> None:
        """Update chart node columns."""
        pass

    @abstractmethod
    def set_ledger_account_active(self, ledger_account_id: int, active: bool) -> None:
        """Activate or deactivate a chart node."""
        pass

    @abstractmethod
    def count_ledger_postings(self, ledger_account_id: int) -> int:
        """Count transactions classified to, and accounts linked to, a chart node."""
        pass

    @abstractmethod
    def count_active_children(self, ledger_account_id: int) -> int:
        """Count active direct children of a chart node."""
        pass

    # Cost center operations
    @abstractmethod
    def create_cost_center(
        self,
        code: str,
        name: str,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a cost center. Returns cost center ID."""
        pass

    @abstractmethod
    def get_cost_center(self, cost_center_id: int) -> Optional[CostCenter]:
        """Get cost center by ID."""
        pass

    @abstractmethod
    def get_cost_center_by_code(self, code: str) -> Optional[CostCenter]:
        """Get cost center by code."""
        pass

    @abstractmethod
    def list_cost_centers(self, include_inactive: bool = False) -> list[CostCenter]:
        """List cost centers ordered by code."""
        pass

    @abstractmethod
    def update_cost_center(self, cost_center_id: int, **fields: Any) -> None:
        """Update cost center columns."""
        pass

    @abstractmethod
    def set_cost_center_active(self, cost_center_id: int, active: bool) -> None:
        """Activate or deactivate a cost center."""
        pass

    @abstractmethod
    def count_cost_center_transactions(self, cost_center_id: int) -> int:
        """Count transactions charged to a cost center."""
        pass

    @abstractmethod
    def count_active_cost_center_children(self, cost_center_id: int) -> int:
        """Count active direct children of a cost center."""
        pass
