"""Account registry domain service."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from cashledger.config import LedgerConfig
from cashledger.database.base import Database
from cashledger.domain.entities import FinancialAccount
from cashledger.domain.enums import (
    AccountKind,
    OPEN_STATES,
    POSTED_STATES,
    TransactionState,
)
from cashledger.domain.errors import (
    AtomicityFailure,
    ConflictError,
    NotFoundError,
    ValidationError,
    account_currency_locked,
    account_deactivate_blocked,
    account_not_found,
    duplicate_account_name,
    ledger_account_not_found,
    ledger_account_not_imputable,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
LIVE_STATES = frozenset(set(TransactionState) - {TransactionState.ANULADO})

BANKING_FIELDS = ("bank_name", "account_number", "cbu", "alias")
INVESTMENT_FIELDS = ("investment_type", "annual_rate", "maturity_date")
UPDATABLE_FIELDS = frozenset(
    {"name", "kind", "currency", "ledger_account_id", *BANKING_FIELDS, *INVESTMENT_FIELDS}
)


def parse_account_kind(kind: AccountKind | str) -> AccountKind:
    """Return the AccountKind for an enum member or its name.

    Raises:
        ValidationError: If kind is not one of the known account kinds
    """
    try:
        return AccountKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in AccountKind)
        raise ValidationError(f"Invalid account kind '{kind}'. Expected one of: {valid}")


def _validate_kind_fields(kind: AccountKind, fields: dict[str, Any]) -> None:
    """Reject fields that make no sense for the account kind."""
    if kind is AccountKind.CAJA_CHICA:
        banking = [name for name in BANKING_FIELDS if fields.get(name) is not None]
        if banking:
            raise ValidationError(
                f"Petty-cash accounts cannot have banking fields: {', '.join(banking)}"
            )
    if kind is not AccountKind.INVERSION:
        investment = [name for name in INVESTMENT_FIELDS if fields.get(name) is not None]
        if investment:
            raise ValidationError(
                f"Only investment accounts can set: {', '.join(investment)}"
            )


def _validate_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Account name is required")
    name = name.strip()
    if len(name) < 3 or len(name) > 100:
        raise ValidationError("Account name must be between 3 and 100 characters")
    return name


class AccountService:
    """Service for managing financial accounts and their balances."""

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize account service.

        Args:
            db: Database instance
            config: Ledger configuration (defaults apply when omitted)
        """
        self.db = db
        self.config = config or LedgerConfig()

    def _validate_ledger_link(self, ledger_account_id: Optional[int]) -> None:
        if ledger_account_id is None:
            return
        node = self.db.get_ledger_account(ledger_account_id)
        if node is None:
            raise NotFoundError(ledger_account_not_found(ledger_account_id))
        if not node.imputable or not node.active:
            raise ValidationError(ledger_account_not_imputable(node.code))

    def create_account(
        self,
        name: str,
        kind: AccountKind | str,
        initial_balance: Decimal = Decimal("0"),
        currency: Optional[str] = None,
        bank_name: Optional[str] = None,
        account_number: Optional[str] = None,
        cbu: Optional[str] = None,
        alias: Optional[str] = None,
        investment_type: Optional[str] = None,
        annual_rate: Optional[Decimal] = None,
        maturity_date: Optional[date] = None,
        ledger_account_id: Optional[int] = None,
    ) -> int:
        """Create a new account with its current balance set to the initial balance.

        Args:
            name: Account name (unique)
            kind: Account kind
            initial_balance: Opening balance
            currency: Currency code (defaults to the configured currency)
            bank_name: Optional bank (not for petty cash)
            account_number: Optional account number (not for petty cash)
            cbu: Optional routing number (not for petty cash)
            alias: Optional transfer alias (not for petty cash)
            investment_type: Investment accounts only
            annual_rate: Investment accounts only
            maturity_date: Investment accounts only
            ledger_account_id: Optional imputable chart node representing this account

        Returns:
            Account ID

        Raises:
            ValidationError: On missing name, invalid kind or kind-specific field misuse
            ConflictError: If account name already exists
        """
        name = _validate_name(name)
        kind = parse_account_kind(kind)
        _validate_kind_fields(
            kind,
            {
                "bank_name": bank_name,
                "account_number": account_number,
                "cbu": cbu,
                "alias": alias,
                "investment_type": investment_type,
                "annual_rate": annual_rate,
                "maturity_date": maturity_date,
            },
        )
        try:
            initial_balance = Decimal(initial_balance)
        except (InvalidOperation, TypeError):
            raise ValidationError(f"Invalid initial balance '{initial_balance}'")
        if not initial_balance.is_finite():
            raise ValidationError(f"Invalid initial balance '{initial_balance}'")
        if initial_balance != initial_balance.quantize(CENT):
            raise ValidationError(
                f"Initial balance cannot have more than two decimals, got {initial_balance}"
            )

        if self.db.get_account_by_name(name) is not None:
            raise ConflictError(duplicate_account_name(name))
        self._validate_ledger_link(ledger_account_id)

        account_id = self.db.create_account(
            name=name,
            kind=kind,
            initial_balance=initial_balance,
            currency=currency or self.config.default_currency,
            bank_name=bank_name,
            account_number=account_number,
            cbu=cbu,
            alias=alias,
            investment_type=investment_type,
            annual_rate=annual_rate,
            maturity_date=maturity_date,
            ledger_account_id=ledger_account_id,
        )
        logger.info("Created account %d '%s' (%s)", account_id, name, kind.value)
        return account_id

    def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> FinancialAccount:
        """Get account by ID or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, include_inactive: bool = False) -> list[FinancialAccount]:
        """List accounts.

        Args:
            include_inactive: If True, include deactivated accounts

        Returns:
            List of account entities
        """
        return self.db.list_accounts(include_inactive=include_inactive)

    def update_account(self, account_id: int, **fields: Any) -> None:
        """Update mutable account fields.

        Balances are never updatable here; they only move through posted
        transactions.

        Raises:
            NotFoundError: If account not found
            ValidationError: If a field is not updatable or invalid for the kind
            ConflictError: If the new name already exists, or the currency changes
                while the account holds transactions that are not voided
        """
        account = self.require_account(account_id)

        not_allowed = set(fields) - UPDATABLE_FIELDS
        if not_allowed:
            raise ValidationError(
                f"Cannot update account fields: {', '.join(sorted(not_allowed))}"
            )
        if not fields:
            return

        if "name" in fields:
            fields["name"] = _validate_name(fields["name"])
            existing = self.db.get_account_by_name(fields["name"])
            if existing is not None and existing.id != account_id:
                raise ConflictError(duplicate_account_name(fields["name"]))
        if "kind" in fields:
            fields["kind"] = parse_account_kind(fields["kind"])
        if "currency" in fields and fields["currency"] != account.currency:
            live = self.db.count_account_transactions(
                account_id, states=LIVE_STATES
            )
            if live > 0:
                raise ConflictError(account_currency_locked(account_id, live))

        # Validate the account as it will look after the update
        merged = {name: getattr(account, name) for name in (*BANKING_FIELDS, *INVESTMENT_FIELDS)}
        merged.update({k: v for k, v in fields.items() if k in merged})
        _validate_kind_fields(fields.get("kind", account.kind), merged)

        if "ledger_account_id" in fields:
            self._validate_ledger_link(fields["ledger_account_id"])

        self.db.update_account(account_id, **fields)

    def get_balance(self, account_id: int, as_of: Optional[date] = None) -> Decimal:
        """Get the account balance, optionally reconstructed as of a date.

        Args:
            account_id: Account ID
            as_of: If given, replay posted transactions dated on or before it

        Returns:
            Balance

        Raises:
            NotFoundError: If account not found
        """
        account = self.require_account(account_id)
        if as_of is None:
            return account.current_balance

        posted = self.db.list_transactions(
            account_id=account_id, states=POSTED_STATES, end_date=as_of
        )
        return account.initial_balance + sum(
            (txn.signed_amount for txn in posted), Decimal("0")
        )

    def apply_delta(self, account_id: int, signed_amount: Decimal) -> Decimal:
        """Add signed_amount to the account balance.

        Only the transaction engine calls this, inside the same atomic unit as
        the state change that justifies it.

        Raises:
            AtomicityFailure: If no atomic unit is open
            NotFoundError: If account not found
        """
        if not self.db.in_atomic:
            raise AtomicityFailure(
                "Balance changes must run inside an atomic unit with their state change"
            )
        new_balance = self.db.apply_balance_delta(account_id, signed_amount)
        logger.info(
            "Applied %s to account %d; balance now %s", signed_amount, account_id, new_balance
        )
        return new_balance

    def deactivate_account(self, account_id: int) -> None:
        """Deactivate (soft-delete) an account.

        Raises:
            NotFoundError: If account not found
            ConflictError: If the account has pending or confirmed transactions
        """
        self.require_account(account_id)

        open_count = self.db.count_account_transactions(account_id, states=OPEN_STATES)
        if open_count > 0:
            raise ConflictError(account_deactivate_blocked(account_id, open_count))

        self.db.set_account_active(account_id, False)
        logger.info("Deactivated account %d", account_id)
