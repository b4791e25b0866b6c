"""Domain model entities for cashledger.

These are pure data classes representing business concepts, independent of
database schema. The persistence layer maps its rows onto them so that the
ledger rules never depend on ORM objects.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, Union

from cashledger.domain.enums import (
    AccountKind,
    Direction,
    ExpenseCategory,
    IncomeCategory,
    LedgerClass,
    PaymentMethod,
    TransactionState,
)
from cashledger.domain.errors import ValidationError


@dataclass(frozen=True)
class Income:
    """Income movement tagged with an income category."""

    category: IncomeCategory

    def __post_init__(self):
        if not isinstance(self.category, IncomeCategory):
            raise ValidationError(
                f"Income movements require an income category, got '{self.category}'"
            )

    @property
    def direction(self) -> Direction:
        return Direction.INCOME


@dataclass(frozen=True)
class Expense:
    """Expense movement tagged with an expense category."""

    category: ExpenseCategory

    def __post_init__(self):
        if not isinstance(self.category, ExpenseCategory):
            raise ValidationError(
                f"Expense movements require an expense category, got '{self.category}'"
            )

    @property
    def direction(self) -> Direction:
        return Direction.EXPENSE


MovementKind = Union[Income, Expense]


def movement_kind(direction: Direction | str, category: str) -> MovementKind:
    """Build the tagged movement variant from raw direction and category values.

    Raises:
        ValidationError: If the direction is unknown or the category does not
            belong to the direction's category set
    """
    try:
        direction = Direction(direction)
    except ValueError:
        raise ValidationError(f"Unknown direction '{direction}'")

    if direction is Direction.INCOME:
        try:
            return Income(IncomeCategory(category))
        except ValueError:
            raise ValidationError(f"'{category}' is not an income category")
    try:
        return Expense(ExpenseCategory(category))
    except ValueError:
        raise ValidationError(f"'{category}' is not an expense category")


@dataclass(frozen=True)
class FinancialAccount:
    """Cash, bank, wallet or investment holding."""

    id: int
    name: str
    kind: AccountKind
    initial_balance: Decimal
    current_balance: Decimal
    currency: str
    active: bool
    created_at: datetime
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    cbu: Optional[str] = None
    alias: Optional[str] = None
    investment_type: Optional[str] = None
    annual_rate: Optional[Decimal] = None
    maturity_date: Optional[date] = None
    ledger_account_id: Optional[int] = None
    version: int = 1
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Single-sided cash movement (movimiento)."""

    id: int
    code: str
    kind: MovementKind
    payment_method: PaymentMethod
    amount: Decimal
    currency: str
    description: str
    date: date
    account_id: int
    state: TransactionState
    created_at: datetime
    reference: Optional[str] = None
    attachment_url: Optional[str] = None
    ledger_account_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    customer_id: Optional[int] = None
    ticket_id: Optional[int] = None
    transfer_ref: Optional[str] = None
    created_by: Optional[int] = None
    idempotency_key: Optional[str] = None
    version: int = 1
    updated_at: Optional[datetime] = None

    @property
    def direction(self) -> Direction:
        return self.kind.direction

    @property
    def category(self) -> IncomeCategory | ExpenseCategory:
        return self.kind.category

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign it applies to the account balance."""
        return self.amount * self.direction.sign

    @property
    def is_posted(self) -> bool:
        return self.state.is_posted


@dataclass(frozen=True)
class LedgerAccount:
    """Chart-of-accounts node (cuenta contable)."""

    id: int
    code: str
    name: str
    classification: LedgerClass
    level: int
    imputable: bool
    active: bool
    created_at: datetime
    parent_id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class CostCenter:
    """Cost object (centro de costo) that movements can be charged to."""

    id: int
    code: str
    name: str
    active: bool
    created_at: datetime
    parent_id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Transfer:
    """Two linked legs moving money between accounts."""

    transfer_ref: str
    expense_leg: Transaction
    income_leg: Transaction

    @property
    def legs(self) -> tuple[Transaction, Transaction]:
        return (self.expense_leg, self.income_leg)


@dataclass(frozen=True)
class StatementLine:
    """Chart node with its balance and nested children (cuenta con saldo)."""

    id: int
    code: str
    name: str
    level: int
    imputable: bool
    balance: Decimal
    children: tuple["StatementLine", ...] = ()


@dataclass(frozen=True)
class StatementGroup:
    """Root subtrees of one classification and their total."""

    classification: LedgerClass
    total: Decimal
    accounts: tuple[StatementLine, ...] = ()


@dataclass(frozen=True)
class AccountingEquation:
    """Assets = Liabilities + Equity + Result, with raw sides exposed."""

    assets: Decimal
    liabilities_plus_equity: Decimal
    period_result: Decimal
    balanced: bool

    @property
    def difference(self) -> Decimal:
        return self.assets - (self.liabilities_plus_equity + self.period_result)


@dataclass(frozen=True)
class BalanceSheet:
    """Statement of the chart of accounts as of a date."""

    as_of: date
    assets: StatementGroup
    liabilities: StatementGroup
    equity: StatementGroup
    income: StatementGroup
    expenses: StatementGroup
    period_result: Decimal
    equation: AccountingEquation
    empty_aggregators: tuple[str, ...] = ()

    def group(self, classification: LedgerClass) -> StatementGroup:
        return {
            LedgerClass.ASSET: self.assets,
            LedgerClass.LIABILITY: self.liabilities,
            LedgerClass.EQUITY: self.equity,
            LedgerClass.INCOME: self.income,
            LedgerClass.EXPENSE: self.expenses,
        }[classification]


@dataclass(frozen=True)
class DirectionTotal:
    amount: Decimal
    count: int


@dataclass(frozen=True)
class MonthlyTotals:
    """Posted income and expense totals for one calendar month."""

    year: int
    month: int
    income: DirectionTotal
    expense: DirectionTotal

    @property
    def net(self) -> Decimal:
        return self.income.amount - self.expense.amount


@dataclass(frozen=True)
class AccountBalance:
    id: int
    name: str
    kind: AccountKind
    currency: str
    balance: Decimal
    bank_name: Optional[str] = None


@dataclass(frozen=True)
class BalancesReport:
    """Active account balances ordered by balance, with their total."""

    accounts: tuple[AccountBalance, ...]
    total: Decimal


@dataclass(frozen=True)
class DashboardSnapshot:
    """Current balances, this month's totals and the latest movements."""

    total_balance: Decimal
    accounts: tuple[AccountBalance, ...]
    month: MonthlyTotals
    recent_transactions: tuple[Transaction, ...] = field(default_factory=tuple)
