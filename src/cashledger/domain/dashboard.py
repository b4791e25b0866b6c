"""Dashboard aggregator domain service."""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from cashledger.config import LedgerConfig
from cashledger.database.base import Database
from cashledger.domain.entities import (
    AccountBalance,
    BalancesReport,
    DashboardSnapshot,
    DirectionTotal,
    FinancialAccount,
    MonthlyTotals,
)
from cashledger.domain.enums import Direction, POSTED_STATES, TransactionState
from cashledger.domain.errors import ValidationError


def _account_balance(account: FinancialAccount) -> AccountBalance:
    return AccountBalance(
        id=account.id,
        name=account.name,
        kind=account.kind,
        currency=account.currency,
        balance=account.current_balance,
        bank_name=account.bank_name,
    )


class DashboardService:
    """Read-only summaries over accounts and posted transactions."""

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize dashboard service.

        Args:
            db: Database instance
            config: Ledger configuration (defaults apply when omitted)
        """
        self.db = db
        self.config = config or LedgerConfig()

    def monthly_totals(
        self,
        month: int,
        year: int,
        account_ids: Optional[Iterable[int]] = None,
        include_transfers: bool = True,
    ) -> MonthlyTotals:
        """Sum posted income and expense for a calendar month.

        Args:
            month: Month number (1-12)
            year: Year
            account_ids: Optional accounts to restrict to
            include_transfers: If False, transfer legs are left out

        Returns:
            MonthlyTotals with amount and count per direction

        Raises:
            ValidationError: If month is out of range
        """
        if not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12, got {month}")

        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])
        transactions = self.db.list_transactions(
            account_ids=list(account_ids) if account_ids is not None else None,
            states=POSTED_STATES,
            start_date=start,
            end_date=end,
            exclude_transfers=not include_transfers,
        )

        totals = {}
        for direction in Direction:
            matching = [txn for txn in transactions if txn.direction is direction]
            totals[direction] = DirectionTotal(
                amount=sum((txn.amount for txn in matching), Decimal("0")),
                count=len(matching),
            )

        return MonthlyTotals(
            year=year,
            month=month,
            income=totals[Direction.INCOME],
            expense=totals[Direction.EXPENSE],
        )

    def balances(self) -> BalancesReport:
        """Active account balances, highest first, with their total."""
        accounts = sorted(
            self.db.list_accounts(),
            key=lambda account: account.current_balance,
            reverse=True,
        )
        return BalancesReport(
            accounts=tuple(_account_balance(account) for account in accounts),
            total=sum((account.current_balance for account in accounts), Decimal("0")),
        )

    def snapshot(self, limit: Optional[int] = None, today: Optional[date] = None) -> DashboardSnapshot:
        """Current balances, this month's totals and the latest movements.

        Args:
            limit: Number of recent transactions (default from configuration)
            today: Reference date for the current month (default: today)

        Returns:
            DashboardSnapshot
        """
        limit = self.config.recent_transactions_limit if limit is None else limit
        today = today or date.today()

        accounts = self.db.list_accounts()
        recent = (
            self.db.list_transactions(exclude_states=[TransactionState.ANULADO], limit=limit)
            if limit > 0
            else []
        )
        return DashboardSnapshot(
            total_balance=sum(
                (account.current_balance for account in accounts), Decimal("0")
            ),
            accounts=tuple(_account_balance(account) for account in accounts),
            month=self.monthly_totals(today.month, today.year),
            recent_transactions=tuple(recent),
        )
