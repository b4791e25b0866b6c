"""Statement builder domain service.

Every posted transaction is read as up to two postings in debit terms:

* the cash side, on the chart node linked to the transaction's account
  (+amount for income, -amount for expense);
* the classification side, on the transaction's own chart node, with the
  opposite sign.

A node's balance is its debit sum times the normal sign of its class, so
assets and expenses read positive on debit and liabilities, equity and income
read positive on credit. With every posting classified the two sides cancel
and the accounting equation holds.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from cashledger.config import LedgerConfig
from cashledger.database.base import Database
from cashledger.domain.chart import ChartOfAccountsService, ChartTree
from cashledger.domain.entities import (
    AccountingEquation,
    BalanceSheet,
    StatementGroup,
    StatementLine,
)
from cashledger.domain.enums import LedgerClass, POSTED_STATES
from cashledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class StatementService:
    """Service for building financial statements from the chart of accounts."""

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize statement service.

        Args:
            db: Database instance
            config: Ledger configuration (defaults apply when omitted)
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.chart = ChartOfAccountsService(db)

    def node_debits(self, as_of: date) -> dict[int, Decimal]:
        """Sum postings per chart node up to and including as_of.

        Args:
            as_of: Cutoff date (inclusive)

        Returns:
            Dict of chart node ID to debit sum
        """
        account_nodes = {
            account.id: account.ledger_account_id
            for account in self.db.list_accounts(include_inactive=True)
        }
        debits: dict[int, Decimal] = defaultdict(lambda: ZERO)

        for txn in self.db.list_transactions(states=POSTED_STATES, end_date=as_of):
            cash_node = account_nodes.get(txn.account_id)
            if cash_node is not None:
                debits[cash_node] += txn.signed_amount
            if txn.ledger_account_id is not None:
                debits[txn.ledger_account_id] -= txn.signed_amount

        return dict(debits)

    def _line(self, tree: ChartTree, node_id: int, debits: dict[int, Decimal]) -> StatementLine:
        node = tree.nodes[node_id]
        children = tuple(
            self._line(tree, child_id, debits) for child_id in tree.child_ids.get(node_id, ())
        )
        if node.imputable:
            balance = debits.get(node_id, ZERO) * node.classification.normal_sign
        else:
            balance = sum((child.balance for child in children), ZERO)
        return StatementLine(
            id=node.id,
            code=node.code,
            name=node.name,
            level=node.level,
            imputable=node.imputable,
            balance=balance,
            children=children,
        )

    def build_balance_sheet(
        self, as_of: Optional[date] = None, strict: bool = True
    ) -> BalanceSheet:
        """Build the balance sheet (balance contable) as of a date.

        Opening balances of financial accounts are not postings and do not
        appear here.

        Args:
            as_of: Cutoff date, inclusive (default: today)
            strict: Aggregators without children are an error unless False, in
                which case they are only listed in empty_aggregators

        Returns:
            BalanceSheet with the five class groups and the equation check

        Raises:
            ValidationError: If some aggregator has no children (unless strict is
                False), or the chart has a parent cycle
        """
        as_of = as_of or date.today()
        tree = self.chart.get_tree()
        debits = self.node_debits(as_of)

        empty = tuple(node.code for node in self.chart.find_empty_aggregators(tree))
        if empty and strict:
            raise ValidationError(
                f"Aggregator ledger accounts without sub-accounts: {', '.join(empty)}"
            )

        lines: dict[LedgerClass, list[StatementLine]] = {cls: [] for cls in LedgerClass}
        for root in tree.roots:
            lines[root.classification].append(self._line(tree, root.id, debits))

        groups = {
            cls: StatementGroup(
                classification=cls,
                total=sum((line.balance for line in roots), ZERO),
                accounts=tuple(roots),
            )
            for cls, roots in lines.items()
        }

        period_result = groups[LedgerClass.INCOME].total - groups[LedgerClass.EXPENSE].total
        assets = groups[LedgerClass.ASSET].total
        liabilities_plus_equity = (
            groups[LedgerClass.LIABILITY].total + groups[LedgerClass.EQUITY].total
        )
        balanced = (
            abs(assets - (liabilities_plus_equity + period_result))
            <= self.config.balance_tolerance
        )
        equation = AccountingEquation(
            assets=assets,
            liabilities_plus_equity=liabilities_plus_equity,
            period_result=period_result,
            balanced=balanced,
        )
        if not balanced:
            logger.warning(
                "Balance sheet as of %s does not balance: difference %s",
                as_of,
                equation.difference,
            )

        return BalanceSheet(
            as_of=as_of,
            assets=groups[LedgerClass.ASSET],
            liabilities=groups[LedgerClass.LIABILITY],
            equity=groups[LedgerClass.EQUITY],
            income=groups[LedgerClass.INCOME],
            expenses=groups[LedgerClass.EXPENSE],
            period_result=period_result,
            equation=equation,
            empty_aggregators=empty,
        )
