"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the rebuild of the
tagged income/expense variant from its two stored columns.
"""

from decimal import Decimal

from cashledger.domain import entities as domain
from cashledger.domain.enums import AccountKind, LedgerClass, PaymentMethod, TransactionState
from cashledger.database.models import (
    CostCenter as ORMCostCenter,
    FinancialAccount as ORMFinancialAccount,
    LedgerAccount as ORMLedgerAccount,
    Transaction as ORMTransaction,
)


def _money(value) -> Decimal:
    # SQLite hands Numeric columns back with float artefacts at times
    return Decimal(value).quantize(Decimal("0.01")) if value is not None else Decimal("0.00")


def account_to_domain(orm_account: ORMFinancialAccount) -> domain.FinancialAccount:
    """Convert SQLAlchemy FinancialAccount model to domain entity."""
    return domain.FinancialAccount(
        id=orm_account.id,
        name=orm_account.name,
        kind=AccountKind(orm_account.kind),
        initial_balance=_money(orm_account.initial_balance),
        current_balance=_money(orm_account.current_balance),
        currency=orm_account.currency,
        active=orm_account.active,
        created_at=orm_account.created_at,
        bank_name=orm_account.bank_name,
        account_number=orm_account.account_number,
        cbu=orm_account.cbu,
        alias=orm_account.alias,
        investment_type=orm_account.investment_type,
        annual_rate=(
            Decimal(orm_account.annual_rate) if orm_account.annual_rate is not None else None
        ),
        maturity_date=orm_account.maturity_date,
        ledger_account_id=orm_account.ledger_account_id,
        version=orm_account.version,
        updated_at=orm_account.updated_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        code=orm_transaction.code,
        kind=domain.movement_kind(orm_transaction.direction, orm_transaction.category),
        payment_method=PaymentMethod(orm_transaction.payment_method),
        amount=_money(orm_transaction.amount),
        currency=orm_transaction.currency,
        description=orm_transaction.description,
        date=orm_transaction.date,
        account_id=orm_transaction.account_id,
        state=TransactionState(orm_transaction.state),
        created_at=orm_transaction.created_at,
        reference=orm_transaction.reference,
        attachment_url=orm_transaction.attachment_url,
        ledger_account_id=orm_transaction.ledger_account_id,
        cost_center_id=orm_transaction.cost_center_id,
        customer_id=orm_transaction.customer_id,
        ticket_id=orm_transaction.ticket_id,
        transfer_ref=orm_transaction.transfer_ref,
        created_by=orm_transaction.created_by,
        idempotency_key=orm_transaction.idempotency_key,
        version=orm_transaction.version,
        updated_at=orm_transaction.updated_at,
    )


def ledger_account_to_domain(orm_ledger: ORMLedgerAccount) -> domain.LedgerAccount:
    """Convert SQLAlchemy LedgerAccount model to domain LedgerAccount entity."""
    return domain.LedgerAccount(
        id=orm_ledger.id,
        code=orm_ledger.code,
        name=orm_ledger.name,
        classification=LedgerClass(orm_ledger.classification),
        level=orm_ledger.level,
        imputable=orm_ledger.imputable,
        active=orm_ledger.active,
        created_at=orm_ledger.created_at,
        parent_id=orm_ledger.parent_id,
        description=orm_ledger.description,
    )


def cost_center_to_domain(orm_center: ORMCostCenter) -> domain.CostCenter:
    """Convert SQLAlchemy CostCenter model to domain CostCenter entity."""
    return domain.CostCenter(
        id=orm_center.id,
        code=orm_center.code,
        name=orm_center.name,
        active=orm_center.active,
        created_at=orm_center.created_at,
        parent_id=orm_center.parent_id,
        description=orm_center.description,
    )
