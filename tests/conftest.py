"""Shared pytest fixtures for cashledger tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from cashledger.config import LedgerConfig
from cashledger.database.factories import create_sqlite_database
from cashledger.domain.account import AccountService
from cashledger.domain.chart import ChartOfAccountsService
from cashledger.domain.cost_center import CostCenterService
from cashledger.domain.dashboard import DashboardService
from cashledger.domain.entities import Expense, Income
from cashledger.domain.enums import AccountKind, ExpenseCategory, IncomeCategory
from cashledger.domain.statement import StatementService
from cashledger.domain.transaction import TransactionService
from cashledger.domain.transfer import TransferService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def config():
    """Default ledger configuration."""
    return LedgerConfig()


@pytest.fixture
def account_service(temp_db, config):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, config)


@pytest.fixture
def transaction_service(temp_db, config, account_service):
    """Create a TransactionService sharing the account service."""
    return TransactionService(temp_db, config, account_service)


@pytest.fixture
def transfer_service(temp_db, config, transaction_service):
    """Create a TransferService sharing the transaction service."""
    return TransferService(temp_db, config, transaction_service)


@pytest.fixture
def chart_service(temp_db):
    """Create a ChartOfAccountsService with a temporary database."""
    return ChartOfAccountsService(temp_db)


@pytest.fixture
def cost_center_service(temp_db):
    """Create a CostCenterService with a temporary database."""
    return CostCenterService(temp_db)


@pytest.fixture
def statement_service(temp_db, config):
    """Create a StatementService with a temporary database."""
    return StatementService(temp_db, config)


@pytest.fixture
def dashboard_service(temp_db, config):
    """Create a DashboardService with a temporary database."""
    return DashboardService(temp_db, config)


@pytest.fixture
def sample_account(account_service):
    """Petty-cash account opened with 1000."""
    account_id = account_service.create_account(
        name="Caja chica", kind=AccountKind.CAJA_CHICA, initial_balance=Decimal("1000")
    )
    return account_service.get_account(account_id)


@pytest.fixture
def bank_account(account_service):
    """Checking account opened with zero balance."""
    account_id = account_service.create_account(
        name="Banco Nación CC",
        kind=AccountKind.CUENTA_CORRIENTE,
        bank_name="Banco Nación",
    )
    return account_service.get_account(account_id)


@pytest.fixture
def sample_chart(chart_service):
    """Initialize the default chart and return node IDs by code."""
    from cashledger.cli.commands.init_chart import INITIAL_CHART

    ids = {}
    for code, name, classification, parent_code, imputable in INITIAL_CHART:
        ids[code] = chart_service.create_node(
            code=code,
            name=name,
            classification=classification,
            parent_id=ids[parent_code] if parent_code else None,
            imputable=imputable,
        )
    return ids


@pytest.fixture
def make_transaction(transaction_service):
    """Factory creating a transaction with sensible defaults."""

    def _make(account_id, amount, direction="EGRESO", confirm=False, **kwargs):
        kind = (
            Income(IncomeCategory.OTRO_INGRESO)
            if direction == "INGRESO"
            else Expense(ExpenseCategory.OTRO_EGRESO)
        )
        return transaction_service.create_transaction(
            kind=kwargs.pop("kind", kind),
            amount=Decimal(str(amount)),
            account_id=account_id,
            date=kwargs.pop("date", date(2024, 3, 15)),
            description=kwargs.pop("description", "Movimiento de prueba"),
            confirm=confirm,
            **kwargs,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
