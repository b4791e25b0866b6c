"""Tests for the statement builder."""

from datetime import date
from decimal import Decimal

import pytest

from cashledger.config import LedgerConfig
from cashledger.domain.entities import StatementLine
from cashledger.domain.enums import AccountKind, LedgerClass
from cashledger.domain.errors import ValidationError
from cashledger.domain.statement import StatementService


def find_line(lines, code) -> StatementLine:
    for line in lines:
        if line.code == code:
            return line
        found = find_line(line.children, code)
        if found is not None:
            return found
    return None


def assert_aggregates(line: StatementLine) -> None:
    if not line.imputable:
        assert line.balance == sum((child.balance for child in line.children), Decimal("0"))
    for child in line.children:
        assert_aggregates(child)


@pytest.fixture
def linked_accounts(account_service, sample_chart):
    """Cash and bank accounts linked to their chart nodes."""
    cash = account_service.create_account(
        name="Caja", kind=AccountKind.CAJA_CHICA, ledger_account_id=sample_chart["1.1.01"]
    )
    bank = account_service.create_account(
        name="Banco",
        kind=AccountKind.CUENTA_CORRIENTE,
        initial_balance=Decimal("50000"),
        ledger_account_id=sample_chart["1.1.02"],
    )
    return cash, bank


def test_single_leaf_balance_rolls_up_to_root(chart_service, account_service, statement_service, make_transaction):
    activo = chart_service.create_node("1", "Activo", classification=LedgerClass.ASSET, imputable=False)
    caja = chart_service.create_node("1.1", "Caja", parent_id=activo)
    ingresos = chart_service.create_node("4", "Ingresos", classification=LedgerClass.INCOME, imputable=False)
    ventas = chart_service.create_node("4.1", "Ventas", parent_id=ingresos)
    account_id = account_service.create_account(
        name="Caja obra", kind=AccountKind.CAJA_CHICA, ledger_account_id=caja
    )
    make_transaction(account_id, 700, "INGRESO", confirm=True, ledger_account_id=ventas)

    sheet = statement_service.build_balance_sheet(as_of=date(2024, 12, 31))

    assert sheet.assets.total == Decimal("700.00")
    assert find_line(sheet.assets.accounts, "1.1").balance == Decimal("700.00")
    assert sheet.income.total == Decimal("700.00")
    assert sheet.period_result == Decimal("700.00")
    assert sheet.equation.balanced is True


def test_full_chart_balances(
    statement_service, transfer_service, linked_accounts, sample_chart, make_transaction
):
    cash, bank = linked_accounts
    make_transaction(bank, 1000, "INGRESO", confirm=True, ledger_account_id=sample_chart["4.1.01"])
    make_transaction(cash, 300, "EGRESO", confirm=True, ledger_account_id=sample_chart["5.1.01"])
    make_transaction(bank, 120, "EGRESO", confirm=True, ledger_account_id=sample_chart["5.2.01"])
    transfer_service.create_transfer(bank, cash, Decimal("500"), date(2024, 3, 1), "Reposición caja")

    sheet = statement_service.build_balance_sheet(as_of=date(2024, 12, 31))

    assert find_line(sheet.assets.accounts, "1.1.01").balance == Decimal("200.00")
    assert find_line(sheet.assets.accounts, "1.1.02").balance == Decimal("380.00")
    assert sheet.assets.total == Decimal("580.00")
    assert sheet.income.total == Decimal("1000.00")
    assert sheet.expenses.total == Decimal("420.00")
    assert find_line(sheet.expenses.accounts, "5.1").balance == Decimal("300.00")
    assert find_line(sheet.expenses.accounts, "5.2").balance == Decimal("120.00")
    assert sheet.period_result == Decimal("580.00")
    assert sheet.equation.balanced is True
    assert sheet.equation.difference == 0
    for group in (sheet.assets, sheet.liabilities, sheet.equity, sheet.income, sheet.expenses):
        for line in group.accounts:
            assert_aggregates(line)


def test_opening_balances_are_not_postings(statement_service, linked_accounts):
    sheet = statement_service.build_balance_sheet(as_of=date(2024, 12, 31))

    assert sheet.assets.total == 0
    assert sheet.equation.balanced is True


def test_liability_classification_keeps_equation(
    statement_service, linked_accounts, sample_chart, make_transaction
):
    cash, _ = linked_accounts
    make_transaction(cash, 150, "EGRESO", confirm=True, ledger_account_id=sample_chart["2.1.01"])

    sheet = statement_service.build_balance_sheet(as_of=date(2024, 12, 31))

    assert sheet.assets.total == Decimal("-150.00")
    assert sheet.liabilities.total == Decimal("-150.00")
    assert sheet.equation.balanced is True


def test_unclassified_posting_unbalances(statement_service, linked_accounts, make_transaction):
    cash, _ = linked_accounts
    make_transaction(cash, 90, "INGRESO", confirm=True)

    sheet = statement_service.build_balance_sheet(as_of=date(2024, 12, 31))

    assert sheet.equation.balanced is False
    assert sheet.equation.assets == Decimal("90.00")
    assert sheet.equation.liabilities_plus_equity == 0
    assert sheet.equation.period_result == 0
    assert sheet.equation.difference == Decimal("90.00")


def test_small_rounding_within_tolerance(temp_db, linked_accounts, make_transaction):
    cash, _ = linked_accounts
    make_transaction(cash, Decimal("0.01"), "INGRESO", confirm=True)

    strict = StatementService(temp_db, LedgerConfig(balance_tolerance=Decimal("0")))
    lenient = StatementService(temp_db, LedgerConfig(balance_tolerance=Decimal("0.01")))

    assert strict.build_balance_sheet(as_of=date(2024, 12, 31)).equation.balanced is False
    assert lenient.build_balance_sheet(as_of=date(2024, 12, 31)).equation.balanced is True


def test_as_of_cutoff_is_inclusive(statement_service, linked_accounts, sample_chart, make_transaction):
    cash, _ = linked_accounts
    make_transaction(cash, 100, "INGRESO", confirm=True, date=date(2024, 3, 15), ledger_account_id=sample_chart["4.2"])
    make_transaction(cash, 40, "INGRESO", confirm=True, date=date(2024, 3, 16), ledger_account_id=sample_chart["4.2"])

    before = statement_service.build_balance_sheet(as_of=date(2024, 3, 14))
    on_day = statement_service.build_balance_sheet(as_of=date(2024, 3, 15))
    after = statement_service.build_balance_sheet(as_of=date(2024, 3, 16))

    assert before.income.total == 0
    assert on_day.income.total == Decimal("100.00")
    assert after.income.total == Decimal("140.00")


def test_pending_and_voided_are_ignored(
    statement_service, transaction_service, linked_accounts, sample_chart, make_transaction
):
    cash, _ = linked_accounts
    make_transaction(cash, 100, "EGRESO", ledger_account_id=sample_chart["5.1.02"])
    voided = make_transaction(cash, 60, "EGRESO", confirm=True, ledger_account_id=sample_chart["5.1.02"])
    transaction_service.void(voided)

    sheet = statement_service.build_balance_sheet(as_of=date(2024, 12, 31))

    assert sheet.expenses.total == 0
    assert sheet.assets.total == 0


def test_groups_by_root_classification(statement_service, sample_chart):
    sheet = statement_service.build_balance_sheet()

    assert sheet.as_of == date.today()
    assert [line.code for line in sheet.assets.accounts] == ["1"]
    assert [line.code for line in sheet.liabilities.accounts] == ["2"]
    assert [line.code for line in sheet.equity.accounts] == ["3"]
    assert [line.code for line in sheet.income.accounts] == ["4"]
    assert [line.code for line in sheet.expenses.accounts] == ["5"]
    assert sheet.group(LedgerClass.EQUITY) is sheet.equity


def test_empty_aggregator_rejected_by_default(statement_service, chart_service, sample_chart):
    chart_service.create_node("5.3", "Gastos varios", parent_id=sample_chart["5"], imputable=False)

    with pytest.raises(ValidationError, match="5.3"):
        statement_service.build_balance_sheet()


def test_empty_aggregator_reported_when_allowed(statement_service, chart_service, sample_chart):
    chart_service.create_node("5.3", "Gastos varios", parent_id=sample_chart["5"], imputable=False)

    sheet = statement_service.build_balance_sheet(strict=False)

    assert sheet.empty_aggregators == ("5.3",)
    assert find_line(sheet.expenses.accounts, "5.3").balance == 0


def test_empty_aggregator_accepted_once_it_has_children(statement_service, chart_service, sample_chart):
    group = chart_service.create_node("5.3", "Gastos varios", parent_id=sample_chart["5"], imputable=False)
    chart_service.create_node("5.3.01", "Peajes", parent_id=group)

    sheet = statement_service.build_balance_sheet()

    assert sheet.empty_aggregators == ()


def test_node_debits_sign_convention(statement_service, linked_accounts, sample_chart, make_transaction):
    cash, _ = linked_accounts
    make_transaction(cash, 80, "EGRESO", confirm=True, ledger_account_id=sample_chart["5.1.04"])

    debits = statement_service.node_debits(date(2024, 12, 31))

    assert debits[sample_chart["1.1.01"]] == Decimal("-80.00")
    assert debits[sample_chart["5.1.04"]] == Decimal("80.00")
