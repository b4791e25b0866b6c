"""Tests for domain entities and enums."""

import pytest
from dataclasses import FrozenInstanceError
from decimal import Decimal

from cashledger.domain.entities import (
    AccountingEquation,
    DirectionTotal,
    Expense,
    Income,
    MonthlyTotals,
    movement_kind,
)
from cashledger.domain.enums import (
    Direction,
    ExpenseCategory,
    IncomeCategory,
    LedgerClass,
    TransactionState,
)
from cashledger.domain.errors import InvalidStateError, ValidationError


class TestMovementKind:
    """Tests for the tagged income/expense variant."""

    def test_income_requires_income_category(self):
        assert Income(IncomeCategory.REINTEGRO).direction is Direction.INCOME
        with pytest.raises(ValidationError):
            Income(ExpenseCategory.MATERIALES)

    def test_expense_requires_expense_category(self):
        assert Expense(ExpenseCategory.VIATICOS).direction is Direction.EXPENSE
        with pytest.raises(ValidationError):
            Expense(IncomeCategory.COBRO_FACTURA)

    def test_variants_are_immutable(self):
        kind = Income(IncomeCategory.REINTEGRO)

        with pytest.raises(FrozenInstanceError):
            kind.category = IncomeCategory.OTRO_INGRESO

    @pytest.mark.parametrize(
        "direction,category,expected",
        [
            ("INGRESO", "ANTICIPO_CLIENTE", Income(IncomeCategory.ANTICIPO_CLIENTE)),
            (Direction.EXPENSE, "IMPUESTOS", Expense(ExpenseCategory.IMPUESTOS)),
        ],
    )
    def test_movement_kind(self, direction, category, expected):
        assert movement_kind(direction, category) == expected

    def test_movement_kind_rejects_unknown_direction(self):
        with pytest.raises(ValidationError, match="direction"):
            movement_kind("LATERAL", "OTRO_INGRESO")


class TestEnums:
    def test_posted_states(self):
        assert TransactionState.CONFIRMADO.is_posted
        assert TransactionState.CONCILIADO.is_posted
        assert not TransactionState.PENDIENTE.is_posted
        assert not TransactionState.ANULADO.is_posted

    def test_normal_sign(self):
        assert LedgerClass.ASSET.normal_sign == 1
        assert LedgerClass.EXPENSE.normal_sign == 1
        assert LedgerClass.LIABILITY.normal_sign == -1
        assert LedgerClass.EQUITY.normal_sign == -1
        assert LedgerClass.INCOME.normal_sign == -1


class TestValueObjects:
    def test_equation_difference(self):
        equation = AccountingEquation(
            assets=Decimal("100"),
            liabilities_plus_equity=Decimal("30"),
            period_result=Decimal("60"),
            balanced=False,
        )

        assert equation.difference == Decimal("10")

    def test_monthly_net(self):
        totals = MonthlyTotals(
            year=2024,
            month=3,
            income=DirectionTotal(amount=Decimal("500"), count=2),
            expense=DirectionTotal(amount=Decimal("800"), count=4),
        )

        assert totals.net == Decimal("-300")

    def test_invalid_state_error_message(self):
        error = InvalidStateError("ANULADO", "CONFIRMADO")

        assert error.current == "ANULADO"
        assert "ANULADO" in str(error)
        assert isinstance(error, ValueError)
