"""Tests for the account registry and account commands."""

from datetime import date
from decimal import Decimal

import pytest

from cashledger.cli.main import cli
from cashledger.domain.enums import AccountKind
from cashledger.domain.errors import (
    AtomicityFailure,
    ConflictError,
    NotFoundError,
    ValidationError,
)


class TestAccountService:
    """Tests for AccountService."""

    def test_create_sets_current_balance_to_initial(self, account_service):
        account_id = account_service.create_account(
            name="Caja obra", kind="CAJA_CHICA", initial_balance=Decimal("250.50")
        )
        account = account_service.get_account(account_id)

        assert account.kind is AccountKind.CAJA_CHICA
        assert account.initial_balance == Decimal("250.50")
        assert account.current_balance == Decimal("250.50")
        assert account.currency == "ARS"
        assert account.active is True

    @pytest.mark.parametrize("balance", [Decimal("0.001"), Decimal("-10.005"), "250.505"])
    def test_create_rejects_sub_cent_initial_balance(self, account_service, balance):
        with pytest.raises(ValidationError, match="two decimals"):
            account_service.create_account(
                name="Caja obra", kind=AccountKind.CAJA_CHICA, initial_balance=balance
            )

        assert account_service.list_accounts() == []

    def test_create_accepts_negative_whole_cents(self, account_service):
        account_id = account_service.create_account(
            name="Cuenta en rojo", kind=AccountKind.CUENTA_CORRIENTE, initial_balance="-10.50"
        )

        assert account_service.get_balance(account_id) == Decimal("-10.50")

    def test_create_requires_name(self, account_service):
        with pytest.raises(ValidationError):
            account_service.create_account(name="  ", kind=AccountKind.CAJA_CHICA)

    def test_create_rejects_unknown_kind(self, account_service):
        with pytest.raises(ValidationError, match="Invalid account kind"):
            account_service.create_account(name="Cuenta rara", kind="TARJETA")

    def test_petty_cash_cannot_have_banking_fields(self, account_service):
        with pytest.raises(ValidationError, match="bank_name"):
            account_service.create_account(
                name="Caja chica", kind=AccountKind.CAJA_CHICA, bank_name="Galicia"
            )

    def test_investment_fields_only_for_investments(self, account_service):
        with pytest.raises(ValidationError, match="annual_rate"):
            account_service.create_account(
                name="Cuenta sueldo",
                kind=AccountKind.CAJA_AHORRO,
                annual_rate=Decimal("0.3"),
            )

        account_id = account_service.create_account(
            name="Plazo fijo",
            kind=AccountKind.INVERSION,
            annual_rate=Decimal("0.35"),
            maturity_date=date(2025, 6, 30),
            investment_type="PLAZO_FIJO",
        )
        account = account_service.get_account(account_id)
        assert account.annual_rate == Decimal("0.35")
        assert account.maturity_date == date(2025, 6, 30)

    def test_duplicate_name_conflicts(self, account_service, sample_account):
        with pytest.raises(ConflictError, match="already exists"):
            account_service.create_account(name="Caja chica", kind=AccountKind.CAJA_CHICA)

    def test_ledger_link_must_be_imputable(self, account_service, sample_chart):
        with pytest.raises(ValidationError, match="not imputable"):
            account_service.create_account(
                name="Caja central",
                kind=AccountKind.CAJA_CHICA,
                ledger_account_id=sample_chart["1.1"],
            )

        account_id = account_service.create_account(
            name="Caja central",
            kind=AccountKind.CAJA_CHICA,
            ledger_account_id=sample_chart["1.1.01"],
        )
        assert account_service.get_account(account_id).ledger_account_id == sample_chart["1.1.01"]

    def test_update_account_fields(self, account_service, bank_account):
        account_service.update_account(bank_account.id, name="Nación CC", alias="obra.nacion")

        account = account_service.get_account(bank_account.id)
        assert account.name == "Nación CC"
        assert account.alias == "obra.nacion"

    def test_update_rejects_balance_fields(self, account_service, sample_account):
        with pytest.raises(ValidationError, match="current_balance"):
            account_service.update_account(sample_account.id, current_balance=Decimal("5"))

    def test_update_validates_kind_after_merge(self, account_service, bank_account):
        with pytest.raises(ValidationError, match="Petty-cash"):
            account_service.update_account(bank_account.id, kind=AccountKind.CAJA_CHICA)

    def test_currency_change_allowed_without_transactions(self, account_service, bank_account):
        account_service.update_account(bank_account.id, currency="USD")

        assert account_service.get_account(bank_account.id).currency == "USD"

    def test_currency_change_blocked_by_recorded_transactions(
        self, account_service, transaction_service, sample_account, make_transaction
    ):
        transaction_id = make_transaction(sample_account.id, 100, confirm=True)
        transaction_service.reconcile(transaction_id)

        with pytest.raises(ConflictError, match="currency"):
            account_service.update_account(sample_account.id, currency="USD")

        account = account_service.get_account(sample_account.id)
        assert account.currency == "ARS"
        assert transaction_service.get_transaction(transaction_id).currency == account.currency

    def test_currency_change_blocked_by_pending_transaction(
        self, account_service, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 100)

        with pytest.raises(ConflictError, match="1 transaction that is not voided"):
            account_service.update_account(sample_account.id, currency="USD")

    def test_currency_change_allowed_after_voiding(
        self, account_service, transaction_service, sample_account, make_transaction
    ):
        transaction_service.void(make_transaction(sample_account.id, 100, confirm=True))

        account_service.update_account(sample_account.id, currency="USD", name="Caja dólares")

        account = account_service.get_account(sample_account.id)
        assert account.currency == "USD"
        assert account.current_balance == Decimal("1000.00")

    def test_same_currency_update_is_not_a_change(
        self, account_service, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 100)

        account_service.update_account(sample_account.id, currency="ARS")

        assert account_service.get_account(sample_account.id).currency == "ARS"

    def test_require_account_not_found(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.require_account(999)

    def test_apply_delta_outside_atomic_unit_is_refused(self, account_service, sample_account):
        with pytest.raises(AtomicityFailure):
            account_service.apply_delta(sample_account.id, Decimal("10"))

        assert account_service.get_balance(sample_account.id) == Decimal("1000.00")

    def test_historical_balance_replays_posted_transactions(
        self, account_service, transaction_service, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 100, "EGRESO", confirm=True, date=date(2024, 1, 10))
        make_transaction(sample_account.id, 40, "INGRESO", confirm=True, date=date(2024, 2, 10))
        make_transaction(sample_account.id, 999, "EGRESO", date=date(2024, 1, 20))
        voided = make_transaction(sample_account.id, 50, "EGRESO", confirm=True, date=date(2024, 1, 25))
        transaction_service.void(voided)

        assert account_service.get_balance(sample_account.id, as_of=date(2023, 12, 31)) == Decimal("1000")
        assert account_service.get_balance(sample_account.id, as_of=date(2024, 1, 31)) == Decimal("900")
        assert account_service.get_balance(sample_account.id, as_of=date(2024, 2, 28)) == Decimal("940")
        assert account_service.get_balance(sample_account.id) == Decimal("940")

    def test_deactivate_with_pending_transaction_conflicts(
        self, account_service, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 100)

        with pytest.raises(ConflictError, match="pending or confirmed"):
            account_service.deactivate_account(sample_account.id)
        assert account_service.get_account(sample_account.id).active is True

    def test_deactivate_with_confirmed_transaction_conflicts(
        self, account_service, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 100, confirm=True)

        with pytest.raises(ConflictError):
            account_service.deactivate_account(sample_account.id)

    def test_deactivate_after_resolving_transactions(
        self, account_service, transaction_service, sample_account, make_transaction
    ):
        reconciled = make_transaction(sample_account.id, 100, confirm=True)
        transaction_service.reconcile(reconciled)
        voided = make_transaction(sample_account.id, 30)
        transaction_service.void(voided)

        account_service.deactivate_account(sample_account.id)

        assert account_service.get_account(sample_account.id).active is False
        assert account_service.list_accounts() == []
        assert len(account_service.list_accounts(include_inactive=True)) == 1


def test_account_create_cli(cli_runner, temp_db):
    """Test creating an account from the command line."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "create", "Caja chica",
            "--kind", "CAJA_CHICA",
            "--initial-balance", "5000",
        ],
    )

    assert result.exit_code == 0
    assert "Created account 'Caja chica'" in result.output
    account = temp_db.get_account_by_name("Caja chica")
    assert account.current_balance == Decimal("5000.00")


def test_account_create_cli_invalid_kind_fields(cli_runner, temp_db):
    """Test that kind-specific validation errors reach the user."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "create", "Caja chica",
            "--kind", "CAJA_CHICA",
            "--bank", "Galicia",
        ],
    )

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Traceback" not in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_with_data(cli_runner, temp_db, sample_account, bank_account):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "Caja chica" in result.output
    assert "Banco Nación CC" in result.output
    assert "ARS 1,000.00" in result.output


def test_account_show_by_name(cli_runner, temp_db, bank_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "show", "Banco Nación CC"]
    )

    assert result.exit_code == 0
    assert "CUENTA_CORRIENTE" in result.output
    assert "Bank: Banco Nación" in result.output


def test_account_show_unknown(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "show", "Inexistente"]
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_account_update_cli(cli_runner, temp_db, bank_account):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "update", str(bank_account.id),
            "--name", "Nación Obra",
        ],
    )

    assert result.exit_code == 0
    assert temp_db.get_account(bank_account.id).name == "Nación Obra"


def test_account_deactivate_blocked_cli(cli_runner, temp_db, sample_account, make_transaction):
    make_transaction(sample_account.id, 100)

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "account", "deactivate", "Caja chica", "--yes"],
    )

    assert result.exit_code == 1
    assert "Cannot deactivate account" in result.output
    assert temp_db.get_account(sample_account.id).active is True


def test_account_deactivate_cli(cli_runner, temp_db, bank_account):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "account", "deactivate", str(bank_account.id)],
        input="y\n",
    )

    assert result.exit_code == 0
    assert "Deactivated account" in result.output
    assert temp_db.get_account(bank_account.id).active is False


def test_account_balance_as_of_cli(cli_runner, temp_db, sample_account, make_transaction):
    make_transaction(sample_account.id, 300, confirm=True, date=date(2024, 3, 15))

    before = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "balance", "Caja chica", "--as-of", "2024-03-01",
        ],
    )
    now = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "balance", "Caja chica"]
    )

    assert before.exit_code == 0
    assert "ARS 1,000.00 as of 2024-03-01" in before.output
    assert "ARS 700.00" in now.output
