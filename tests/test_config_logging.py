"""Tests for configuration and logging setup."""

import json
import logging
from decimal import Decimal

import pytest

from cashledger.config import LedgerConfig
from cashledger.logging import JsonFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestLedgerConfig:
    def test_defaults(self):
        config = LedgerConfig()

        assert config.transfers_post_immediately is True
        assert config.max_retries == 3
        assert config.recent_transactions_limit == 5
        assert config.balance_tolerance == Decimal("0.01")
        assert config.default_currency == "ARS"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CASHLEDGER_DB_PATH", "/tmp/ledger.db")
        monkeypatch.setenv("CASHLEDGER_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("CASHLEDGER_TRANSFERS_POST_IMMEDIATELY", "no")
        monkeypatch.setenv("CASHLEDGER_MAX_RETRIES", "5")
        monkeypatch.setenv("CASHLEDGER_RECENT_LIMIT", "10")
        monkeypatch.setenv("CASHLEDGER_BALANCE_TOLERANCE", "0.05")
        monkeypatch.setenv("CASHLEDGER_CURRENCY", "USD")

        config = LedgerConfig.from_env()

        assert config.database_path == "/tmp/ledger.db"
        assert config.log_level == "DEBUG"
        assert config.transfers_post_immediately is False
        assert config.max_retries == 5
        assert config.recent_transactions_limit == 10
        assert config.balance_tolerance == Decimal("0.05")
        assert config.default_currency == "USD"

    def test_from_env_rejects_bad_tolerance(self, monkeypatch):
        monkeypatch.setenv("CASHLEDGER_BALANCE_TOLERANCE", "a lot")

        with pytest.raises(ValueError, match="CASHLEDGER_BALANCE_TOLERANCE"):
            LedgerConfig.from_env()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_retries": 0},
            {"recent_transactions_limit": -1},
            {"balance_tolerance": Decimal("-0.01")},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            LedgerConfig(**overrides)


class TestLogging:
    def test_setup_logging_standard(self, restore_root_logger):
        setup_logging("INFO")

        assert restore_root_logger.level == logging.INFO
        assert len(restore_root_logger.handlers) == 1
        assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("sqlalchemy").level == logging.WARNING

    def test_setup_logging_json(self, restore_root_logger):
        setup_logging("debug", format_type="json")

        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_warning(self, restore_root_logger):
        setup_logging("CHATTY")

        assert restore_root_logger.level == logging.WARNING

    def test_json_formatter(self):
        record = logging.LogRecord(
            name="cashledger.domain.transfer",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Created transfer %s",
            args=("TRF-1-abcdef",),
            exc_info=None,
        )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "cashledger.domain.transfer"
        assert payload["message"] == "Created transfer TRF-1-abcdef"
        assert "timestamp" in payload
