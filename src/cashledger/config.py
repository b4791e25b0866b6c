"""Configuration management for cashledger."""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional


def default_database_path() -> str:
    """Return ~/.cashledger/cashledger.db, creating the directory if needed."""
    db_dir = Path.home() / ".cashledger"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "cashledger.db")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LedgerConfig:
    """Main configuration for cashledger."""

    database_path: Optional[str] = None
    log_level: str = "WARNING"
    log_format: str = "standard"
    # Transfer legs are confirmed in the same atomic unit that creates them
    transfers_post_immediately: bool = True
    max_retries: int = 3
    recent_transactions_limit: int = 5
    balance_tolerance: Decimal = field(default_factory=lambda: Decimal("0.01"))
    default_currency: str = "ARS"

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.recent_transactions_limit < 0:
            raise ValueError("recent_transactions_limit cannot be negative")
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        tolerance_str = os.getenv("CASHLEDGER_BALANCE_TOLERANCE", "0.01")
        try:
            tolerance = Decimal(tolerance_str)
        except InvalidOperation:
            raise ValueError(
                f"CASHLEDGER_BALANCE_TOLERANCE must be a decimal, got '{tolerance_str}'"
            )

        return cls(
            database_path=os.getenv("CASHLEDGER_DB_PATH"),
            log_level=os.getenv("CASHLEDGER_LOG_LEVEL", "WARNING"),
            log_format=os.getenv("CASHLEDGER_LOG_FORMAT", "standard"),
            transfers_post_immediately=_env_bool(
                "CASHLEDGER_TRANSFERS_POST_IMMEDIATELY", True
            ),
            max_retries=int(os.getenv("CASHLEDGER_MAX_RETRIES", "3")),
            recent_transactions_limit=int(os.getenv("CASHLEDGER_RECENT_LIMIT", "5")),
            balance_tolerance=tolerance,
            default_currency=os.getenv("CASHLEDGER_CURRENCY", "ARS"),
        )
