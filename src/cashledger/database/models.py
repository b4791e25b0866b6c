"""SQLAlchemy models for cashledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LedgerAccount(Base):
    """Chart-of-accounts node with hierarchical structure."""

    __tablename__ = "ledger_accounts"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    classification = Column(String(20), nullable=False)
    parent_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=True)
    level = Column(Integer, nullable=False, default=1)
    imputable = Column(Boolean, nullable=False, default=True)
    active = Column(Boolean, nullable=False, default=True)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    parent = relationship("LedgerAccount", remote_side=[id], backref="children")


class CostCenter(Base):
    """Cost object with an optional parent."""

    __tablename__ = "cost_centers"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    parent_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    parent = relationship("CostCenter", remote_side=[id], backref="children")


class FinancialAccount(Base):
    """Cash, bank, wallet or investment holding."""

    __tablename__ = "financial_accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    kind = Column(String(30), nullable=False)
    bank_name = Column(String(100), nullable=True)
    account_number = Column(String(50), nullable=True)
    cbu = Column(String(30), nullable=True)
    alias = Column(String(50), nullable=True)
    initial_balance = Column(Numeric(14, 2), nullable=False, default=0)
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ARS")
    active = Column(Boolean, nullable=False, default=True)
    investment_type = Column(String(50), nullable=True)
    annual_rate = Column(Numeric(7, 4), nullable=True)
    maturity_date = Column(Date, nullable=True)
    ledger_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Concurrent balance writes fail with StaleDataError instead of losing an update
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    transactions = relationship("Transaction", back_populates="account")
    ledger_account = relationship("LedgerAccount")


class Transaction(Base):
    """Cash movement (movimiento) model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=True)
    direction = Column(String(10), nullable=False)
    category = Column(String(30), nullable=False)
    payment_method = Column(String(20), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="ARS")
    description = Column(String(500), nullable=False)
    reference = Column(String(100), nullable=True)
    attachment_url = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    ledger_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=True)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=True)
    customer_id = Column(Integer, nullable=True)
    ticket_id = Column(Integer, nullable=True)
    state = Column(String(20), nullable=False, default="PENDIENTE")
    transfer_ref = Column(String(40), nullable=True)
    created_by = Column(Integer, nullable=True)
    idempotency_key = Column(String(100), unique=True, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index("ix_transactions_account_date", "account_id", "date"),
        Index("ix_transactions_transfer_ref", "transfer_ref"),
    )

    # Relationships
    account = relationship("FinancialAccount", back_populates="transactions")
    ledger_account = relationship("LedgerAccount")
    cost_center = relationship("CostCenter")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
