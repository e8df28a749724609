"""SQLAlchemy models for the ledger database."""

import uuid
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    event,
)
from sqlalchemy.engine import Engine, create_engine
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.types import TypeDecorator

from ledgercore.domain.amount import quantize
from ledgercore.domain.entities import AccountType, Direction

Base = declarative_base()

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def new_uuid() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(UTC)


class FixedDecimal(TypeDecorator):
    """Exact fixed-point amount stored as text.

    Text storage keeps all 18 fractional digits on backends (SQLite) whose
    NUMERIC affinity would otherwise coerce to a binary float.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Optional[Decimal], dialect) -> Optional[str]:
        if value is None:
            return None
        return format(quantize(Decimal(value)), "f")

    def process_result_value(self, value: Optional[str], dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return quantize(Decimal(value))


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=True)
    description = Column(String, nullable=True)
    currency = Column(String, nullable=False, default="USD")
    account_type = Column(
        SAEnum(AccountType, name="account_type_enum", values_callable=_enum_values),
        nullable=True,
    )
    normal_side = Column(
        SAEnum(Direction, name="normal_side_enum", values_callable=_enum_values),
        nullable=False,
        default=Direction.DEBIT,
    )
    owner_user_id = Column(String, nullable=True, index=True)
    owner_group_id = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=_utc_now, nullable=False)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now, nullable=False)

    # Lines reference accounts but never own them
    lines = relationship("LedgerLine", back_populates="account", passive_deletes="all")


class LedgerEntry(Base):
    """Ledger entry header model."""

    __tablename__ = "ledger_entries"

    id = Column(String(36), primary_key=True, default=new_uuid)
    occurred_at = Column(DateTime, default=_utc_now, nullable=False, index=True)
    description = Column(String, nullable=True)
    reference_type = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    idempotency_key = Column(String, unique=True, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=_utc_now, nullable=False)

    lines = relationship(
        "LedgerLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="LedgerLine.id",
    )


class LedgerLine(Base):
    """Ledger line model (one debit or credit movement)."""

    __tablename__ = "ledger_lines"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    entry_id = Column(
        String(36), ForeignKey("ledger_entries.id", ondelete="CASCADE"), nullable=False
    )
    account_id = Column(
        String(36), ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )
    direction = Column(
        SAEnum(Direction, name="ledger_direction_enum", values_callable=_enum_values),
        nullable=False,
    )
    amount = Column(FixedDecimal(), nullable=False)
    currency = Column(String, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint("amount NOT LIKE '-%'", name="ck_ledger_lines_amount_non_negative"),
        Index("idx_ledger_lines_entry", "entry_id"),
        Index("idx_ledger_lines_account", "account_id"),
    )

    entry = relationship("LedgerEntry", back_populates="lines")
    account = relationship("Account", back_populates="lines")


def create_ledger_engine(database_url: str) -> Engine:
    """Create an engine, enabling SQLite foreign keys and cross-thread use."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}

    engine = create_engine(database_url, echo=False, connect_args=connect_args)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory bound to ``engine``."""
    return sessionmaker(bind=engine, expire_on_commit=False)
