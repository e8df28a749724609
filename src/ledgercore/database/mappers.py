"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay
stable when the database schema changes.
"""

from datetime import datetime, UTC
from typing import Optional

from ledgercore.domain import entities as domain
from ledgercore.database.models import (
    Account as ORMAccount,
    LedgerEntry as ORMLedgerEntry,
    LedgerLine as ORMLedgerLine,
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_storage_time(value: datetime) -> datetime:
    """Convert a datetime to the naive UTC form the columns store."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        code=orm_account.code,
        description=orm_account.description,
        currency=orm_account.currency,
        account_type=orm_account.account_type,
        normal_side=orm_account.normal_side,
        owner_user_id=orm_account.owner_user_id,
        owner_group_id=orm_account.owner_group_id,
        is_active=orm_account.is_active,
        metadata=dict(orm_account.metadata_ or {}),
        created_at=as_utc(orm_account.created_at),
        updated_at=as_utc(orm_account.updated_at),
    )


def entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    reference = None
    if orm_entry.reference_type is not None or orm_entry.reference_id is not None:
        reference = domain.EntryReference(
            type=orm_entry.reference_type or "",
            id=orm_entry.reference_id or "",
        )
    return domain.LedgerEntry(
        id=orm_entry.id,
        occurred_at=as_utc(orm_entry.occurred_at),
        description=orm_entry.description,
        reference=reference,
        metadata=dict(orm_entry.metadata_ or {}),
        idempotency_key=orm_entry.idempotency_key,
        created_at=as_utc(orm_entry.created_at),
    )


def line_to_domain(orm_line: ORMLedgerLine) -> domain.LedgerLine:
    """Convert SQLAlchemy LedgerLine model to domain LedgerLine entity."""
    return domain.LedgerLine(
        id=orm_line.id,
        entry_id=orm_line.entry_id,
        account_id=orm_line.account_id,
        direction=orm_line.direction,
        amount=orm_line.amount,
        currency=orm_line.currency,
        metadata=dict(orm_line.metadata_ or {}),
    )
