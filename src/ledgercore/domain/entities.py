"""Domain model entities for ledgercore.

These are pure data classes representing ledger concepts, independent of
the database schema.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ledgercore.domain.amount import format_decimal


class Direction(str, Enum):
    """Side of a ledger line."""

    DEBIT = "debit"
    CREDIT = "credit"

    @property
    def opposite(self) -> "Direction":
        return Direction.CREDIT if self is Direction.DEBIT else Direction.DEBIT


class AccountType(str, Enum):
    """Chart-of-accounts classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def normal_side(self) -> Direction:
        """Side on which this account type's balance increases."""
        if self in (AccountType.ASSET, AccountType.EXPENSE):
            return Direction.DEBIT
        return Direction.CREDIT


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: str
    name: str
    code: Optional[str]
    description: Optional[str]
    currency: str
    account_type: Optional[AccountType]
    normal_side: Direction
    owner_user_id: Optional[str]
    owner_group_id: Optional[str]
    is_active: bool
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class EntryReference:
    """Pointer from an entry to the business event that caused it."""

    type: str
    id: str


@dataclass(frozen=True)
class NormalizedLine:
    """A validated, canonical line that has not been persisted yet."""

    account_id: str
    direction: Direction
    amount: Decimal
    currency: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NewEntry:
    """Entry header as handed to the store for insertion."""

    occurred_at: datetime
    description: Optional[str] = None
    reference: Optional[EntryReference] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    idempotency_key: Optional[str] = None


@dataclass(frozen=True)
class LedgerEntry:
    """Committed entry header."""

    id: str
    occurred_at: datetime
    description: Optional[str]
    reference: Optional[EntryReference]
    metadata: dict[str, Any]
    idempotency_key: Optional[str]
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "occurred_at": self.occurred_at.isoformat(),
            "description": self.description,
            "reference": (
                {"type": self.reference.type, "id": self.reference.id}
                if self.reference is not None
                else None
            ),
            "metadata": self.metadata,
            "idempotency_key": self.idempotency_key,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class LedgerLine:
    """Committed line belonging to an entry."""

    id: int
    entry_id: str
    account_id: str
    direction: Direction
    amount: Decimal
    currency: str
    metadata: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entry_id": self.entry_id,
            "account_id": self.account_id,
            "direction": self.direction.value,
            "amount": format_decimal(self.amount),
            "currency": self.currency,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class AccountLine:
    """Line joined with its entry's occurrence time, for balance projection."""

    line_id: int
    entry_id: str
    direction: Direction
    amount: Decimal
    currency: str
    occurred_at: datetime


@dataclass(frozen=True)
class PostedEntry:
    """Result of a successful posting: the header plus its lines in order."""

    entry: LedgerEntry
    lines: tuple[LedgerLine, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
        }
