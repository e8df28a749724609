"""Abstract ledger store interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ledgercore.domain.entities import (
    Account,
    AccountLine,
    AccountType,
    Direction,
    LedgerEntry,
    LedgerLine,
    NewEntry,
    NormalizedLine,
)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def normalize_page_size(limit: Optional[int]) -> int:
    """Clamp a requested page size to ``1..MAX_PAGE_SIZE``.

    Missing or non-positive limits fall back to ``DEFAULT_PAGE_SIZE``.
    """
    if limit is None or limit <= 0:
        return DEFAULT_PAGE_SIZE
    return min(limit, MAX_PAGE_SIZE)


class EntryTransaction(ABC):
    """Scoped write context for one unit of posting work.

    Obtained from :meth:`LedgerStore.begin_entry_transaction` and threaded
    explicitly through every store call of that unit of work. Used as a
    context manager, leaving the block without a commit rolls back.
    """

    def __init__(self, store: "LedgerStore"):
        self.store = store

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the transaction still awaits commit or rollback."""
        pass

    def __enter__(self) -> "EntryTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.is_open:
            self.store.rollback(self)


class LedgerStore(ABC):
    """Abstract durable store for accounts, entries and lines."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database and release pooled connections."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        currency: str = "USD",
        code: Optional[str] = None,
        description: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        normal_side: Direction = Direction.DEBIT,
        owner_user_id: Optional[str] = None,
        owner_group_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Account:
        """Create a new account.

        Raises:
            ConflictError: If ``code`` is already used by another account
        """
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by its chart-of-accounts code."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        active_only: bool = True,
        owner_user_id: Optional[str] = None,
        owner_group_id: Optional[str] = None,
    ) -> list[Account]:
        """List accounts, newest first."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: str, active: bool) -> Account:
        """Activate or deactivate an account.

        Raises:
            NotFoundError: If the account does not exist
        """
        pass

    # Posting operations
    @abstractmethod
    def begin_entry_transaction(self) -> EntryTransaction:
        """Open a transaction handle for posting one entry."""
        pass

    @abstractmethod
    def insert_entry(self, tx: EntryTransaction, header: NewEntry) -> str:
        """Write an entry header inside ``tx``. Returns the entry ID.

        Raises:
            ConflictError: If the idempotency key is already taken
            StorageError: On I/O failure
        """
        pass

    @abstractmethod
    def insert_line(self, tx: EntryTransaction, entry_id: str, line: NormalizedLine) -> LedgerLine:
        """Write one line of ``entry_id`` inside ``tx``.

        Raises:
            NotFoundError: If the line's account does not exist
            StorageError: On I/O failure
        """
        pass

    @abstractmethod
    def lock_account(self, tx: EntryTransaction, account_id: str) -> Account:
        """Take a row lock on an account for the lifetime of ``tx``.

        Seam for layers that serialize postings per account (for example an
        overdraft check); the poster itself never locks accounts.
        """
        pass

    @abstractmethod
    def get_entry_in_transaction(self, tx: EntryTransaction, entry_id: str) -> Optional[LedgerEntry]:
        """Read an entry header through ``tx`` (sees its own uncommitted writes)."""
        pass

    @abstractmethod
    def commit(self, tx: EntryTransaction) -> None:
        """Atomically publish every write of ``tx``."""
        pass

    @abstractmethod
    def rollback(self, tx: EntryTransaction) -> None:
        """Discard every write of ``tx``."""
        pass

    # Read operations
    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[LedgerEntry]:
        """Get committed entry header by ID."""
        pass

    @abstractmethod
    def get_entry_by_idempotency_key(self, key: str) -> Optional[LedgerEntry]:
        """Get committed entry header by idempotency key."""
        pass

    @abstractmethod
    def get_entry_lines(self, entry_id: str) -> list[LedgerLine]:
        """Get an entry's lines in insertion order."""
        pass

    @abstractmethod
    def list_entries(self, limit: Optional[int] = None) -> list[LedgerEntry]:
        """List entry headers, most recent first, capped to ``MAX_PAGE_SIZE``."""
        pass

    @abstractmethod
    def list_account_lines(
        self, account_id: str, as_of: Optional[datetime] = None
    ) -> list[AccountLine]:
        """List every line posted to an account.

        Args:
            account_id: Account ID
            as_of: Optional inclusive upper bound on entry occurrence time
        """
        pass
