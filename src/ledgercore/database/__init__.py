"""Database layer for ledgercore."""

from ledgercore.database.base import EntryTransaction, LedgerStore
from ledgercore.database.factories import create_database, create_sqlite_database

__all__ = ["EntryTransaction", "LedgerStore", "create_database", "create_sqlite_database"]
