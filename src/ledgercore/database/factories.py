"""Database factory functions for creating ledger store instances."""

import os
from pathlib import Path
from typing import Optional

from ledgercore.database.sqlalchemy_db import SQLAlchemyLedgerStore


def default_database_path() -> str:
    """Return ``~/.ledgercore/ledger.db``, creating the directory if needed."""
    db_dir = Path.home() / ".ledgercore"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "ledger.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyLedgerStore:
    """Create a SQLite-backed ledger store.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGER_DB_PATH
            environment variable, then defaults to ~/.ledgercore/ledger.db

    Returns:
        SQLAlchemyLedgerStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("LEDGER_DB_PATH")

    if database_path is None:
        database_path = default_database_path()

    return SQLAlchemyLedgerStore(f"sqlite:///{database_path}")


def create_database(
    database_url: Optional[str] = None, database_path: Optional[str] = None
) -> SQLAlchemyLedgerStore:
    """Create a ledger store from a full URL, falling back to a SQLite file.

    Args:
        database_url: SQLAlchemy URL; if None, LEDGER_DATABASE_URL is checked
        database_path: SQLite file path used when no URL is configured
    """
    if database_url is None:
        database_url = os.environ.get("LEDGER_DATABASE_URL")

    if database_url:
        return SQLAlchemyLedgerStore(database_url)
    return create_sqlite_database(database_path)
