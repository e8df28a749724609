"""Shared pytest fixtures for ledgercore tests."""

import tempfile
import os
import pytest

from ledgercore.database.factories import create_sqlite_database
from ledgercore.domain.account import AccountService
from ledgercore.domain.entry import EntryService
from ledgercore.domain.posting import EntryPoster, PostEntryRequest
from ledgercore.domain.projector import BalanceProjector


@pytest.fixture
def temp_db():
    """Create a temporary ledger database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def poster(temp_db):
    """Create an EntryPoster with a temporary database."""
    return EntryPoster(temp_db)


@pytest.fixture
def entry_service(temp_db, poster):
    """Create an EntryService with a temporary database."""
    return EntryService(temp_db, poster=poster)


@pytest.fixture
def projector(temp_db):
    """Create a BalanceProjector with a temporary database."""
    return BalanceProjector(temp_db)


@pytest.fixture
def cash_account(account_service):
    """Debit-normal asset account."""
    return account_service.create_account(name="Cash", code="1000", account_type="asset")


@pytest.fixture
def revenue_account(account_service):
    """Credit-normal revenue account."""
    return account_service.create_account(name="Sales", code="4000", account_type="revenue")


@pytest.fixture
def make_request():
    """Build a PostEntryRequest from (account_id, direction, amount, currency) tuples."""

    def _make(*lines, **kwargs):
        return PostEntryRequest(
            lines=[
                {"account_id": account_id, "direction": direction, "amount": amount, "currency": currency}
                for account_id, direction, amount, currency in lines
            ],
            **kwargs,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

