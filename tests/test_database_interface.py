"""Tests for the SQLAlchemy ledger store."""

import pytest
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from ledgercore.database.base import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, normalize_page_size
from ledgercore.database.models import Base
from ledgercore.domain import entities
from ledgercore.domain.entities import Direction, EntryReference, NewEntry, NormalizedLine
from ledgercore.domain.errors import ConflictError, NotFoundError, StorageError


def new_line(account_id, direction=Direction.DEBIT, amount="10", currency="USD"):
    return NormalizedLine(
        account_id=account_id, direction=direction, amount=Decimal(amount), currency=currency
    )


def new_entry(**kwargs):
    kwargs.setdefault("occurred_at", datetime.now(UTC))
    return NewEntry(**kwargs)


class TestAccounts:
    """Tests for account storage."""

    def test_create_account_returns_domain_model(self, temp_db):
        account = temp_db.create_account(name="Cash", code="1000", metadata={"bank": "x"})
        assert isinstance(account, entities.Account)
        assert account.name == "Cash"
        assert account.currency == "USD"
        assert account.normal_side is Direction.DEBIT
        assert account.is_active
        assert account.metadata == {"bank": "x"}
        assert account.created_at.tzinfo is not None

    def test_get_account(self, temp_db):
        created = temp_db.create_account(name="Cash")
        assert temp_db.get_account(created.id) == created

    def test_get_missing_account(self, temp_db):
        assert temp_db.get_account("does-not-exist") is None

    def test_duplicate_code_conflicts(self, temp_db):
        temp_db.create_account(name="Cash", code="1000")
        with pytest.raises(ConflictError, match="'1000' already exists"):
            temp_db.create_account(name="Other cash", code="1000")

    def test_accounts_without_code_do_not_conflict(self, temp_db):
        temp_db.create_account(name="A")
        temp_db.create_account(name="B")
        assert len(temp_db.list_accounts()) == 2

    def test_get_account_by_code(self, temp_db):
        created = temp_db.create_account(name="Cash", code="1000")
        assert temp_db.get_account_by_code("1000").id == created.id
        assert temp_db.get_account_by_code("9999") is None

    def test_list_accounts_active_filter(self, temp_db):
        active = temp_db.create_account(name="Active")
        inactive = temp_db.create_account(name="Inactive")
        temp_db.set_account_active(inactive.id, False)

        assert [a.id for a in temp_db.list_accounts()] == [active.id]
        assert {a.id for a in temp_db.list_accounts(active_only=False)} == {active.id, inactive.id}

    def test_list_accounts_owner_filter(self, temp_db):
        mine = temp_db.create_account(name="Mine", owner_user_id="user-1")
        temp_db.create_account(name="Group", owner_group_id="group-1")
        assert [a.id for a in temp_db.list_accounts(owner_user_id="user-1")] == [mine.id]

    def test_set_account_active_missing(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.set_account_active("missing", False)


class TestEntryTransactions:
    """Tests for transactional entry writes."""

    def test_commit_makes_entry_visible(self, temp_db):
        account = temp_db.create_account(name="Cash")
        tx = temp_db.begin_entry_transaction()
        entry_id = temp_db.insert_entry(
            tx,
            new_entry(
                description="Sale",
                reference=EntryReference(type="order", id="o-1"),
                metadata={"k": "v"},
            ),
        )
        temp_db.insert_line(tx, entry_id, new_line(account.id, Direction.DEBIT))
        temp_db.insert_line(tx, entry_id, new_line(account.id, Direction.CREDIT))
        temp_db.commit(tx)

        entry = temp_db.get_entry(entry_id)
        assert entry.description == "Sale"
        assert entry.reference == EntryReference(type="order", id="o-1")
        assert entry.metadata == {"k": "v"}
        lines = temp_db.get_entry_lines(entry_id)
        assert [line.direction for line in lines] == [Direction.DEBIT, Direction.CREDIT]
        assert not tx.is_open

    def test_uncommitted_writes_visible_only_inside_transaction(self, temp_db):
        account = temp_db.create_account(name="Cash")
        tx = temp_db.begin_entry_transaction()
        entry_id = temp_db.insert_entry(tx, new_entry())
        temp_db.insert_line(tx, entry_id, new_line(account.id))

        assert temp_db.get_entry_in_transaction(tx, entry_id) is not None
        assert temp_db.get_entry(entry_id) is None

        temp_db.rollback(tx)

    def test_rollback_discards_partial_entry(self, temp_db):
        """Test that an entry interrupted after some lines leaves nothing behind."""
        account = temp_db.create_account(name="Cash")
        tx = temp_db.begin_entry_transaction()
        entry_id = temp_db.insert_entry(tx, new_entry())
        temp_db.insert_line(tx, entry_id, new_line(account.id))
        temp_db.rollback(tx)

        assert temp_db.get_entry(entry_id) is None
        assert temp_db.get_entry_lines(entry_id) == []
        assert temp_db.list_account_lines(account.id) == []
        assert not tx.is_open

    def test_context_manager_rolls_back_on_exception(self, temp_db):
        account = temp_db.create_account(name="Cash")
        with pytest.raises(RuntimeError, match="crash"):
            with temp_db.begin_entry_transaction() as tx:
                entry_id = temp_db.insert_entry(tx, new_entry())
                temp_db.insert_line(tx, entry_id, new_line(account.id))
                raise RuntimeError("crash before commit")

        assert not tx.is_open
        assert temp_db.get_entry(entry_id) is None

    def test_context_manager_rolls_back_when_abandoned(self, temp_db):
        """Test that leaving the block without commit discards the writes."""
        with temp_db.begin_entry_transaction() as tx:
            entry_id = temp_db.insert_entry(tx, new_entry())

        assert not tx.is_open
        assert temp_db.get_entry(entry_id) is None

    def test_insert_line_unknown_account(self, temp_db):
        with temp_db.begin_entry_transaction() as tx:
            entry_id = temp_db.insert_entry(tx, new_entry())
            with pytest.raises(NotFoundError) as exc_info:
                temp_db.insert_line(tx, entry_id, new_line("no-such-account"))
        assert exc_info.value.details["account_id"] == "no-such-account"

    def test_insert_line_constraint_failure_is_storage_error(self, temp_db):
        """Test that a non-foreign-key integrity failure is not reported as a missing account."""
        account = temp_db.create_account(name="Cash")
        with temp_db.begin_entry_transaction() as tx:
            entry_id = temp_db.insert_entry(tx, new_entry())
            with pytest.raises(StorageError, match="Could not insert ledger line") as exc_info:
                temp_db.insert_line(tx, entry_id, new_line(account.id, amount="-5"))
        assert not isinstance(exc_info.value, NotFoundError)
        assert temp_db.list_account_lines(account.id) == []

    def test_closed_transaction_rejected(self, temp_db):
        tx = temp_db.begin_entry_transaction()
        temp_db.rollback(tx)
        with pytest.raises(StorageError, match="closed"):
            temp_db.insert_entry(tx, new_entry())
        with pytest.raises(StorageError, match="closed"):
            temp_db.commit(tx)

    def test_rollback_twice_is_noop(self, temp_db):
        tx = temp_db.begin_entry_transaction()
        temp_db.rollback(tx)
        temp_db.rollback(tx)
        assert not tx.is_open

    def test_duplicate_idempotency_key_conflicts(self, temp_db):
        with temp_db.begin_entry_transaction() as tx:
            temp_db.insert_entry(tx, new_entry(idempotency_key="k-1"))
            temp_db.commit(tx)

        with temp_db.begin_entry_transaction() as tx:
            with pytest.raises(ConflictError, match="k-1"):
                temp_db.insert_entry(tx, new_entry(idempotency_key="k-1"))

    def test_lock_account(self, temp_db):
        account = temp_db.create_account(name="Cash")
        with temp_db.begin_entry_transaction() as tx:
            assert temp_db.lock_account(tx, account.id).id == account.id
            with pytest.raises(NotFoundError):
                temp_db.lock_account(tx, "missing")

    def test_amount_round_trips_full_precision(self, temp_db):
        account = temp_db.create_account(name="Cash")
        amount = "123456789012345678.123456789012345678"
        with temp_db.begin_entry_transaction() as tx:
            entry_id = temp_db.insert_entry(tx, new_entry())
            temp_db.insert_line(tx, entry_id, new_line(account.id, amount=amount))
            temp_db.commit(tx)

        assert temp_db.get_entry_lines(entry_id)[0].amount == Decimal(amount)


class TestReads:
    """Tests for entry listing and account lines."""

    def post(self, temp_db, occurred_at, account_id=None, idempotency_key=None):
        with temp_db.begin_entry_transaction() as tx:
            entry_id = temp_db.insert_entry(
                tx, new_entry(occurred_at=occurred_at, idempotency_key=idempotency_key)
            )
            if account_id is not None:
                temp_db.insert_line(tx, entry_id, new_line(account_id))
            temp_db.commit(tx)
        return entry_id

    def test_list_entries_newest_first(self, temp_db):
        base = datetime(2024, 1, 1, tzinfo=UTC)
        older = self.post(temp_db, base)
        newer = self.post(temp_db, base + timedelta(days=1))
        assert [e.id for e in temp_db.list_entries()] == [newer, older]

    def test_list_entries_limit(self, temp_db):
        base = datetime(2024, 1, 1, tzinfo=UTC)
        for i in range(5):
            self.post(temp_db, base + timedelta(hours=i))
        assert len(temp_db.list_entries(limit=3)) == 3

    def test_get_entry_by_idempotency_key(self, temp_db):
        entry_id = self.post(temp_db, datetime.now(UTC), idempotency_key="order-7")
        assert temp_db.get_entry_by_idempotency_key("order-7").id == entry_id
        assert temp_db.get_entry_by_idempotency_key("order-8") is None

    def test_occurred_at_round_trips_as_utc(self, temp_db):
        occurred = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
        entry_id = self.post(temp_db, occurred)
        assert temp_db.get_entry(entry_id).occurred_at == occurred

    def test_list_account_lines_as_of(self, temp_db):
        account = temp_db.create_account(name="Cash")
        early = self.post(temp_db, datetime(2024, 1, 10, tzinfo=UTC), account.id)
        self.post(temp_db, datetime(2024, 2, 10, tzinfo=UTC), account.id)

        assert len(temp_db.list_account_lines(account.id)) == 2
        bounded = temp_db.list_account_lines(account.id, as_of=datetime(2024, 1, 31, tzinfo=UTC))
        assert [line.entry_id for line in bounded] == [early]


class TestSchema:
    """Tests for schema creation."""

    def test_initialize_schema_is_repeatable(self, temp_db):
        temp_db.initialize_schema()
        assert temp_db.list_entries() == []

    def test_schema_failure_is_storage_error(self, temp_db, monkeypatch):
        def failing_create_all(bind):
            raise OperationalError("CREATE TABLE accounts", {}, Exception("disk full"))

        monkeypatch.setattr(Base.metadata, "create_all", failing_create_all)

        with pytest.raises(StorageError, match="Could not create schema"):
            temp_db.initialize_schema()


class TestPageSize:
    """Tests for page size normalization."""

    @pytest.mark.parametrize("limit", [None, 0, -3])
    def test_default(self, limit):
        assert normalize_page_size(limit) == DEFAULT_PAGE_SIZE

    def test_cap(self):
        assert normalize_page_size(10_000) == MAX_PAGE_SIZE

    def test_passthrough(self):
        assert normalize_page_size(7) == 7
