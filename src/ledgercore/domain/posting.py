"""Atomic posting of ledger entries.

A posting attempt moves through a small state machine::

    VALIDATING -> POSTING -> COMMITTED
    VALIDATING -> REJECTED
    POSTING    -> ABORTED

Validation never touches the store. Once posting starts, every exit path
(success, store error, missing account, interruption) either commits the
whole entry or rolls the whole entry back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from dateutil import parser as date_parser

from ledgercore.domain.balance import CurrencyPolicy, check_balance
from ledgercore.domain.entities import (
    EntryReference,
    LedgerLine,
    NewEntry,
    NormalizedLine,
    PostedEntry,
)
from ledgercore.domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    PostingFailedError,
    StorageError,
    ValidationError,
)
from ledgercore.domain.normalizer import normalize_line

if TYPE_CHECKING:
    from ledgercore.database.base import LedgerStore

logger = logging.getLogger(__name__)


class PostingState(str, Enum):
    """Posting attempt state.

    Transitions:
    - VALIDATING -> POSTING: every line normalized and the entry balances
    - VALIDATING -> REJECTED: a line or the balance check failed
    - POSTING -> COMMITTED: the store transaction committed
    - POSTING -> ABORTED: an insert or the commit failed and was rolled back
    """

    VALIDATING = "validating"
    POSTING = "posting"
    COMMITTED = "committed"
    REJECTED = "rejected"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (PostingState.COMMITTED, PostingState.REJECTED, PostingState.ABORTED)


POSTING_TRANSITIONS: dict[PostingState, set[PostingState]] = {
    PostingState.VALIDATING: {PostingState.POSTING, PostingState.REJECTED},
    PostingState.POSTING: {PostingState.COMMITTED, PostingState.ABORTED},
    PostingState.COMMITTED: set(),
    PostingState.REJECTED: set(),
    PostingState.ABORTED: set(),
}


class PostingStateError(Exception):
    """Illegal posting state transition."""


@dataclass
class PostingAttempt:
    """Tracks the state history of a single posting attempt."""

    state: PostingState = PostingState.VALIDATING
    history: list[PostingState] = field(default_factory=lambda: [PostingState.VALIDATING])

    def transition(self, target: PostingState) -> None:
        if target not in POSTING_TRANSITIONS[self.state]:
            raise PostingStateError(f"Cannot move posting from {self.state.value} to {target.value}")
        logger.debug("Posting %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)


def _parse_occurred_at(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date_parser.isoparse(value.strip())
        except ValueError:
            pass
    raise ValidationError("occurred_at must be an ISO-8601 timestamp", {"field": "occurred_at"})


def _optional_text(payload: Mapping, field_name: str) -> Optional[str]:
    value = payload.get(field_name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", {"field": field_name})
    return value


def _parse_reference(payload: Mapping) -> Optional[EntryReference]:
    raw = payload.get("reference")
    if raw is None:
        # Flat reference_type/reference_id fields are accepted as well
        ref_type = _optional_text(payload, "reference_type")
        ref_id = _optional_text(payload, "reference_id")
        if ref_type is None and ref_id is None:
            return None
        raw = {"type": ref_type, "id": ref_id}
    if not isinstance(raw, Mapping):
        raise ValidationError("reference must be an object", {"field": "reference"})

    ref_type, ref_id = raw.get("type"), raw.get("id")
    if not isinstance(ref_type, str) or not ref_type.strip():
        raise ValidationError("reference.type is required", {"field": "reference.type"})
    if ref_id is None or not str(ref_id).strip():
        raise ValidationError("reference.id is required", {"field": "reference.id"})
    return EntryReference(type=ref_type.strip(), id=str(ref_id).strip())


@dataclass(frozen=True)
class PostEntryRequest:
    """Candidate entry as submitted by a caller."""

    lines: Sequence[Any]
    description: Optional[str] = None
    reference: Optional[EntryReference] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    occurred_at: Optional[datetime] = None
    idempotency_key: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PostEntryRequest":
        """Build a request from an already-parsed ``PostEntry`` document.

        Raises:
            ValidationError: If the document's shape is wrong
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("entry must be an object")

        lines = payload.get("lines")
        if not isinstance(lines, (list, tuple)):
            raise ValidationError("lines must be a list", {"field": "lines"})

        metadata = payload.get("metadata")
        if metadata is None:
            metadata = {}
        elif not isinstance(metadata, Mapping):
            raise ValidationError("metadata must be an object", {"field": "metadata"})

        return cls(
            lines=list(lines),
            description=_optional_text(payload, "description"),
            reference=_parse_reference(payload),
            metadata=dict(metadata),
            occurred_at=_parse_occurred_at(payload.get("occurred_at")),
            idempotency_key=_optional_text(payload, "idempotency_key"),
        )


def _line_signature(lines: Sequence[NormalizedLine | LedgerLine]) -> list[tuple]:
    return [(line.account_id, line.direction, line.amount, line.currency) for line in lines]


class EntryPoster:
    """Validates candidate entries and commits them atomically."""

    def __init__(self, store: LedgerStore, policy: CurrencyPolicy = CurrencyPolicy.PER_CURRENCY):
        """Initialize entry poster.

        Args:
            store: Ledger store the entries are written to
            policy: Currency policy applied by the balance check
        """
        self.store = store
        self.policy = policy

    def validate(self, request: PostEntryRequest) -> list[NormalizedLine]:
        """Normalize every line and check the balance invariant.

        Raises:
            ValidationError: With the offending line index in ``details``
                for line errors, or the per-currency totals for balance
                errors
        """
        normalized = []
        for index, raw in enumerate(request.lines):
            try:
                normalized.append(normalize_line(raw))
            except ValidationError as e:
                raise ValidationError(e.message, {**e.details, "line": index}) from e
        check_balance(normalized, self.policy)
        return normalized

    def post(self, request: PostEntryRequest) -> PostedEntry:
        """Post an entry.

        Args:
            request: Candidate entry

        Returns:
            The committed entry header and its persisted lines

        Raises:
            ValidationError: Input was malformed or unbalanced; nothing was written
            NotFoundError: A line referenced an unknown account; rolled back
            ConflictError: The idempotency key is already taken by an entry with
                different lines
            PostingFailedError: Storage failed mid-posting; rolled back, safe to retry
        """
        attempt = PostingAttempt()

        try:
            lines = self.validate(request)
        except ValidationError as e:
            attempt.transition(PostingState.REJECTED)
            e.state = attempt.state
            logger.info("Rejected ledger entry: %s %s", e.message, e.details)
            raise

        if request.idempotency_key is not None:
            existing = self.store.get_entry_by_idempotency_key(request.idempotency_key)
            if existing is not None:
                logger.info(
                    "Idempotency key %s already posted as entry %s",
                    request.idempotency_key,
                    existing.id,
                )
                try:
                    return self._replay(request.idempotency_key, existing.id, lines)
                except ConflictError as e:
                    attempt.transition(PostingState.REJECTED)
                    e.state = attempt.state
                    raise

        attempt.transition(PostingState.POSTING)
        header = NewEntry(
            occurred_at=request.occurred_at or datetime.now(UTC),
            description=request.description,
            reference=request.reference,
            metadata=dict(request.metadata),
            idempotency_key=request.idempotency_key,
        )

        try:
            posted = self._write(header, lines)
        except ConflictError as e:
            attempt.transition(PostingState.ABORTED)
            winner = self.store.get_entry_by_idempotency_key(request.idempotency_key or "")
            if winner is None:
                e.state = attempt.state
                raise
            logger.info(
                "Concurrent posting with idempotency key %s resolved to entry %s",
                request.idempotency_key,
                winner.id,
            )
            try:
                return self._replay(winner.idempotency_key, winner.id, lines)
            except ConflictError as conflict:
                conflict.state = attempt.state
                raise
        except NotFoundError as e:
            attempt.transition(PostingState.ABORTED)
            e.state = attempt.state
            logger.warning("Aborted ledger entry: %s", e.message)
            raise
        except Exception as e:
            attempt.transition(PostingState.ABORTED)
            logger.error("Aborted ledger entry after storage failure: %s", e)
            error = PostingFailedError(
                f"Posting failed and was rolled back: {e}",
                {"cause": type(e).__name__},
            )
            error.state = attempt.state
            raise error from e

        attempt.transition(PostingState.COMMITTED)
        logger.info(
            "Committed ledger entry %s with %d lines", posted.entry.id, len(posted.lines)
        )
        return posted

    def _write(self, header: NewEntry, lines: Sequence[NormalizedLine]) -> PostedEntry:
        persisted: list[LedgerLine] = []
        with self.store.begin_entry_transaction() as tx:
            entry_id = self.store.insert_entry(tx, header)
            for index, line in enumerate(lines):
                try:
                    persisted.append(self.store.insert_line(tx, entry_id, line))
                except DomainError as e:
                    e.details.setdefault("line", index)
                    raise
            entry = self.store.get_entry_in_transaction(tx, entry_id)
            if entry is None:
                raise StorageError(f"Entry {entry_id} vanished before commit")
            self.store.commit(tx)
        return PostedEntry(entry=entry, lines=tuple(persisted))

    def _replay(
        self, key: str, entry_id: str, lines: Sequence[NormalizedLine]
    ) -> PostedEntry:
        """Return the entry already stored under ``key`` if it carries the same lines.

        Raises:
            ConflictError: If the key was used for different lines
        """
        posted = self._load_posted(entry_id)
        if _line_signature(posted.lines) != _line_signature(lines):
            logger.warning(
                "Idempotency key %s reused with different lines than entry %s", key, entry_id
            )
            raise ConflictError(
                f"Idempotency key '{key}' was already used for a different entry",
                {"idempotency_key": key, "entry_id": entry_id},
            )
        return posted

    def _load_posted(self, entry_id: str) -> PostedEntry:
        entry = self.store.get_entry(entry_id)
        if entry is None:
            raise StorageError(f"Entry {entry_id} vanished after commit")
        return PostedEntry(entry=entry, lines=tuple(self.store.get_entry_lines(entry_id)))
