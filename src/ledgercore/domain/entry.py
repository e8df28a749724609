"""Ledger entry domain service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ledgercore.domain.entities import EntryReference, LedgerEntry, PostedEntry
from ledgercore.domain.errors import NotFoundError, entry_not_found
from ledgercore.domain.posting import EntryPoster, PostEntryRequest

if TYPE_CHECKING:
    from ledgercore.database.base import LedgerStore

logger = logging.getLogger(__name__)

REVERSAL_REFERENCE_TYPE = "reversal"


def reversal_idempotency_key(entry_id: str) -> str:
    """Idempotency key that limits an entry to a single reversal."""
    return f"{REVERSAL_REFERENCE_TYPE}:{entry_id}"


class EntryService:
    """Service for reading entries and posting compensating entries.

    Committed entries are immutable; corrections are new entries.
    """

    def __init__(self, store: LedgerStore, poster: Optional[EntryPoster] = None):
        """Initialize entry service.

        Args:
            store: Ledger store
            poster: Poster used for compensating entries (defaults to one
                over ``store``)
        """
        self.store = store
        self.poster = poster or EntryPoster(store)

    def get_entry(self, entry_id: str) -> PostedEntry:
        """Get a committed entry with its lines.

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = self.store.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id), {"entry_id": entry_id})
        return PostedEntry(entry=entry, lines=tuple(self.store.get_entry_lines(entry_id)))

    def list_entries(self, limit: Optional[int] = None) -> list[LedgerEntry]:
        """List entry headers, most recent first.

        Args:
            limit: Page size; missing or non-positive means 50, capped at 200
        """
        return self.store.list_entries(limit=limit)

    def reverse_entry(self, entry_id: str, description: Optional[str] = None) -> PostedEntry:
        """Post a compensating entry that undoes ``entry_id``.

        Every line is re-posted with its direction flipped. Reversing the
        same entry twice returns the first reversal.

        Raises:
            NotFoundError: If the entry does not exist
        """
        original = self.get_entry(entry_id)
        lines = [
            {
                "account_id": line.account_id,
                "direction": line.direction.opposite.value,
                "amount": line.amount,
                "currency": line.currency,
                "metadata": dict(line.metadata),
            }
            for line in original.lines
        ]
        request = PostEntryRequest(
            lines=lines,
            description=description or f"Reversal of {entry_id}",
            reference=EntryReference(type=REVERSAL_REFERENCE_TYPE, id=entry_id),
            metadata={"reversed_entry_id": entry_id},
            idempotency_key=reversal_idempotency_key(entry_id),
        )
        posted = self.poster.post(request)
        logger.info("Entry %s reversed by %s", entry_id, posted.entry.id)
        return posted
