"""Domain layer for ledgercore."""

from ledgercore.domain.account import AccountService
from ledgercore.domain.balance import CurrencyPolicy, check_balance
from ledgercore.domain.entry import EntryService
from ledgercore.domain.normalizer import normalize_line
from ledgercore.domain.posting import EntryPoster, PostEntryRequest, PostingState
from ledgercore.domain.projector import BalanceProjector

__all__ = [
    "AccountService",
    "BalanceProjector",
    "CurrencyPolicy",
    "EntryPoster",
    "EntryService",
    "PostEntryRequest",
    "PostingState",
    "check_balance",
    "normalize_line",
]
