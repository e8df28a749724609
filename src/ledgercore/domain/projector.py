"""Balance projection (read path)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, localcontext
from typing import TYPE_CHECKING, Optional

from ledgercore.domain.amount import LEDGER_CONTEXT, Amount
from ledgercore.domain.entities import Account, Direction
from ledgercore.domain.errors import NotFoundError, account_not_found

if TYPE_CHECKING:
    from ledgercore.database.base import LedgerStore


class BalanceProjector:
    """Derives account balances from their immutable lines.

    Balances are recomputed from scratch on every call and are signed by
    the account's normal side: a debit-normal account's balance is debits
    minus credits, a credit-normal account's is credits minus debits.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def _get_account(self, account_id: str) -> Account:
        account = self.store.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id), {"account_id": account_id})
        return account

    def compute_balances(
        self, account_id: str, as_of: Optional[datetime] = None
    ) -> dict[str, Amount]:
        """Compute the signed balance of an account in every currency it holds.

        Args:
            account_id: Account ID
            as_of: Optional inclusive upper bound on entry occurrence time
                (naive datetimes are UTC)

        Returns:
            Mapping of currency to signed amount

        Raises:
            NotFoundError: If the account does not exist
        """
        return self._balances_for(self._get_account(account_id), as_of)

    def _balances_for(self, account: Account, as_of: Optional[datetime]) -> dict[str, Amount]:
        sign = 1 if account.normal_side is Direction.DEBIT else -1

        sums: dict[str, Decimal] = {}
        with localcontext(LEDGER_CONTEXT):
            for line in self.store.list_account_lines(account.id, as_of=as_of):
                delta = line.amount if line.direction is Direction.DEBIT else -line.amount
                sums[line.currency] = sums.get(line.currency, Decimal(0)) + sign * delta

        return {currency: Amount(value, currency) for currency, value in sums.items()}

    def compute_balance(
        self,
        account_id: str,
        as_of: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> Amount:
        """Compute the signed balance of an account in one currency.

        Args:
            account_id: Account ID
            as_of: Optional inclusive upper bound on entry occurrence time
            currency: Currency to report; defaults to the account's currency

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self._get_account(account_id)
        currency = (currency or account.currency).upper()
        balances = self._balances_for(account, as_of)
        return balances.get(currency, Amount.zero(currency))
