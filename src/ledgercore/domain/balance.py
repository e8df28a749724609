"""Balance invariant checking for candidate entries."""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
from typing import Any

from ledgercore.domain.amount import LEDGER_CONTEXT, format_decimal
from ledgercore.domain.entities import Direction, NormalizedLine
from ledgercore.domain.errors import ValidationError

MIN_LINES = 2


class CurrencyPolicy(str, Enum):
    """How an entry may mix currencies."""

    PER_CURRENCY = "per_currency"
    SINGLE_CURRENCY = "single_currency"


@dataclass(frozen=True)
class CurrencyTotals:
    """Debit and credit sums for one currency within an entry."""

    currency: str
    debit: Decimal
    credit: Decimal

    @property
    def balanced(self) -> bool:
        return self.debit == self.credit

    def to_dict(self) -> dict[str, str]:
        return {"debit": format_decimal(self.debit), "credit": format_decimal(self.credit)}


def totals_by_currency(lines: Sequence[NormalizedLine]) -> dict[str, CurrencyTotals]:
    """Sum debits and credits per currency, preserving first-seen order."""
    sums: dict[str, dict[Direction, Decimal]] = {}
    with localcontext(LEDGER_CONTEXT):
        for line in lines:
            bucket = sums.setdefault(
                line.currency, {Direction.DEBIT: Decimal(0), Direction.CREDIT: Decimal(0)}
            )
            bucket[line.direction] += line.amount

    return {
        currency: CurrencyTotals(
            currency=currency,
            debit=bucket[Direction.DEBIT],
            credit=bucket[Direction.CREDIT],
        )
        for currency, bucket in sums.items()
    }


def _totals_payload(totals: dict[str, CurrencyTotals]) -> dict[str, Any]:
    return {
        "totals_by_currency": {currency: t.to_dict() for currency, t in totals.items()}
    }


def check_balance(
    lines: Sequence[NormalizedLine],
    policy: CurrencyPolicy = CurrencyPolicy.PER_CURRENCY,
) -> dict[str, CurrencyTotals]:
    """Verify that an entry nets to zero in every currency it touches.

    Args:
        lines: Normalized lines of the candidate entry
        policy: Whether several currencies may appear in one entry

    Returns:
        Per-currency totals of the balanced entry

    Raises:
        ValidationError: If there are fewer than two lines, the currency
            policy is violated, or any currency's debits differ from its
            credits. Balance failures carry ``totals_by_currency`` in
            ``details``.
    """
    if len(lines) < MIN_LINES:
        raise ValidationError(
            "entry requires at least two lines", {"line_count": len(lines)}
        )

    totals = totals_by_currency(lines)

    if policy is CurrencyPolicy.SINGLE_CURRENCY and len(totals) > 1:
        raise ValidationError(
            "all lines must use the same currency",
            {"currencies": list(totals), **_totals_payload(totals)},
        )

    if not all(t.balanced for t in totals.values()):
        raise ValidationError("debits and credits must balance", _totals_payload(totals))

    return totals
