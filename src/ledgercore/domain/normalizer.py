"""Line normalization.

Turns a raw proposed line (already-parsed structured input) into a
:class:`NormalizedLine`, or raises :class:`ValidationError`. Account
existence is not checked here; the store enforces it at insert time.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from ledgercore.domain.amount import MAX_ABS_VALUE, quantize
from ledgercore.domain.entities import Direction, NormalizedLine
from ledgercore.domain.errors import ValidationError
from ledgercore.utils.amount_parser import parse_amount


def _require_text(raw: Mapping, field: str) -> str:
    value = raw.get(field)
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required", {"field": field})
    return str(value).strip()


def normalize_direction(value: Any) -> Direction:
    """Map a case-insensitive direction token to :class:`Direction`."""
    if isinstance(value, Direction):
        return value
    if value is None or not str(value).strip():
        raise ValidationError("direction is required", {"field": "direction"})
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "invalid direction", {"field": "direction", "value": str(value)}
        ) from None


def normalize_amount(value: Any) -> Decimal:
    """Parse and quantize a strictly positive amount."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("amount is required", {"field": "amount"})
    if isinstance(value, bool):
        raise ValidationError("amount must be a number", {"field": "amount"})

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # Shortest repr round-trips, so 0.1 becomes Decimal("0.1").
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = parse_amount(value)
        except ValueError:
            raise ValidationError(
                "amount must be a number", {"field": "amount", "value": value}
            ) from None
    else:
        raise ValidationError("amount must be a number", {"field": "amount"})

    if not amount.is_finite():
        raise ValidationError("amount must be a finite number", {"field": "amount"})

    if amount >= MAX_ABS_VALUE:
        raise ValidationError(
            "amount exceeds maximum precision", {"field": "amount", "value": str(value)}
        )

    # Quantize before the sign check so sub-precision dust counts as zero.
    if amount > 0:
        amount = quantize(amount)
    if amount <= 0:
        raise ValidationError(
            "amount must be positive", {"field": "amount", "value": str(value)}
        )
    return amount


def normalize_line(raw: Mapping) -> NormalizedLine:
    """Validate and canonicalize a single proposed line.

    Args:
        raw: Mapping with account_id, direction, amount, currency and
            optional metadata

    Returns:
        Normalized line

    Raises:
        ValidationError: If any field is missing or malformed
    """
    if not isinstance(raw, Mapping):
        raise ValidationError("line must be an object")

    account_id = _require_text(raw, "account_id")
    direction = normalize_direction(raw.get("direction"))
    amount = normalize_amount(raw.get("amount"))
    currency = _require_text(raw, "currency").upper()

    metadata = raw.get("metadata")
    if metadata is None:
        metadata = {}
    elif not isinstance(metadata, Mapping):
        raise ValidationError("metadata must be an object", {"field": "metadata"})

    return NormalizedLine(
        account_id=account_id,
        direction=direction,
        amount=amount,
        currency=currency,
        metadata=dict(metadata),
    )
