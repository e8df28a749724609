"""Fixed-precision monetary amounts.

All ledger arithmetic goes through :class:`decimal.Decimal` quantized to
``SCALE`` fractional digits. Binary floats never reach storage or
comparison.
"""

from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_EVEN, localcontext

SCALE = 18
INTEGER_DIGITS = 18
QUANTUM = Decimal(1).scaleb(-SCALE)
MAX_ABS_VALUE = Decimal(10) ** INTEGER_DIGITS

# Wide enough that quantizing a NUMERIC(36, 18) value, or summing a large
# number of them, never rounds.
LEDGER_CONTEXT = Context(prec=60, rounding=ROUND_HALF_EVEN)


def quantize(value: Decimal) -> Decimal:
    """Quantize a decimal to the ledger's fixed precision."""
    with localcontext(LEDGER_CONTEXT):
        return value.quantize(QUANTUM)


def format_decimal(value: Decimal) -> str:
    """Render a decimal as a plain string with trailing zeros trimmed."""
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass(frozen=True)
class Amount:
    """Currency-tagged fixed-point amount."""

    value: Decimal
    currency: str

    def __post_init__(self):
        object.__setattr__(self, "value", quantize(Decimal(self.value)))
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def of(cls, value: Decimal | int | str, currency: str) -> "Amount":
        """Build an amount from a Decimal, int or decimal string."""
        if isinstance(value, (bool, float)):
            raise TypeError(f"Amount requires Decimal, int or str, got {type(value).__name__}")
        return cls(Decimal(value), currency)

    @classmethod
    def zero(cls, currency: str) -> "Amount":
        return cls(Decimal(0), currency)

    def _check_currency(self, other: "Amount") -> None:
        if not isinstance(other, Amount):
            raise TypeError(f"Cannot combine Amount with {type(other).__name__}")
        if other.currency != self.currency:
            raise ValueError(f"Currency mismatch: {self.currency} vs {other.currency}")

    def __add__(self, other: "Amount") -> "Amount":
        self._check_currency(other)
        with localcontext(LEDGER_CONTEXT):
            return Amount(self.value + other.value, self.currency)

    def __sub__(self, other: "Amount") -> "Amount":
        self._check_currency(other)
        with localcontext(LEDGER_CONTEXT):
            return Amount(self.value - other.value, self.currency)

    def __neg__(self) -> "Amount":
        return Amount(-self.value, self.currency)

    def __lt__(self, other: "Amount") -> bool:
        self._check_currency(other)
        return self.value < other.value

    def __le__(self, other: "Amount") -> bool:
        self._check_currency(other)
        return self.value <= other.value

    def __gt__(self, other: "Amount") -> bool:
        self._check_currency(other)
        return self.value > other.value

    def __ge__(self, other: "Amount") -> bool:
        self._check_currency(other)
        return self.value >= other.value

    def is_zero(self) -> bool:
        return self.value == 0

    def to_string(self) -> str:
        return format_decimal(self.value)

    def __str__(self) -> str:
        return f"{self.to_string()} {self.currency}"
