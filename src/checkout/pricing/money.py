"""Fixed-point money helpers.

Amounts are carried as integer cents everywhere inside the domain. Conversion
to and from decimal dollars happens only at the edges, in command input and
HTTP payloads.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_cents(amount) -> int:
    """Convert a dollar amount (str, int, float or Decimal) to integer cents.

    Floats go through ``str`` first so ``0.1`` becomes 10 cents rather than
    a binary approximation of it.
    """
    if amount is None:
        return 0
    if isinstance(amount, float):
        amount = str(amount)
    value = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(value * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a two-decimal Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def to_wire(cents: int) -> float:
    """Render cents as a two-decimal float for JSON payloads."""
    return float(from_cents(cents))


def percent_of(cents: int, rate: Decimal) -> int:
    """Return ``rate`` x ``cents`` rounded half-up to the nearest cent."""
    return int((Decimal(cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
