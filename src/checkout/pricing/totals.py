"""Totals aggregation across priced line items.

``compute_totals`` is pure and deterministic: it sums integer cents, so
adding many small fee and tax amounts never accumulates floating-point drift.
Rounding to two decimals happens only when amounts leave the domain.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from checkout.pricing.money import from_cents


class PricedItem(Protocol):
    base_cents: int
    fees_cents: int
    taxes_cents: int
    discounts_cents: int


def line_total_cents(base: int, fees: int, taxes: int, discounts: int) -> int:
    """Derived line total; discounts subtract."""
    return base + fees + taxes - discounts


@dataclass(frozen=True)
class TotalsBreakdown:
    """Sum of every line item's price components, in cents."""

    subtotal: int = 0
    fees: int = 0
    taxes: int = 0
    discounts: int = 0
    total: int = 0

    def __post_init__(self) -> None:
        if self.total != self.subtotal + self.fees + self.taxes - self.discounts:
            raise ValueError("Totals breakdown does not balance")

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_TOTALS

    def as_dollars(self) -> dict[str, Decimal]:
        return {
            "subtotal": from_cents(self.subtotal),
            "fees": from_cents(self.fees),
            "taxes": from_cents(self.taxes),
            "discounts": from_cents(self.discounts),
            "total": from_cents(self.total),
        }


EMPTY_TOTALS = TotalsBreakdown()


def compute_totals(items: Iterable[PricedItem]) -> TotalsBreakdown:
    """Aggregate line items into a single totals breakdown.

    An empty iterable yields the all-zero breakdown.
    """
    subtotal = fees = taxes = discounts = 0
    for item in items:
        subtotal += item.base_cents
        fees += item.fees_cents
        taxes += item.taxes_cents
        discounts += item.discounts_cents

    return TotalsBreakdown(
        subtotal=subtotal,
        fees=fees,
        taxes=taxes,
        discounts=discounts,
        total=line_total_cents(subtotal, fees, taxes, discounts),
    )
