"""Read-side DTOs for already-placed commercial orders."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pricing_kernel.domain.values import to_decimal


@dataclass(frozen=True)
class LedgerOrderLine:
    """
    One line of a placed commercial order, as stored.

    Amounts are per unit except ``total_tax``, which covers the whole line.
    """

    line_ref: str
    order_ref: str
    unit_price: Decimal
    discounted_unit_price: Decimal
    quantity: int
    total_tax: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))
        object.__setattr__(self, "discounted_unit_price", to_decimal(self.discounted_unit_price))
        object.__setattr__(self, "total_tax", to_decimal(self.total_tax))


@dataclass(frozen=True)
class LedgerOrder:
    """Totals of a placed commercial order."""

    order_ref: str
    total: Decimal
    outstanding: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", to_decimal(self.total))
        object.__setattr__(self, "outstanding", to_decimal(self.outstanding))
