"""
PriceBreakdown -- the output of a work-order price calculation.

Responsibility:
    Holds order-level totals and per-entity prices, and combines the
    breakdowns produced by the ledger and quote branches.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - subtotal + tax == total
    - paid + outstanding == total
    - sum(displayed item prices) + sum(non-absorbed charge prices) == subtotal,
      equivalently sum(item prices) + sum(all charge prices) == subtotal.
      The only exception is an item clamped at zero because its absorbed
      charges exceed its line.
    - merge() never lets two breakdowns price the same entity.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from pricing_kernel.domain.values import Currency, Money
from pricing_kernel.exceptions import OverlappingBreakdownError


def _union(left: Mapping, right: Mapping) -> dict:
    overlap = set(left) & set(right)
    if overlap:
        raise OverlappingBreakdownError(sorted(str(key) for key in overlap))
    return {**left, **right}


@dataclass(frozen=True)
class PriceBreakdown:
    """Totals plus per-item and per-charge prices for one work order."""

    subtotal: Money
    tax: Money
    discount: Money
    total: Money
    paid: Money
    outstanding: Money
    item_prices: dict[UUID, Money] = field(default_factory=dict)
    hourly_charge_prices: dict[UUID, Money] = field(default_factory=dict)
    fixed_charge_prices: dict[UUID, Money] = field(default_factory=dict)
    # charge uuid -> uuid of the item whose displayed price includes it
    absorbed_charges: dict[UUID, UUID] = field(default_factory=dict)

    @classmethod
    def zero(cls, currency: Currency | str) -> PriceBreakdown:
        zero = Money.zero(currency)
        return cls(
            subtotal=zero,
            tax=zero,
            discount=zero,
            total=zero,
            paid=zero,
            outstanding=zero,
        )

    @property
    def currency(self) -> Currency:
        return self.total.currency

    @property
    def charge_prices(self) -> dict[UUID, Money]:
        return {**self.hourly_charge_prices, **self.fixed_charge_prices}

    def displayed_item_prices(self) -> dict[UUID, Money]:
        """Item prices with absorbed charges folded back in."""
        displayed = dict(self.item_prices)
        charge_prices = self.charge_prices
        for charge_uuid, item_uuid in self.absorbed_charges.items():
            displayed[item_uuid] = displayed[item_uuid] + charge_prices[charge_uuid]
        return displayed

    def non_absorbed_charge_prices(self) -> dict[UUID, Money]:
        return {
            uuid: price
            for uuid, price in self.charge_prices.items()
            if uuid not in self.absorbed_charges
        }

    def entity_total(self) -> Money:
        """Sum of every priced entity; equals ``subtotal`` when consistent."""
        total = Money.zero(self.currency)
        for price in self.displayed_item_prices().values():
            total = total + price
        for price in self.non_absorbed_charge_prices().values():
            total = total + price
        return total

    def merge(self, other: PriceBreakdown) -> PriceBreakdown:
        """Field-wise sum of two breakdowns over disjoint entity sets."""
        return PriceBreakdown(
            subtotal=self.subtotal + other.subtotal,
            tax=self.tax + other.tax,
            discount=self.discount + other.discount,
            total=self.total + other.total,
            paid=self.paid + other.paid,
            outstanding=self.outstanding + other.outstanding,
            item_prices=_union(self.item_prices, other.item_prices),
            hourly_charge_prices=_union(self.hourly_charge_prices, other.hourly_charge_prices),
            fixed_charge_prices=_union(self.fixed_charge_prices, other.fixed_charge_prices),
            absorbed_charges=_union(self.absorbed_charges, other.absorbed_charges),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form with string amounts."""

        def amount(money: Money) -> str:
            return str(money.round().amount)

        def prices(mapping: Mapping[UUID, Money]) -> dict[str, str]:
            return {str(uuid): amount(money) for uuid, money in mapping.items()}

        return {
            "currency": self.currency.code,
            "subtotal": amount(self.subtotal),
            "tax": amount(self.tax),
            "discount": amount(self.discount),
            "total": amount(self.total),
            "paid": amount(self.paid),
            "outstanding": amount(self.outstanding),
            "itemPrices": prices(self.item_prices),
            "hourlyChargePrices": prices(self.hourly_charge_prices),
            "fixedChargePrices": prices(self.fixed_charge_prices),
            "absorbedCharges": {
                str(charge): str(item) for charge, item in self.absorbed_charges.items()
            },
        }
