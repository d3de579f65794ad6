"""
Module: pricing_engines.decomposition
Responsibility:
    Split one priced commercial line (original and discounted totals) into
    prices for the items and charges it carries.  The same rule is used for
    freshly quoted lines and for placed ledger lines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Algorithm:
    1. discount_factor = discounted_total / original_total (1 when the
       original total is zero).
    2. Each charge on the line is priced at
       ceil(charge unit price x discount_factor).
    3. The rounded charge prices are subtracted from the discounted total;
       the remainder is clamped at zero and ceiling-rounded once.
    4. The remainder is counted down over the line's items by quantity; the
       last item receives exactly what is left.
    A line with no items prices its charges the same way except the last
    charge, which takes whatever the other charges leave of the line.

Invariants enforced:
    - Every price is rounded to the currency minor unit and non-negative.
    - item prices + charge prices == discounted total, unless the charges
      alone exceed the line (``clamped`` is then True).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

from pricing_engines.allocation import AllocationEngine, AllocationTarget
from pricing_kernel.domain.values import Money, safe_ratio
from pricing_kernel.domain.work_order import Charge, Item
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.decomposition")


@dataclass(frozen=True)
class LineDecomposition:
    """Prices of everything on one line."""

    item_prices: dict[UUID, Money] = field(default_factory=dict)
    charge_prices: dict[UUID, Money] = field(default_factory=dict)
    clamped: bool = False

    def total(self, currency) -> Money:
        return Money.sum(
            [*self.item_prices.values(), *self.charge_prices.values()],
            currency,
        )


def decompose_line(
    *,
    original_total: Money,
    discounted_total: Money,
    items: Sequence[Item],
    charges: Sequence[Charge],
    allocation_engine: AllocationEngine | None = None,
) -> LineDecomposition:
    """Price the items and charges sharing one line."""
    currency = discounted_total.currency
    zero = Money.zero(currency)
    factor = safe_ratio(discounted_total.amount, original_total.amount)

    charge_prices: dict[UUID, Money] = {}
    if not items and charges:
        *leading, last = charges
        for charge in leading:
            charge_prices[charge.uuid] = Money.max(
                (charge.unit_price(currency) * factor).ceil(), zero
            )
        rest = discounted_total - Money.sum(list(charge_prices.values()), currency)
        charge_prices[last.uuid] = Money.max(rest, zero).ceil()
        return LineDecomposition(charge_prices=charge_prices, clamped=rest.is_negative)

    for charge in charges:
        charge_prices[charge.uuid] = Money.max(
            (charge.unit_price(currency) * factor).ceil(), zero
        )

    remaining = discounted_total - Money.sum(list(charge_prices.values()), currency)
    clamped = remaining.is_negative
    if clamped:
        logger.warning("line_charges_exceed_line_total", extra={
            "discounted_total": str(discounted_total.amount),
            "charge_total": str((discounted_total - remaining).amount),
            "item_count": len(items),
        })
    remaining = Money.max(remaining, zero).ceil()

    item_prices: dict[UUID, Money] = {}
    if items:
        engine = allocation_engine or AllocationEngine()
        result = engine.allocate_by_quantity(
            remaining,
            [AllocationTarget(target_id=item.uuid, quantity=item.quantity) for item in items],
        )
        item_prices = result.by_target()

    return LineDecomposition(
        item_prices=item_prices,
        charge_prices=charge_prices,
        clamped=clamped,
    )
