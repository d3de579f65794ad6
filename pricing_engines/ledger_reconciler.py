"""
Module: pricing_engines.ledger_reconciler
Responsibility:
    Decompose the totals, discounts, taxes and payments of already-placed
    commercial order lines back down to the items and charges on them.
    The oracle is never consulted: once an order exists its prices are
    fixed by the ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The ledger reads happen in
    pricing_services.ledger_store; this engine only sees DTOs.

Algorithm, per distinct placed line:
    1. original = unit_price x quantity, discounted = discounted_unit_price
       x quantity (each rounded half-up to the minor unit) and
       discounted_taxed = discounted + line tax.
    2. subtotal += discounted, tax += line tax, total += discounted_taxed,
       discount += original - discounted.
    3. paid += discounted_taxed x paid fraction of the owning order, where
       the fraction is (order total - order outstanding) / order total
       (0 for a zero-total order).  Kept at full precision.
    4. The line is decomposed with ``decompose_line``.
    At the end paid is rounded once and outstanding = total - paid.

Invariants enforced:
    - paid + outstanding == total, exactly.
    - Every placed entity handed in is priced by exactly one line.
    - An absorbed charge sits on the same line as the item absorbing it.

Failure modes:
    - OrderNotFoundError when a line's order is missing from ``orders``.
    - ConsistencyError when a placed entity's line is missing.
    - AbsorptionMismatchError when an absorbed charge is on another line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from pricing_engines.absorption import resolve_absorption
from pricing_engines.allocation import AllocationEngine
from pricing_engines.decomposition import decompose_line
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.breakdown import PriceBreakdown
from pricing_kernel.domain.ledger import LedgerOrder, LedgerOrderLine
from pricing_kernel.domain.values import Currency, Money, safe_ratio
from pricing_kernel.domain.work_order import ChargeKind, WorkOrderEntities, is_placed
from pricing_kernel.exceptions import (
    AbsorptionMismatchError,
    ConsistencyError,
    OrderNotFoundError,
)
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.ledger_reconciler")


class LedgerReconciler:
    """
    Rebuild a PriceBreakdown for placed entities from ledger records.

    Contract:
        ``entities`` holds the placed items and charges only; ``lines``
        holds every placed line they reference, each once; ``orders`` holds
        the owning order of every line, keyed by order_ref.
    """

    def __init__(self, allocation_engine: AllocationEngine | None = None):
        self._allocation_engine = allocation_engine or AllocationEngine()

    @traced_engine("ledger_reconciler", "1.0", fingerprint_fields=("lines", "orders", "entities"))
    def reconcile(
        self,
        *,
        lines: Sequence[LedgerOrderLine],
        orders: Mapping[str, LedgerOrder],
        entities: WorkOrderEntities,
        currency: Currency,
    ) -> PriceBreakdown:
        zero = Money.zero(currency)
        subtotal = tax = total = discount = zero
        paid_exact = zero

        absorbed = resolve_absorption(entities.items, entities.charges)
        items_by_uuid = {item.uuid: item for item in entities.items}
        for charge in entities.charges:
            if charge.uuid not in absorbed:
                continue
            parent = items_by_uuid[absorbed[charge.uuid]]
            charge_ref = charge.line_ref.ref if charge.line_ref else None
            parent_ref = parent.line_ref.ref if parent.line_ref else None
            if charge_ref != parent_ref:
                raise AbsorptionMismatchError(
                    str(charge.uuid),
                    str(parent.uuid),
                    f"charge is on line {charge_ref}, absorbing item on {parent_ref}",
                )

        item_prices: dict[UUID, Money] = {}
        charge_prices: dict[UUID, Money] = {}

        for line in lines:
            order = orders.get(line.order_ref)
            if order is None:
                raise OrderNotFoundError(line.order_ref)

            quantity = Decimal(line.quantity)
            original = Money(amount=line.unit_price * quantity, currency=currency).round()
            discounted = Money(
                amount=line.discounted_unit_price * quantity, currency=currency
            ).round()
            line_tax = Money(amount=line.total_tax, currency=currency).round()
            discounted_taxed = discounted + line_tax

            subtotal = subtotal + discounted
            tax = tax + line_tax
            total = total + discounted_taxed
            discount = discount + (original - discounted)

            paid_fraction = safe_ratio(
                order.total - order.outstanding, order.total, default=Decimal("0")
            )
            paid_exact = paid_exact + discounted_taxed * paid_fraction

            line_items = [
                item for item in entities.items
                if is_placed(item.line_ref) and item.line_ref.ref == line.line_ref
            ]
            line_charges = [
                charge for charge in entities.charges
                if is_placed(charge.line_ref) and charge.line_ref.ref == line.line_ref
            ]

            decomposition = decompose_line(
                original_total=original,
                discounted_total=discounted,
                items=line_items,
                charges=line_charges,
                allocation_engine=self._allocation_engine,
            )
            item_prices.update(decomposition.item_prices)
            charge_prices.update(decomposition.charge_prices)

            logger.debug("ledger_line_decomposed", extra={
                "line_ref": line.line_ref,
                "order_ref": line.order_ref,
                "discounted_total": str(discounted.amount),
                "paid_fraction": str(paid_fraction),
                "item_count": len(line_items),
                "charge_count": len(line_charges),
            })

        unpriced = [
            str(entity.uuid)
            for entity in (*entities.items, *entities.charges)
            if entity.uuid not in item_prices and entity.uuid not in charge_prices
        ]
        if unpriced:
            raise ConsistencyError(
                f"Placed entities without a ledger line: {', '.join(unpriced)}"
            )

        paid = paid_exact.round(ROUND_HALF_UP)
        breakdown = PriceBreakdown(
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total=total,
            paid=paid,
            outstanding=total - paid,
            item_prices=item_prices,
            hourly_charge_prices={
                c.uuid: charge_prices[c.uuid]
                for c in entities.charges if c.kind is ChargeKind.HOURLY
            },
            fixed_charge_prices={
                c.uuid: charge_prices[c.uuid]
                for c in entities.charges if c.kind is ChargeKind.FIXED
            },
            absorbed_charges=absorbed,
        )

        logger.info("ledger_reconciled", extra={
            "line_count": len(lines),
            "order_count": len({line.order_ref for line in lines}),
            "subtotal": str(subtotal.amount),
            "total": str(total.amount),
            "paid": str(paid.amount),
        })
        return breakdown
