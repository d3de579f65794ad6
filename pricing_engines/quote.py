"""
Module: pricing_engines.quote
Responsibility:
    Both halves of pricing not-yet-ordered entities through the quote
    oracle: build the draft lines (with correlation markers) for a set of
    items and charges, and decompose the oracle's priced draft back into a
    PriceBreakdown.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The oracle call itself
    lives in pricing_services.quote_service.

Line construction:
    - Items that absorb no charges share one line per product; the line
      quantity is the sum of their quantities.
    - An item with ``absorb_charges`` gets its own line.  If it absorbs any
      charge the product is a service priced at 1.00 per unit, and the line
      quantity is the absorbed charges' unit prices summed and rounded up
      to a whole unit.
    - Every non-absorbed charge is a custom line of quantity 1 priced at
      its unit price.  Duplicate charge names get " (1)", " (2)", ...

Invariants enforced:
    - Every requested entity is matched through exactly one marker.
    - Every absorbed charge is listed as absorbed on the line of the item
      that absorbs it.
    - The oracle's total equals its subtotal plus tax.
    - Prices are decomposed with the shared ``decompose_line`` rule.

Failure modes:
    - DuplicateMarkerError when one marker appears on several lines.
    - MissingMarkerError when a requested entity's marker never comes back.
    - AbsorptionMismatchError when an absorbed charge is not where its
      absorption rule puts it.
    - IncompleteQuoteError when the quote totals do not add up.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from decimal import ROUND_CEILING
from uuid import UUID

from pricing_engines.absorption import absorbed_charges_by_item, resolve_absorption
from pricing_engines.allocation import AllocationEngine
from pricing_engines.decomposition import decompose_line
from pricing_engines.markers import (
    ABSORBED_INTO_SUFFIX,
    LINKED_TO_ITEM_ATTRIBUTE,
    SKU_ATTRIBUTE,
    LineMarker,
    decode_attributes,
)
from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.breakdown import PriceBreakdown
from pricing_kernel.domain.quote import DraftQuote, QuoteLineRequest
from pricing_kernel.domain.values import Currency, Money
from pricing_kernel.domain.work_order import Charge, ChargeKind, Item
from pricing_kernel.exceptions import (
    AbsorptionMismatchError,
    DuplicateMarkerError,
    IncompleteQuoteError,
    MissingMarkerError,
)
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.quote")


def unique_charge_names(charges: Sequence[Charge]) -> dict[UUID, str]:
    """Display name per charge; repeated names are numbered in charge order."""
    counts = Counter(charge.name for charge in charges)
    seen: Counter[str] = Counter()
    names: dict[UUID, str] = {}
    for charge in charges:
        if counts[charge.name] == 1:
            names[charge.uuid] = charge.name
            continue
        seen[charge.name] += 1
        names[charge.uuid] = f"{charge.name} ({seen[charge.name]})"
    return names


def _charge_attributes(charge: Charge, labour_sku: str | None) -> dict[str, str]:
    attributes = {LineMarker.for_charge(charge).key: "1"}
    if charge.parent_item_uuid is not None:
        attributes[LINKED_TO_ITEM_ATTRIBUTE] = str(charge.parent_item_uuid)
    if labour_sku:
        attributes[SKU_ATTRIBUTE] = labour_sku
    return attributes


class QuoteEngine:
    """
    Draft line construction and quote decomposition.

    Contract:
        Pure functions of their inputs.  ``build_lines`` and ``decompose``
        must be given the same items and charges for one quote.
    """

    def __init__(self, allocation_engine: AllocationEngine | None = None):
        self._allocation_engine = allocation_engine or AllocationEngine()

    def build_lines(
        self,
        items: Sequence[Item],
        charges: Sequence[Charge],
        currency: Currency,
        labour_sku: str | None = None,
    ) -> list[QuoteLineRequest]:
        """Draft lines for ``items`` and ``charges``, item lines first."""
        names = unique_charge_names(charges)
        absorbed_by_item = absorbed_charges_by_item(items, charges)
        absorbed = resolve_absorption(items, charges)

        grouped: dict[str, list[Item]] = {}
        lines: list[QuoteLineRequest] = []
        # (product_ref, items) or (None, [absorbing item]) in first-seen order
        slots: list[tuple[str | None, list[Item]]] = []
        for item in items:
            if item.absorb_charges:
                slots.append((None, [item]))
                continue
            if item.product_ref not in grouped:
                grouped[item.product_ref] = []
                slots.append((item.product_ref, grouped[item.product_ref]))
            grouped[item.product_ref].append(item)

        for _, slot_items in slots:
            attributes: dict[str, str] = {}
            quantity = sum(item.quantity for item in slot_items)

            for item in slot_items:
                attributes[LineMarker.for_item(item).key] = str(item.quantity)

                item_absorbed = absorbed_by_item.get(item.uuid, [])
                if item_absorbed:
                    charge_cost = Money.sum(
                        [charge.unit_price(currency) for charge in item_absorbed], currency
                    )
                    quantity = int(charge_cost.amount.to_integral_value(rounding=ROUND_CEILING))

                for charge in item_absorbed:
                    marker = LineMarker.for_charge(charge)
                    attributes[marker.sub_key(ABSORBED_INTO_SUFFIX)] = str(item.uuid)
                    for key, value in _charge_attributes(charge, labour_sku).items():
                        if key != marker.key:
                            attributes[marker.sub_key(key)] = value

                for charge in charges:
                    if charge.parent_item_uuid == item.uuid:
                        attributes[names[charge.uuid]] = str(charge.unit_price(currency).amount)

            lines.append(
                QuoteLineRequest(
                    quantity=quantity,
                    attributes=attributes,
                    product_ref=slot_items[0].product_ref,
                )
            )

        for charge in charges:
            if charge.uuid in absorbed:
                continue
            lines.append(
                QuoteLineRequest(
                    quantity=1,
                    attributes=_charge_attributes(charge, labour_sku),
                    unit_price_override=charge.unit_price(currency).amount,
                    title=names[charge.uuid],
                )
            )

        logger.debug("quote_lines_built", extra={
            "item_count": len(items),
            "charge_count": len(charges),
            "line_count": len(lines),
        })
        return lines

    @traced_engine("quote_decomposition", "1.0", fingerprint_fields=("quote", "items", "charges"))
    def decompose(
        self,
        *,
        quote: DraftQuote,
        items: Sequence[Item],
        charges: Sequence[Charge],
        currency: Currency,
    ) -> PriceBreakdown:
        """Map a priced draft back onto the items and charges it was built from."""
        if quote.total != quote.subtotal + quote.tax:
            raise IncompleteQuoteError(
                f"total {quote.total} != subtotal {quote.subtotal} + tax {quote.tax}"
            )

        requested: dict[LineMarker, Item | Charge] = {
            **{LineMarker.for_item(item): item for item in items},
            **{LineMarker.for_charge(charge): charge for charge in charges},
        }
        absorbed = resolve_absorption(items, charges)

        decoded = [decode_attributes(line.attributes) for line in quote.lines]

        primary_lines: dict[LineMarker, list[int]] = {}
        absorbed_lines: dict[LineMarker, list[tuple[int, UUID]]] = {}
        for index, line in enumerate(decoded):
            if line.is_empty:
                logger.warning("quote_line_without_marker", extra={"line_index": index})
                continue
            for marker in line.markers:
                if marker not in requested:
                    logger.warning("quote_unknown_marker", extra={"marker": marker.key})
                    continue
                primary_lines.setdefault(marker, []).append(index)
            for marker, item_uuid in line.absorbed.items():
                if marker not in requested:
                    logger.warning("quote_unknown_marker", extra={"marker": marker.key})
                    continue
                absorbed_lines.setdefault(marker, []).append((index, item_uuid))

        for marker, indexes in primary_lines.items():
            if len(indexes) > 1:
                raise DuplicateMarkerError(marker.key, len(indexes))
        for marker, entries in absorbed_lines.items():
            if len(entries) > 1:
                raise DuplicateMarkerError(marker.sub_key(ABSORBED_INTO_SUFFIX), len(entries))

        items_on_line: dict[int, list[Item]] = {}
        charges_on_line: dict[int, list[Charge]] = {}

        for item in items:
            marker = LineMarker.for_item(item)
            if marker not in primary_lines:
                raise MissingMarkerError(marker.key)
            items_on_line.setdefault(primary_lines[marker][0], []).append(item)

        for charge in charges:
            marker = LineMarker.for_charge(charge)
            if charge.uuid not in absorbed:
                if marker in absorbed_lines:
                    raise AbsorptionMismatchError(
                        str(charge.uuid), None, "charge is not absorbed but was quoted as absorbed",
                    )
                if marker not in primary_lines:
                    raise MissingMarkerError(marker.key)
                charges_on_line.setdefault(primary_lines[marker][0], []).append(charge)
                continue

            parent = absorbed[charge.uuid]
            if marker in primary_lines:
                raise AbsorptionMismatchError(
                    str(charge.uuid), str(parent), "absorbed charge was quoted on its own line",
                )
            if marker not in absorbed_lines:
                raise AbsorptionMismatchError(
                    str(charge.uuid), str(parent), "absorbed charge missing from its item's line",
                )
            index, item_uuid = absorbed_lines[marker][0]
            parent_on_line = any(item.uuid == parent for item in items_on_line.get(index, []))
            if item_uuid != parent or not parent_on_line:
                raise AbsorptionMismatchError(
                    str(charge.uuid), str(parent), f"quoted as absorbed into {item_uuid}",
                )
            charges_on_line.setdefault(index, []).append(charge)

        item_prices: dict[UUID, Money] = {}
        charge_prices: dict[UUID, Money] = {}
        original = Money.zero(currency)
        discounted = Money.zero(currency)

        for index in sorted(set(items_on_line) | set(charges_on_line)):
            line = quote.lines[index]
            original_total = Money(amount=line.original_total, currency=currency)
            discounted_total = Money(amount=line.discounted_total, currency=currency)
            original = original + original_total
            discounted = discounted + discounted_total

            decomposition = decompose_line(
                original_total=original_total,
                discounted_total=discounted_total,
                items=items_on_line.get(index, []),
                charges=charges_on_line.get(index, []),
                allocation_engine=self._allocation_engine,
            )
            item_prices.update(decomposition.item_prices)
            charge_prices.update(decomposition.charge_prices)

        total = Money(amount=quote.total, currency=currency)
        breakdown = PriceBreakdown(
            subtotal=Money(amount=quote.subtotal, currency=currency),
            tax=Money(amount=quote.tax, currency=currency),
            discount=(original - discounted).round(),
            total=total,
            paid=Money.zero(currency),
            outstanding=total,
            item_prices=item_prices,
            hourly_charge_prices={
                c.uuid: charge_prices[c.uuid] for c in charges if c.kind is ChargeKind.HOURLY
            },
            fixed_charge_prices={
                c.uuid: charge_prices[c.uuid] for c in charges if c.kind is ChargeKind.FIXED
            },
            absorbed_charges=absorbed,
        )

        logger.info("quote_decomposed", extra={
            "line_count": len(quote.lines),
            "item_count": len(item_prices),
            "charge_count": len(charge_prices),
            "subtotal": str(breakdown.subtotal.amount),
            "total": str(breakdown.total.amount),
        })
        return breakdown
