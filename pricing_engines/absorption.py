"""
Module: pricing_engines.absorption
Responsibility:
    The single absorption predicate shared by the quote and ledger
    branches: a charge is absorbed into its parent item's displayed price
    exactly when it names a parent item and that item has
    ``absorb_charges`` set.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Both branches call ``is_absorbed``/``resolve_absorption`` and nothing
      else to decide absorption, so they always agree for the same input.
    - A charge whose parent item is unknown is never absorbed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from uuid import UUID

from pricing_kernel.domain.work_order import Charge, Item


def is_absorbed(charge: Charge, items_by_uuid: Mapping[UUID, Item]) -> bool:
    """True when ``charge`` is folded into its parent item's price."""
    if charge.parent_item_uuid is None:
        return False
    parent = items_by_uuid.get(charge.parent_item_uuid)
    return parent is not None and parent.absorb_charges


def resolve_absorption(
    items: Iterable[Item],
    charges: Iterable[Charge],
) -> dict[UUID, UUID]:
    """Map of absorbed charge uuid -> uuid of the item absorbing it."""
    items_by_uuid = {item.uuid: item for item in items}
    return {
        charge.uuid: charge.parent_item_uuid
        for charge in charges
        if is_absorbed(charge, items_by_uuid)
    }


def absorbed_charges_by_item(
    items: Iterable[Item],
    charges: Iterable[Charge],
) -> dict[UUID, list[Charge]]:
    """Absorbed charges grouped by absorbing item, in charge order."""
    items_by_uuid = {item.uuid: item for item in items}
    grouped: dict[UUID, list[Charge]] = {}
    for charge in charges:
        if is_absorbed(charge, items_by_uuid):
            grouped.setdefault(charge.parent_item_uuid, []).append(charge)
    return grouped
