"""
pricing_services.validation -- Request checks run before any pricing.

Responsibility:
    ``validate_request`` rejects malformed calculate requests.
    ``validate_placed_entities`` checks a request against the stored work
    order: entities already on a real order line are immutable.

Architecture position:
    Services -- pure checks, called by the orchestrator.

Failure modes:
    - InvalidRequestError for malformed input.
    - PlacedEntityChangedError when a placed entity is edited or dropped,
      or a new charge is absorbed into a placed item.
    - ConsistencyError when a request entity claims a real order line the
      ledger does not record for it.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal

from pricing_engines.absorption import is_absorbed
from pricing_kernel.domain.work_order import (
    CalculateRequest,
    Charge,
    ChargeKind,
    DiscountType,
    Item,
    WorkOrderEntities,
    is_placed,
)
from pricing_kernel.exceptions import (
    ConsistencyError,
    InvalidRequestError,
    PlacedEntityChangedError,
)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_AMOUNT_FIELDS = {
    ChargeKind.HOURLY: ("hours", "rate"),
    ChargeKind.FIXED: ("amount",),
}


def _duplicates(values) -> list[str]:
    return sorted(str(value) for value, count in Counter(values).items() if count > 1)


def validate_request(request: CalculateRequest) -> None:
    """Raise InvalidRequestError if the request cannot be priced."""
    duplicate_items = _duplicates(item.uuid for item in request.items)
    if duplicate_items:
        raise InvalidRequestError(f"Duplicate item uuids: {', '.join(duplicate_items)}")

    duplicate_charges = _duplicates(charge.uuid for charge in request.charges)
    if duplicate_charges:
        raise InvalidRequestError(f"Duplicate charge uuids: {', '.join(duplicate_charges)}")

    item_uuids = {item.uuid for item in request.items}
    for item in request.items:
        if item.quantity <= 0:
            raise InvalidRequestError(f"Item {item.uuid} quantity must be positive")

    for charge in request.charges:
        for field_name in _AMOUNT_FIELDS[charge.kind]:
            if not getattr(charge, field_name).is_finite():
                raise InvalidRequestError(f"Charge {charge.uuid} {field_name} must be a finite number")
        if charge.kind is ChargeKind.HOURLY:
            if charge.hours < _ZERO:
                raise InvalidRequestError(f"Charge {charge.uuid} hours must not be negative")
            if charge.rate < _ZERO:
                raise InvalidRequestError(f"Charge {charge.uuid} rate must not be negative")
        elif charge.amount < _ZERO:
            raise InvalidRequestError(f"Charge {charge.uuid} amount must not be negative")
        if charge.parent_item_uuid is not None and charge.parent_item_uuid not in item_uuids:
            raise InvalidRequestError(
                f"Charge {charge.uuid} references unknown item {charge.parent_item_uuid}"
            )

    discount = request.discount
    if discount is not None:
        if not discount.value.is_finite():
            raise InvalidRequestError("Discount must be a finite number")
        if discount.value < _ZERO:
            raise InvalidRequestError("Discount must not be negative")
        if discount.type is DiscountType.PERCENTAGE and discount.value > _HUNDRED:
            raise InvalidRequestError("Percentage discount must not exceed 100")


def _item_changes(stored: Item, requested: Item) -> list[str]:
    changes = []
    if requested.product_ref != stored.product_ref:
        changes.append("product")
    if requested.quantity != stored.quantity:
        changes.append("quantity")
    if requested.absorb_charges != stored.absorb_charges:
        changes.append("absorb_charges")
    return changes


def _charge_changes(stored: Charge, requested: Charge) -> list[str]:
    if requested.kind is not stored.kind:
        return ["type"]
    changes = []
    if stored.kind is ChargeKind.HOURLY:
        if requested.rate != stored.rate:
            changes.append("rate")
        if requested.hours != stored.hours:
            changes.append("hours")
    elif requested.amount != stored.amount:
        changes.append("amount")
    if requested.parent_item_uuid != stored.parent_item_uuid:
        changes.append("parent item")
    return changes


def validate_placed_entities(request: CalculateRequest, stored: WorkOrderEntities) -> None:
    """Raise if the request disagrees with what is already on real orders."""
    requested_items = {item.uuid: item for item in request.items}
    requested_charges = {charge.uuid: charge for charge in request.charges}
    stored_items = {item.uuid: item for item in stored.items}
    stored_charges = {charge.uuid: charge for charge in stored.charges}

    for item in stored.items:
        if not is_placed(item.line_ref):
            continue
        requested = requested_items.get(item.uuid)
        if requested is None:
            raise PlacedEntityChangedError(str(item.uuid), "item is on a placed order and cannot be removed")
        changes = _item_changes(item, requested)
        if changes:
            raise PlacedEntityChangedError(str(item.uuid), f"changed {', '.join(changes)}")

    for charge in stored.charges:
        if not is_placed(charge.line_ref):
            continue
        requested = requested_charges.get(charge.uuid)
        if requested is None:
            raise PlacedEntityChangedError(str(charge.uuid), "charge is on a placed order and cannot be removed")
        changes = _charge_changes(charge, requested)
        if changes:
            raise PlacedEntityChangedError(str(charge.uuid), f"changed {', '.join(changes)}")

    for entity, known in (
        *((item, stored_items.get(item.uuid)) for item in request.items),
        *((charge, stored_charges.get(charge.uuid)) for charge in request.charges),
    ):
        if not is_placed(entity.line_ref):
            continue
        if known is None or not is_placed(known.line_ref) or known.line_ref.ref != entity.line_ref.ref:
            raise ConsistencyError(
                f"{entity.uuid} claims order line {entity.line_ref.ref} unknown to the ledger"
            )

    placed_items = {
        uuid: item for uuid, item in requested_items.items()
        if uuid in stored_items and is_placed(stored_items[uuid].line_ref)
    }
    for charge in request.charges:
        placed_charge = charge.uuid in stored_charges and is_placed(stored_charges[charge.uuid].line_ref)
        if placed_charge:
            continue
        if is_absorbed(charge, placed_items):
            raise PlacedEntityChangedError(
                str(charge.parent_item_uuid),
                f"cannot absorb new charge {charge.uuid} into an item on a placed order",
            )
