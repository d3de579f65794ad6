"""
pricing_services.request_document -- Calculate requests from plain documents.

Responsibility:
    Turn a parsed YAML/JSON document into a ``CalculateRequest``.  Used by
    the command-line driver and by any transport that receives requests as
    JSON.

Document shape::

    name: WO-1001            # omit for a work order never saved
    currency: USD            # optional
    discount: {type: PERCENTAGE, value: "10"}
    items:
      - {uuid: ..., product_ref: oil-change, quantity: 1, absorb_charges: false,
         line_ref: {ref: ..., order_ref: ..., is_draft: false}}
    charges:
      - {type: hourly, uuid: ..., name: Labour, hours: "1.5", rate: "80", parent_item_uuid: ...}
      - {type: fixed, uuid: ..., name: Diagnostic, amount: "25"}

Failure modes:
    - InvalidRequestError on missing keys, unknown charge types, entries
      that are not mappings, or values that do not parse to finite numbers.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from pricing_kernel.domain.work_order import (
    CalculateRequest,
    Charge,
    Discount,
    DiscountType,
    FixedCharge,
    HourlyCharge,
    Item,
    LineRef,
)
from pricing_kernel.exceptions import InvalidRequestError


def _decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidRequestError(f"{field_name}: expected a number, got {value!r}")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidRequestError(f"{field_name}: expected a number, got {value!r}") from e
    if not parsed.is_finite():
        raise InvalidRequestError(f"{field_name}: expected a finite number, got {value!r}")
    return parsed


def _uuid(value: Any, field_name: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError as e:
        raise InvalidRequestError(f"{field_name}: not a uuid: {value!r}") from e


def _optional_uuid(value: Any, field_name: str) -> UUID | None:
    return None if value is None else _uuid(value, field_name)


def _mapping(value: Any, field_name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidRequestError(f"{field_name}: expected a mapping, got {value!r}")
    return value


def _entries(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidRequestError(f"{field_name}: expected a list, got {value!r}")
    return [_mapping(entry, f"{field_name}[{index}]") for index, entry in enumerate(value)]


def _line_ref(data: Any) -> LineRef | None:
    if not data:
        return None
    data = _mapping(data, "line_ref")
    return LineRef(
        ref=str(data["ref"]),
        order_ref=data.get("order_ref"),
        is_draft=bool(data.get("is_draft", False)),
    )


def _item(data: dict[str, Any]) -> Item:
    quantity = data.get("quantity", 1)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidRequestError(f"item quantity must be an integer, got {quantity!r}")
    return Item(
        uuid=_uuid(data["uuid"], "item.uuid"),
        product_ref=str(data["product_ref"]),
        quantity=quantity,
        absorb_charges=bool(data.get("absorb_charges", False)),
        line_ref=_line_ref(data.get("line_ref")),
    )


def _charge(data: dict[str, Any]) -> Charge:
    charge_type = data.get("type")
    common = {
        "uuid": _uuid(data["uuid"], "charge.uuid"),
        "name": str(data.get("name", "Labour")),
        "parent_item_uuid": _optional_uuid(data.get("parent_item_uuid"), "charge.parent_item_uuid"),
        "line_ref": _line_ref(data.get("line_ref")),
    }
    if charge_type == "hourly":
        return HourlyCharge(
            rate=_decimal(data["rate"], "charge.rate"),
            hours=_decimal(data["hours"], "charge.hours"),
            **common,
        )
    if charge_type == "fixed":
        return FixedCharge(amount=_decimal(data["amount"], "charge.amount"), **common)
    raise InvalidRequestError(f"Unknown charge type: {charge_type!r}")


def _discount(data: Any) -> Discount | None:
    if not data:
        return None
    data = _mapping(data, "discount")
    try:
        discount_type = DiscountType(str(data["type"]).upper())
    except ValueError as e:
        raise InvalidRequestError(f"Unknown discount type: {data['type']!r}") from e
    return Discount(type=discount_type, value=_decimal(data["value"], "discount.value"))


def parse_calculate_request(document: Any) -> CalculateRequest:
    """Build a CalculateRequest from a parsed document."""
    document = _mapping(document, "request")
    try:
        return CalculateRequest(
            name=None if document.get("name") is None else str(document["name"]),
            items=tuple(_item(item) for item in _entries(document.get("items"), "items")),
            charges=tuple(_charge(charge) for charge in _entries(document.get("charges"), "charges")),
            discount=_discount(document.get("discount")),
            currency=document.get("currency"),
        )
    except KeyError as e:
        raise InvalidRequestError(f"Missing field: {e.args[0]}") from e
