"""
Typed exception hierarchy for the work-order pricing engine.

Every error carries a ``code`` class attribute (machine-readable, stable
across message rewording) and stores its context as attributes so it can
be logged or returned to an API caller without parsing the message.

    PricingError (base)
    |
    +-- InvalidRequestError
    |   +-- PlacedEntityChangedError
    |
    +-- NotFoundError
    |   +-- WorkOrderNotFoundError
    |   +-- OrderNotFoundError
    |
    +-- CalculationFailure
    |   +-- OracleCallFailedError
    |   +-- OracleUserError
    |   +-- IncompleteQuoteError
    |
    +-- ConsistencyError
    |   +-- DuplicateMarkerError
    |   +-- MissingMarkerError
    |   +-- AbsorptionMismatchError
    |   +-- OverlappingBreakdownError
    |
    +-- CurrencyError
        +-- InvalidCurrencyError
        +-- CurrencyMismatchError

Category     | Code                      | When raised
-------------|---------------------------|---------------------------------------------
Request      | INVALID_REQUEST           | Malformed items, charges or discount
             | PLACED_ENTITY_CHANGED     | Request edits or drops an entity on a real order
NotFound     | WORK_ORDER_NOT_FOUND      | Work order name unknown to the ledger
             | ORDER_NOT_FOUND           | Ledger line references a missing order
Calculation  | ORACLE_CALL_FAILED        | Quote oracle raised
             | ORACLE_USER_ERROR         | Quote oracle rejected the draft
             | INCOMPLETE_QUOTE          | Quote oracle returned no/partial result
Consistency  | DUPLICATE_MARKER          | More than one quoted line carries a marker
             | MISSING_MARKER            | Expected marker never echoed back
             | ABSORPTION_MISMATCH       | Quote/ledger disagree on absorbed charges
             | OVERLAPPING_BREAKDOWN     | Merged breakdowns share an entity
Currency     | INVALID_CURRENCY          | Unknown ISO 4217 code
             | CURRENCY_MISMATCH         | Arithmetic across currencies

NotFoundError and CalculationFailure are surfaced to the caller as-is and
never retried here. ConsistencyError is always an integration bug; the
computation aborts rather than guessing.
"""

from __future__ import annotations

from collections.abc import Sequence


class PricingError(Exception):
    """Base exception for all pricing engine errors."""

    code: str = "PRICING_ERROR"


# Request validation


class InvalidRequestError(PricingError):
    """The calculate request is malformed."""

    code: str = "INVALID_REQUEST"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class PlacedEntityChangedError(InvalidRequestError):
    """The request changes an item or charge that is already on a real order."""

    code: str = "PLACED_ENTITY_CHANGED"

    def __init__(self, entity_uuid: str, reason: str):
        self.entity_uuid = entity_uuid
        super().__init__(f"Cannot change {entity_uuid}: {reason}")


# Lookups


class NotFoundError(PricingError):
    """Base exception for missing ledger records."""

    code: str = "NOT_FOUND"


class WorkOrderNotFoundError(NotFoundError):
    """No work order with the given name exists."""

    code: str = "WORK_ORDER_NOT_FOUND"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Work order not found: {name}")


class OrderNotFoundError(NotFoundError):
    """A ledger line references an order that does not exist."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Order not found: {order_ref}")


# Quote oracle


class CalculationFailure(PricingError):
    """The quote oracle could not price the draft."""

    code: str = "CALCULATION_FAILURE"


class OracleCallFailedError(CalculationFailure):
    """The quote oracle call raised."""

    code: str = "ORACLE_CALL_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Quote oracle call failed: {reason}")


class OracleUserError(CalculationFailure):
    """The quote oracle rejected the draft with validation errors."""

    code: str = "ORACLE_USER_ERROR"

    def __init__(self, messages: Sequence[str]):
        self.messages = tuple(messages)
        super().__init__(f"Quote oracle rejected the draft: {'; '.join(self.messages)}")


class IncompleteQuoteError(CalculationFailure):
    """The quote oracle returned no result or a structurally broken one."""

    code: str = "INCOMPLETE_QUOTE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Incomplete quote: {reason}")


# Internal consistency


class ConsistencyError(PricingError):
    """An internal invariant does not hold. Always an integration bug."""

    code: str = "CONSISTENCY_ERROR"


class DuplicateMarkerError(ConsistencyError):
    """More than one quoted line carries the same marker."""

    code: str = "DUPLICATE_MARKER"

    def __init__(self, marker: str, count: int):
        self.marker = marker
        self.count = count
        super().__init__(f"Marker {marker} matched {count} quoted lines")


class MissingMarkerError(ConsistencyError):
    """An expected marker was never echoed back."""

    code: str = "MISSING_MARKER"

    def __init__(self, marker: str):
        self.marker = marker
        super().__init__(f"No quoted line carries marker {marker}")


class AbsorptionMismatchError(ConsistencyError):
    """A charge is not attached to the line its absorption rule requires."""

    code: str = "ABSORPTION_MISMATCH"

    def __init__(self, charge_uuid: str, item_uuid: str | None, reason: str):
        self.charge_uuid = charge_uuid
        self.item_uuid = item_uuid
        self.reason = reason
        super().__init__(f"Charge {charge_uuid} absorption mismatch: {reason}")


class OverlappingBreakdownError(ConsistencyError):
    """Two breakdowns being merged price the same entity."""

    code: str = "OVERLAPPING_BREAKDOWN"

    def __init__(self, uuids: Sequence[str]):
        self.uuids = tuple(uuids)
        super().__init__(f"Breakdowns overlap on {', '.join(self.uuids)}")


# Currency


class CurrencyError(PricingError):
    """Base exception for currency errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not a known ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: {currency}")


class CurrencyMismatchError(CurrencyError):
    """Arithmetic attempted across currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str, operation: str):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(f"Cannot {operation} Money in {left} and {right}")
