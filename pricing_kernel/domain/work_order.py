"""
Work-order domain types.

Responsibility:
    The immutable inputs of a price calculation: items, hourly and fixed
    labour charges, the order-level discount, references to commercial
    order lines, and the calculate request that bundles them.

Architecture position:
    Kernel > Domain -- pure data, zero I/O. Built by the ledger selector
    (from ORM rows) and by callers (from API payloads).

Invariants enforced:
    - Charge unit prices are ceiling-rounded to the currency minor unit, so
      a charge never prices below its nominal hours x rate or amount.
    - Decimal-only fields; floats are rejected at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pricing_kernel.domain.values import Currency, Money, to_decimal


class ChargeKind(str, Enum):
    """Discriminator for the two labour charge shapes."""

    HOURLY = "hourly"
    FIXED = "fixed"


class DiscountType(str, Enum):
    FIXED_AMOUNT = "FIXED_AMOUNT"
    PERCENTAGE = "PERCENTAGE"


@dataclass(frozen=True)
class LineRef:
    """
    Reference to a commercial order line.

    ``is_draft`` lines belong to draft orders that can still change; only
    a non-draft reference makes its entity *placed*.
    """

    ref: str
    order_ref: str | None = None
    is_draft: bool = False

    @property
    def is_placed(self) -> bool:
        return not self.is_draft


def is_placed(line_ref: LineRef | None) -> bool:
    """True when an entity is linked to a real (non-draft) order line."""
    return line_ref is not None and line_ref.is_placed


@dataclass(frozen=True)
class Item:
    """A sellable unit on a work order."""

    uuid: UUID
    product_ref: str
    quantity: int
    absorb_charges: bool = False
    line_ref: LineRef | None = None


@dataclass(frozen=True)
class HourlyCharge:
    """Labour billed as ``hours x rate``."""

    uuid: UUID
    rate: Decimal
    hours: Decimal
    name: str = "Labour"
    parent_item_uuid: UUID | None = None
    line_ref: LineRef | None = None

    kind = ChargeKind.HOURLY

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", to_decimal(self.rate))
        object.__setattr__(self, "hours", to_decimal(self.hours))

    def unit_price(self, currency: Currency) -> Money:
        return Money(amount=self.hours * self.rate, currency=currency).ceil()


@dataclass(frozen=True)
class FixedCharge:
    """Labour billed at a fixed amount."""

    uuid: UUID
    amount: Decimal
    name: str = "Labour"
    parent_item_uuid: UUID | None = None
    line_ref: LineRef | None = None

    kind = ChargeKind.FIXED

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))

    def unit_price(self, currency: Currency) -> Money:
        return Money(amount=self.amount, currency=currency).ceil()


Charge = HourlyCharge | FixedCharge


@dataclass(frozen=True)
class Discount:
    """Order-level discount handed to the quote oracle."""

    type: DiscountType
    value: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_decimal(self.value))
        if isinstance(self.type, str) and not isinstance(self.type, DiscountType):
            object.__setattr__(self, "type", DiscountType(self.type))


@dataclass(frozen=True)
class CalculateRequest:
    """
    Everything needed to price a work order.

    ``name`` is None for a work order that has never been saved; the whole
    request is then quoted. ``currency`` None means the configured currency.
    """

    name: str | None
    items: tuple[Item, ...] = ()
    charges: tuple[Charge, ...] = ()
    discount: Discount | None = None
    currency: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "charges", tuple(self.charges))


@dataclass(frozen=True)
class WorkOrderEntities:
    """The items and charges stored against a work order."""

    items: tuple[Item, ...] = ()
    hourly_charges: tuple[HourlyCharge, ...] = ()
    fixed_charges: tuple[FixedCharge, ...] = ()

    @property
    def charges(self) -> tuple[Charge, ...]:
        return (*self.hourly_charges, *self.fixed_charges)
