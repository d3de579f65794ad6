"""
Quote oracle DTOs.

The oracle prices a draft order "as of now". Each request line carries an
``attributes`` mapping that the oracle must echo back unchanged on the
matching result line; the adapter stores its correlation markers there.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from pricing_kernel.domain.values import to_decimal


def _freeze(attributes: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(attributes))


@dataclass(frozen=True)
class QuoteLineRequest:
    """
    One line of a draft order.

    Product lines set ``product_ref``; custom lines (labour charges) set
    ``unit_price_override`` and ``title`` instead.
    """

    quantity: int
    attributes: Mapping[str, str] = field(default_factory=dict)
    product_ref: str | None = None
    unit_price_override: Decimal | None = None
    title: str | None = None
    taxable: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze(self.attributes))
        if self.unit_price_override is not None:
            object.__setattr__(self, "unit_price_override", to_decimal(self.unit_price_override))


@dataclass(frozen=True)
class QuotedLine:
    """A priced draft line; ``attributes`` are echoed from the request."""

    attributes: Mapping[str, str]
    original_total: Decimal
    discounted_total: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze(self.attributes))
        object.__setattr__(self, "original_total", to_decimal(self.original_total))
        object.__setattr__(self, "discounted_total", to_decimal(self.discounted_total))


@dataclass(frozen=True)
class DraftQuote:
    """Result of pricing a draft order."""

    lines: tuple[QuotedLine, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "subtotal", to_decimal(self.subtotal))
        object.__setattr__(self, "tax", to_decimal(self.tax))
        object.__setattr__(self, "total", to_decimal(self.total))


@dataclass(frozen=True)
class QuoteResponse:
    """
    Oracle envelope: either a quote, user-facing validation errors, or
    neither (an empty body).
    """

    quote: DraftQuote | None = None
    user_errors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "user_errors", tuple(self.user_errors))
