"""
Pure domain layer.

Immutable data transfer objects and value types with NO dependencies on
the ORM, the database or any I/O.
"""

from pricing_kernel.domain.breakdown import PriceBreakdown
from pricing_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from pricing_kernel.domain.ledger import LedgerOrder, LedgerOrderLine
from pricing_kernel.domain.quote import (
    DraftQuote,
    QuotedLine,
    QuoteLineRequest,
    QuoteResponse,
)
from pricing_kernel.domain.values import Currency, Money, safe_ratio
from pricing_kernel.domain.work_order import (
    CalculateRequest,
    Charge,
    ChargeKind,
    Discount,
    DiscountType,
    FixedCharge,
    HourlyCharge,
    Item,
    LineRef,
    WorkOrderEntities,
    is_placed,
)

__all__ = [
    "CalculateRequest",
    "Charge",
    "ChargeKind",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Discount",
    "DiscountType",
    "DraftQuote",
    "FixedCharge",
    "HourlyCharge",
    "Item",
    "LedgerOrder",
    "LedgerOrderLine",
    "LineRef",
    "Money",
    "PriceBreakdown",
    "QuoteLineRequest",
    "QuoteResponse",
    "QuotedLine",
    "WorkOrderEntities",
    "is_placed",
    "safe_ratio",
]
