"""
pricing_services.quote_oracle -- The quote oracle port and an in-process catalog oracle.

Responsibility:
    Define the interface every quote oracle implements (price a draft
    order "right now" and echo each line's attributes back), and provide
    ``CatalogQuoteOracle``, an implementation that prices from a configured
    product catalog without any network access.

Architecture position:
    Services -- I/O boundary.  Real deployments plug a storefront client in
    behind ``QuoteOracle``; the catalog oracle serves the CLI and tests.

Invariants enforced (CatalogQuoteOracle):
    - Every response line echoes its request line's attributes unchanged.
    - Line totals, discount shares and tax are rounded half-up to the
      minor unit; total == subtotal + tax exactly.
    - The order discount never exceeds the original subtotal and its
      pro-rata shares sum exactly to it.

Failure modes:
    - Unknown products, malformed lines and invalid discounts are returned
      as ``user_errors``, never raised.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, runtime_checkable

from pricing_engines.allocation import AllocationEngine, AllocationTarget
from pricing_kernel.domain.quote import DraftQuote, QuotedLine, QuoteLineRequest, QuoteResponse
from pricing_kernel.domain.values import Currency, Money
from pricing_kernel.domain.work_order import Discount, DiscountType
from pricing_kernel.logging_config import get_logger

logger = get_logger("services.quote_oracle")

_HUNDRED = Decimal("100")


@runtime_checkable
class QuoteOracle(Protocol):
    """Protocol for pricing a draft order.

    Implementations: CatalogQuoteOracle (in-process), storefront clients.
    """

    async def price_draft(
        self,
        lines: Sequence[QuoteLineRequest],
        discount: Discount | None,
    ) -> QuoteResponse:
        """Price ``lines`` with the order-level ``discount`` applied.

        Returns a response with either a quote or user errors.  Transport
        failures are raised.
        """
        ...


class CatalogQuoteOracle:
    """
    QuoteOracle that prices product lines from a catalog.

    Contract:
        Product lines are priced at ``prices[product_ref]`` per unit; custom
        lines at their ``unit_price_override``.  Taxable lines are taxed at
        ``tax_rate`` after discount.
    """

    def __init__(
        self,
        prices: Mapping[str, Decimal],
        currency: Currency | str,
        tax_rate: Decimal = Decimal("0"),
        allocation_engine: AllocationEngine | None = None,
    ):
        self._prices = dict(prices)
        self._currency = Currency(currency) if isinstance(currency, str) else currency
        self._tax_rate = tax_rate
        self._allocation_engine = allocation_engine or AllocationEngine()

    async def price_draft(
        self,
        lines: Sequence[QuoteLineRequest],
        discount: Discount | None,
    ) -> QuoteResponse:
        errors = self._validate(lines, discount)
        if errors:
            logger.info("catalog_quote_rejected", extra={"errors": errors})
            return QuoteResponse(user_errors=tuple(errors))

        currency = self._currency
        originals = [
            (Money(amount=self._unit_price(line), currency=currency) * line.quantity).round(ROUND_HALF_UP)
            for line in lines
        ]
        original_subtotal = Money.sum(originals, currency)
        discount_amount = self._discount_amount(original_subtotal, discount)

        shares = self._allocation_engine.allocate_prorata(
            discount_amount,
            [
                AllocationTarget(target_id=index, eligible_amount=original)
                for index, original in enumerate(originals)
            ],
        ).by_target()

        quoted: list[QuotedLine] = []
        subtotal = tax = Money.zero(currency)
        for index, (line, original) in enumerate(zip(lines, originals)):
            discounted = original - shares.get(index, Money.zero(currency))
            if line.taxable:
                tax = tax + (discounted * self._tax_rate).round(ROUND_HALF_UP)
            subtotal = subtotal + discounted
            quoted.append(
                QuotedLine(
                    attributes=line.attributes,
                    original_total=original.amount,
                    discounted_total=discounted.amount,
                )
            )

        logger.info("catalog_quote_priced", extra={
            "line_count": len(quoted),
            "discount": str(discount_amount.amount),
            "subtotal": str(subtotal.amount),
            "tax": str(tax.amount),
        })
        return QuoteResponse(
            quote=DraftQuote(
                lines=tuple(quoted),
                subtotal=subtotal.amount,
                tax=tax.amount,
                total=(subtotal + tax).amount,
            )
        )

    def _unit_price(self, line: QuoteLineRequest) -> Decimal:
        if line.unit_price_override is not None:
            return line.unit_price_override
        return self._prices[line.product_ref]

    def _validate(
        self,
        lines: Sequence[QuoteLineRequest],
        discount: Discount | None,
    ) -> list[str]:
        errors: list[str] = []
        for index, line in enumerate(lines):
            if line.quantity < 0:
                errors.append(f"Line {index}: quantity must not be negative")
            if line.unit_price_override is None:
                if line.product_ref is None:
                    errors.append(f"Line {index}: needs a product or a unit price")
                elif line.product_ref not in self._prices:
                    errors.append(f"Line {index}: unknown product {line.product_ref}")
            elif line.unit_price_override < 0:
                errors.append(f"Line {index}: unit price must not be negative")

        if discount is not None:
            if discount.value < 0:
                errors.append("Discount must not be negative")
            elif discount.type is DiscountType.PERCENTAGE and discount.value > _HUNDRED:
                errors.append("Percentage discount must not exceed 100")
        return errors

    def _discount_amount(self, original_subtotal: Money, discount: Discount | None) -> Money:
        currency = original_subtotal.currency
        if discount is None:
            return Money.zero(currency)
        if discount.type is DiscountType.PERCENTAGE:
            return (original_subtotal * (discount.value / _HUNDRED)).round(ROUND_HALF_UP)
        amount = Money(amount=discount.value, currency=currency).round(ROUND_HALF_UP)
        return Money.min(amount, original_subtotal)
