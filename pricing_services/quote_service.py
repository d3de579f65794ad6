"""
pricing_services.quote_service -- Quote Oracle Adapter.

Responsibility:
    Price a set of not-yet-ordered items and charges through a
    ``QuoteOracle``: build marked draft lines, make exactly one oracle
    call, and decompose the result into a PriceBreakdown.

Architecture position:
    Services -- the only place the quote oracle is called.  Line building
    and decomposition are delegated to pricing_engines.quote.

Invariants enforced:
    - An empty set (no items, no charges) yields an all-zero breakdown and
      the oracle is not called.
    - A failed, rejected or empty oracle response is never defaulted to a
      zero price; it raises a CalculationFailure.
    - No retries here; retry policy belongs to the oracle transport.

Failure modes:
    - OracleCallFailedError when the oracle raises.
    - OracleUserError when the oracle returns user errors.
    - IncompleteQuoteError when the oracle returns no quote.
    - ConsistencyError subclasses from decomposition (marker problems).
"""

from __future__ import annotations

from collections.abc import Sequence

from pricing_engines.quote import QuoteEngine
from pricing_kernel.domain.breakdown import PriceBreakdown
from pricing_kernel.domain.values import Currency
from pricing_kernel.domain.work_order import Charge, Discount, Item
from pricing_kernel.exceptions import (
    CalculationFailure,
    IncompleteQuoteError,
    OracleCallFailedError,
    OracleUserError,
)
from pricing_kernel.logging_config import get_logger
from pricing_services.quote_oracle import QuoteOracle

logger = get_logger("services.quote")


class QuoteOracleAdapter:
    """
    Quote not-yet-ordered entities "as of now".

    Contract:
        ``quote`` is side-effect free apart from the single oracle call.
    """

    def __init__(
        self,
        oracle: QuoteOracle,
        labour_sku: str | None = None,
        quote_engine: QuoteEngine | None = None,
    ):
        self._oracle = oracle
        self._labour_sku = labour_sku
        self._engine = quote_engine or QuoteEngine()

    async def quote(
        self,
        items: Sequence[Item],
        charges: Sequence[Charge],
        discount: Discount | None,
        currency: Currency,
    ) -> PriceBreakdown:
        if not items and not charges:
            logger.debug("quote_skipped_empty")
            return PriceBreakdown.zero(currency)

        lines = self._engine.build_lines(items, charges, currency, self._labour_sku)

        logger.info("quote_oracle_call_started", extra={
            "line_count": len(lines),
            "item_count": len(items),
            "charge_count": len(charges),
            "discount_type": discount.type if discount else None,
        })
        try:
            response = await self._oracle.price_draft(lines, discount)
        except CalculationFailure:
            raise
        except Exception as exc:
            logger.error("quote_oracle_call_failed", extra={"error": str(exc)})
            raise OracleCallFailedError(str(exc)) from exc

        if response.user_errors:
            logger.warning("quote_oracle_user_errors", extra={
                "errors": list(response.user_errors),
            })
            raise OracleUserError(response.user_errors)
        if response.quote is None:
            logger.error("quote_oracle_empty_response")
            raise IncompleteQuoteError("oracle returned no quote")

        return self._engine.decompose(
            quote=response.quote,
            items=items,
            charges=charges,
            currency=currency,
        )
