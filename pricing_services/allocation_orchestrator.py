"""
pricing_services.allocation_orchestrator -- The single entry point for price breakdowns.

Responsibility:
    Validate a calculate request, split its entities into "already on a
    real order" and "not yet ordered", price the first from the ledger and
    the second through the quote oracle, and merge both breakdowns.

Architecture position:
    Services -- stateless orchestration over the ledger store, the quote
    adapter and the ledger reconciler.  Holds no per-request state; one
    instance serves concurrent requests.

Concurrency:
    With a work order name, the work order id and its stored entities are
    read first (the partition depends on them).  The ledger branch and the
    quote branch then run concurrently under ``asyncio.gather``; blocking
    ledger reads run in worker threads and order lookups are issued in
    parallel.  The first failure propagates and no partial breakdown is
    ever returned.

Invariants enforced:
    - Placed entities are priced only from the ledger, never the oracle.
    - The oracle is called at most once, with exactly the unplaced subset.
    - Every request entity appears exactly once in the merged breakdown.

Failure modes:
    - InvalidRequestError / PlacedEntityChangedError from validation.
    - WorkOrderNotFoundError, OrderNotFoundError from the ledger store.
    - CalculationFailure from the quote adapter.
    - ConsistencyError when the branches disagree or overlap.

Usage:
    orchestrator = AllocationOrchestrator(
        ledger_store=SqlLedgerStore(get_session_factory()),
        quote_adapter=QuoteOracleAdapter(oracle, labour_sku="LABOUR"),
        currency="USD",
    )
    breakdown = await orchestrator.compute_breakdown(request)
"""

from __future__ import annotations

import asyncio
import time
from uuid import UUID, uuid4

from pricing_engines.ledger_reconciler import LedgerReconciler
from pricing_kernel.domain.breakdown import PriceBreakdown
from pricing_kernel.domain.values import Currency
from pricing_kernel.domain.work_order import (
    CalculateRequest,
    Charge,
    Item,
    WorkOrderEntities,
    is_placed,
)
from pricing_kernel.exceptions import ConsistencyError, PricingError
from pricing_kernel.logging_config import LogContext, get_logger
from pricing_services.ledger_store import LedgerStore
from pricing_services.quote_service import QuoteOracleAdapter
from pricing_services.validation import validate_placed_entities, validate_request

logger = get_logger("services.allocation_orchestrator")


def placed_entities(stored: WorkOrderEntities) -> WorkOrderEntities:
    """The stored entities that sit on real (non-draft) order lines."""
    return WorkOrderEntities(
        items=tuple(item for item in stored.items if is_placed(item.line_ref)),
        hourly_charges=tuple(c for c in stored.hourly_charges if is_placed(c.line_ref)),
        fixed_charges=tuple(c for c in stored.fixed_charges if is_placed(c.line_ref)),
    )


class AllocationOrchestrator:
    """
    Compute price breakdowns for work orders.

    Contract:
        ``compute_breakdown`` is a pure function of the request plus the
        ledger and oracle state at call time.  It never writes.
    """

    def __init__(
        self,
        ledger_store: LedgerStore,
        quote_adapter: QuoteOracleAdapter,
        currency: Currency | str,
        reconciler: LedgerReconciler | None = None,
    ):
        self._ledger_store = ledger_store
        self._quote_adapter = quote_adapter
        self._currency = Currency(currency) if isinstance(currency, str) else currency
        self._reconciler = reconciler or LedgerReconciler()

    async def compute_breakdown(self, request: CalculateRequest) -> PriceBreakdown:
        """Price every item and charge of ``request``."""
        correlation_id = LogContext.get_all().get("correlation_id") or str(uuid4())
        with LogContext.bind(correlation_id=correlation_id, work_order_name=request.name):
            t0 = time.monotonic()
            try:
                breakdown = await self._compute(request)
            except PricingError as exc:
                logger.warning("breakdown_failed", extra={
                    "error_code": exc.code,
                    "error": str(exc),
                })
                raise

            logger.info("breakdown_computed", extra={
                "item_count": len(breakdown.item_prices),
                "charge_count": len(breakdown.charge_prices),
                "subtotal": str(breakdown.subtotal.amount),
                "total": str(breakdown.total.amount),
                "paid": str(breakdown.paid.amount),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            })
            return breakdown

    async def _compute(self, request: CalculateRequest) -> PriceBreakdown:
        validate_request(request)
        currency = Currency(request.currency) if request.currency else self._currency

        if request.name is None:
            logger.debug("breakdown_new_work_order")
            quoted = await self._quote_adapter.quote(
                request.items, request.charges, request.discount, currency
            )
            merged = PriceBreakdown.zero(currency).merge(quoted)
        else:
            work_order_id = await asyncio.to_thread(
                self._ledger_store.get_work_order_id, request.name
            )
            stored = await asyncio.to_thread(
                self._ledger_store.get_items_and_charges, work_order_id
            )
            validate_placed_entities(request, stored)

            placed = placed_entities(stored)
            placed_uuids = {e.uuid for e in (*placed.items, *placed.charges)}
            new_items: tuple[Item, ...] = tuple(
                item for item in request.items if item.uuid not in placed_uuids
            )
            new_charges: tuple[Charge, ...] = tuple(
                charge for charge in request.charges if charge.uuid not in placed_uuids
            )

            logger.info("breakdown_partitioned", extra={
                "placed_count": len(placed_uuids),
                "new_item_count": len(new_items),
                "new_charge_count": len(new_charges),
            })

            ledger_breakdown, quoted = await asyncio.gather(
                self._reconcile(work_order_id, placed, currency),
                self._quote_adapter.quote(new_items, new_charges, request.discount, currency),
            )
            merged = ledger_breakdown.merge(quoted)

        self._check_complete(request, merged)
        return merged

    async def _reconcile(
        self,
        work_order_id: UUID,
        placed: WorkOrderEntities,
        currency: Currency,
    ) -> PriceBreakdown:
        if not placed.items and not placed.charges:
            return PriceBreakdown.zero(currency)

        lines = await asyncio.to_thread(
            self._ledger_store.get_order_lines_for_work_order, work_order_id
        )
        order_refs = sorted({line.order_ref for line in lines})
        orders = await asyncio.gather(
            *(asyncio.to_thread(self._ledger_store.get_order, ref) for ref in order_refs)
        )

        return self._reconciler.reconcile(
            lines=lines,
            orders={order.order_ref: order for order in orders},
            entities=placed,
            currency=currency,
        )

    @staticmethod
    def _check_complete(request: CalculateRequest, breakdown: PriceBreakdown) -> None:
        expected_items = {item.uuid for item in request.items}
        expected_charges = {charge.uuid for charge in request.charges}
        if set(breakdown.item_prices) != expected_items:
            raise ConsistencyError("Breakdown item prices do not match the request items")
        if set(breakdown.charge_prices) != expected_charges:
            raise ConsistencyError("Breakdown charge prices do not match the request charges")
