"""
Module: pricing_engines.allocation
Responsibility:
    Split a monetary amount across several targets with deterministic
    rounding: pro-rata to eligible amounts (order-level discounts spread over
    quote lines) or counted down by quantity (a line's item price spread over
    the item records sharing the line).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel/domain and pricing_kernel/logging_config.

Invariants enforced:
    - Conservation: the allocated amounts always sum exactly to the source
      amount; the rounding residual lands on a single target.
    - Every allocated amount is rounded to the currency's minor unit.
    - PRORATA counts down half-up shares of the still-unallocated amount
      against the still-unweighted eligible total; the last target takes
      the residual.  While the amount does not exceed the eligible total,
      no target receives more than its eligible amount.
    - QUANTITY rounds each share up (ceiling) against the still-undistributed
      quantity, so the first target receives any rounding excess and the
      last target receives exactly what is left.

Failure modes:
    - ValueError on currency mismatch between source and targets.
    - ValueError on a missing eligible_amount for the pro-rata method.
    - ValueError on an unknown allocation method.

Usage:
    from pricing_engines.allocation import AllocationEngine, AllocationTarget, AllocationMethod
    from pricing_kernel.domain.values import Money

    engine = AllocationEngine()
    result = engine.allocate(
        amount=Money.of("10.00", "USD"),
        targets=[AllocationTarget(target_id=uuid, quantity=1) for uuid in uuids],
        method=AllocationMethod.QUANTITY,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.values import Money
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


class AllocationMethod(str, Enum):
    """Method for allocating amounts."""

    PRORATA = "prorata"  # By relative eligible amount
    QUANTITY = "quantity"  # Countdown over remaining quantity


@dataclass(frozen=True)
class AllocationTarget:
    """
    A target that can receive an allocation.

    Contract:
        ``eligible_amount`` weighs PRORATA allocations; ``quantity`` weighs
        QUANTITY allocations.
    Non-goals:
        - Does not validate currency of ``eligible_amount``; the engine
          performs that check at allocation time.
    """

    target_id: str | UUID
    eligible_amount: Money | None = None
    quantity: int = 1


@dataclass(frozen=True)
class AllocationLine:
    """Result of allocation to a single target."""

    target_id: str | UUID
    allocated: Money


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation result.

    Guarantees:
        - ``total_allocated + unallocated == source_amount``.
        - ``unallocated`` is non-zero only when there was nothing to weigh
          the allocation by (no targets, or zero eligible total).
    """

    source_amount: Money
    method: AllocationMethod
    lines: tuple[AllocationLine, ...]
    total_allocated: Money
    unallocated: Money

    @property
    def is_fully_allocated(self) -> bool:
        return self.unallocated.is_zero

    def by_target(self) -> dict[str | UUID, Money]:
        return {line.target_id: line.allocated for line in self.lines}


class AllocationEngine:
    """
    Allocate amounts across multiple targets.

    Contract:
        Pure functions with deterministic rounding.
        No I/O, no database access.
    Guarantees:
        - All intermediate calculations use full precision.
        - Each allocated amount is rounded exactly once.
        - The total allocated always equals the source amount whenever at
          least one target can receive it.
    """

    @traced_engine("allocation", "1.0", fingerprint_fields=("amount", "method"))
    def allocate(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        method: AllocationMethod,
    ) -> AllocationResult:
        """
        Allocate amount to targets using the specified method.

        Args:
            amount: Amount to allocate.
            targets: Sequence of allocation targets, in distribution order.
            method: Allocation method to use.

        Returns:
            AllocationResult with one line per target, in target order.
        """
        logger.debug("allocation_started", extra={
            "amount": str(amount.amount),
            "currency": amount.currency.code,
            "method": method.value,
            "target_count": len(targets),
        })

        if not targets:
            logger.warning("allocation_no_targets", extra={
                "amount": str(amount.amount),
                "method": method.value,
            })
            return self._result(amount, method, [])

        match method:
            case AllocationMethod.PRORATA:
                return self._allocate_prorata(amount, targets)
            case AllocationMethod.QUANTITY:
                return self._allocate_by_quantity(amount, targets)
            case _:
                logger.error("allocation_unknown_method", extra={
                    "method": str(method),
                })
                raise ValueError(f"Unknown allocation method: {method}")

    def allocate_prorata(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
    ) -> AllocationResult:
        """Convenience method for pro-rata allocation."""
        return self.allocate(amount=amount, targets=targets, method=AllocationMethod.PRORATA)

    def allocate_by_quantity(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
    ) -> AllocationResult:
        """Convenience method for quantity countdown allocation."""
        return self.allocate(amount=amount, targets=targets, method=AllocationMethod.QUANTITY)

    def _allocate_prorata(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
    ) -> AllocationResult:
        """Allocate proportionally by eligible amount, counting both totals down."""
        total_eligible = Decimal("0")
        for target in targets:
            if target.eligible_amount is None:
                raise ValueError(
                    f"Target {target.target_id} missing eligible_amount for prorata"
                )
            if target.eligible_amount.currency != amount.currency:
                raise ValueError(
                    f"Currency mismatch: {target.eligible_amount.currency} vs {amount.currency}"
                )
            total_eligible += target.eligible_amount.amount

        zero = Money.zero(amount.currency)
        if total_eligible == Decimal("0"):
            # Nothing to weigh by, return unallocated
            return self._result(
                amount,
                AllocationMethod.PRORATA,
                [AllocationLine(target_id=t.target_id, allocated=zero) for t in targets],
            )

        lines: list[AllocationLine] = []
        remaining = amount
        remaining_eligible = total_eligible
        last = len(targets) - 1
        for i, target in enumerate(targets):
            eligible = target.eligible_amount.amount
            if i == last:
                allocated = remaining
            elif remaining_eligible == Decimal("0"):
                allocated = zero
            else:
                allocated = (remaining * eligible / remaining_eligible).round(ROUND_HALF_UP)
            remaining = remaining - allocated
            remaining_eligible -= eligible
            lines.append(AllocationLine(target_id=target.target_id, allocated=allocated))

        return self._result(amount, AllocationMethod.PRORATA, lines)

    def _allocate_by_quantity(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
    ) -> AllocationResult:
        """
        Countdown allocation.

        Each target receives ``ceil(remaining * quantity / remaining_quantity)``
        and both counters are reduced before the next target.  When the
        remaining quantity is not positive (service lines with no quantity),
        the remaining amount is split over the remaining targets instead.
        The last target receives exactly what is left.
        """
        remaining = amount
        remaining_quantity = sum(t.quantity for t in targets)
        lines: list[AllocationLine] = []
        last = len(targets) - 1

        for i, target in enumerate(targets):
            if i == last:
                allocated = remaining
            else:
                if remaining_quantity > 0:
                    share = remaining * Decimal(target.quantity) / Decimal(remaining_quantity)
                else:
                    share = remaining / Decimal(len(targets) - i)
                allocated = Money.min(share.round(ROUND_CEILING), remaining)
            lines.append(AllocationLine(target_id=target.target_id, allocated=allocated))
            remaining = remaining - allocated
            remaining_quantity -= target.quantity

        return self._result(amount, AllocationMethod.QUANTITY, lines)

    def _result(
        self,
        amount: Money,
        method: AllocationMethod,
        lines: list[AllocationLine],
    ) -> AllocationResult:
        total_allocated = Money.sum([line.allocated for line in lines], amount.currency)
        unallocated = amount - total_allocated

        assert total_allocated.amount + unallocated.amount == amount.amount, (
            f"Allocation conservation violated: "
            f"{total_allocated.amount} + {unallocated.amount} != {amount.amount}"
        )

        logger.debug("allocation_completed", extra={
            "method": method.value,
            "source_amount": str(amount.amount),
            "total_allocated": str(total_allocated.amount),
            "unallocated": str(unallocated.amount),
            "line_count": len(lines),
        })

        return AllocationResult(
            source_amount=amount,
            method=method,
            lines=tuple(lines),
            total_allocated=total_allocated,
            unallocated=unallocated,
        )
