"""
Tests for Allocation Engine.

Covers:
- Pro-rata allocation (discount spread over quote lines)
- Quantity countdown allocation (line price spread over item records)
- Rounding residuals and conservation
- Edge cases and error handling
"""

import pytest
from decimal import Decimal

from pricing_engines.allocation import (
    AllocationEngine,
    AllocationMethod,
    AllocationTarget,
)
from pricing_kernel.domain.values import Money


def usd(amount: str) -> Money:
    return Money.of(amount, "USD")


class TestProRataAllocation:
    """Tests for pro-rata allocation by eligible amount."""

    def setup_method(self):
        self.engine = AllocationEngine()

    def test_simple_prorata(self):
        """Allocates proportionally by eligible amount."""
        result = self.engine.allocate(
            amount=usd("1000.00"),
            targets=[
                AllocationTarget(target_id="line-1", eligible_amount=usd("300.00")),
                AllocationTarget(target_id="line-2", eligible_amount=usd("700.00")),
            ],
            method=AllocationMethod.PRORATA,
        )

        assert result.method == AllocationMethod.PRORATA
        assert result.is_fully_allocated
        assert result.lines[0].allocated == usd("300.00")
        assert result.lines[1].allocated == usd("700.00")

    def test_prorata_residual_on_last_target(self):
        """Half-up shares; the last target takes whatever is left."""
        result = self.engine.allocate_prorata(
            usd("100.00"),
            [
                AllocationTarget(target_id="a", eligible_amount=usd("33.33")),
                AllocationTarget(target_id="b", eligible_amount=usd("33.33")),
                AllocationTarget(target_id="c", eligible_amount=usd("33.34")),
            ],
        )

        assert result.by_target() == {
            "a": usd("33.33"),
            "b": usd("33.33"),
            "c": usd("33.34"),
        }
        assert result.total_allocated == usd("100.00")

    def test_prorata_split_of_odd_cent(self):
        """A cent that cannot be split evenly lands on the last target."""
        result = self.engine.allocate_prorata(
            usd("0.05"),
            [
                AllocationTarget(target_id="a", eligible_amount=usd("10.00")),
                AllocationTarget(target_id="b", eligible_amount=usd("10.00")),
            ],
        )

        assert result.lines[0].allocated == usd("0.03")
        assert result.lines[1].allocated == usd("0.02")

    def test_zero_eligible_total_is_unallocated(self):
        """Nothing to weigh by: every target gets zero."""
        result = self.engine.allocate_prorata(
            usd("10.00"),
            [
                AllocationTarget(target_id="a", eligible_amount=usd("0")),
                AllocationTarget(target_id="b", eligible_amount=usd("0")),
            ],
        )

        assert all(line.allocated.is_zero for line in result.lines)
        assert result.unallocated == usd("10.00")
        assert not result.is_fully_allocated

    def test_missing_eligible_amount(self):
        """Pro-rata needs an eligible amount on every target."""
        with pytest.raises(ValueError, match="missing eligible_amount"):
            self.engine.allocate_prorata(usd("10.00"), [AllocationTarget(target_id="a")])

    def test_currency_mismatch(self):
        with pytest.raises(ValueError, match="Currency mismatch"):
            self.engine.allocate_prorata(
                usd("10.00"),
                [AllocationTarget(target_id="a", eligible_amount=Money.of("5", "CAD"))],
            )


class TestQuantityAllocation:
    """Tests for the quantity countdown."""

    def setup_method(self):
        self.engine = AllocationEngine()

    def test_first_unit_takes_rounding_excess(self):
        """10.00 over three single units prices 3.34 / 3.33 / 3.33."""
        result = self.engine.allocate_by_quantity(
            usd("10.00"),
            [AllocationTarget(target_id=name, quantity=1) for name in ("a", "b", "c")],
        )

        assert [line.allocated for line in result.lines] == [
            usd("3.34"),
            usd("3.33"),
            usd("3.33"),
        ]
        assert result.is_fully_allocated

    def test_weighted_by_quantity(self):
        """Shares follow the target quantities."""
        result = self.engine.allocate_by_quantity(
            usd("10.00"),
            [
                AllocationTarget(target_id="a", quantity=1),
                AllocationTarget(target_id="b", quantity=3),
            ],
        )

        assert result.by_target() == {"a": usd("2.50"), "b": usd("7.50")}

    def test_single_target_takes_everything(self):
        result = self.engine.allocate_by_quantity(
            usd("49.99"), [AllocationTarget(target_id="a", quantity=7)]
        )

        assert result.by_target() == {"a": usd("49.99")}

    def test_zero_quantities_split_by_target_count(self):
        """Service lines without quantity are split over the remaining targets."""
        result = self.engine.allocate_by_quantity(
            usd("10.00"),
            [AllocationTarget(target_id=name, quantity=0) for name in ("a", "b", "c")],
        )

        assert [line.allocated for line in result.lines] == [
            usd("3.34"),
            usd("3.33"),
            usd("3.33"),
        ]

    def test_never_overshoots_remaining(self):
        """A ceiling share is capped at the amount still undistributed."""
        result = self.engine.allocate_by_quantity(
            usd("0.01"),
            [AllocationTarget(target_id=name, quantity=1) for name in ("a", "b", "c")],
        )

        assert [line.allocated for line in result.lines] == [
            usd("0.01"),
            usd("0"),
            usd("0"),
        ]
        assert all(not line.allocated.is_negative for line in result.lines)

    def test_zero_amount(self):
        result = self.engine.allocate_by_quantity(
            usd("0"), [AllocationTarget(target_id="a", quantity=2)]
        )

        assert result.lines[0].allocated.is_zero


class TestAllocationEdgeCases:

    def setup_method(self):
        self.engine = AllocationEngine()

    def test_no_targets(self, captured_logs):
        """Without targets everything stays unallocated."""
        result = self.engine.allocate(
            amount=usd("5.00"), targets=[], method=AllocationMethod.QUANTITY
        )

        assert result.lines == ()
        assert result.unallocated == usd("5.00")
        assert any(r["message"] == "allocation_no_targets" for r in captured_logs())

    def test_trace_emitted(self, captured_logs):
        """Each allocation emits a PRICING_ENGINE_TRACE record."""
        self.engine.allocate(
            amount=usd("1.00"),
            targets=[AllocationTarget(target_id="a")],
            method=AllocationMethod.QUANTITY,
        )

        traces = [r for r in captured_logs() if r["message"] == "PRICING_ENGINE_TRACE"]
        assert traces
        assert traces[0]["engine_name"] == "allocation"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_results_deterministic(self):
        targets = [
            AllocationTarget(target_id="a", eligible_amount=usd("1.00")),
            AllocationTarget(target_id="b", eligible_amount=usd("2.00")),
        ]
        first = self.engine.allocate_prorata(usd("1.00"), targets)
        second = self.engine.allocate_prorata(usd("1.00"), targets)

        assert first == second
        assert first.lines[0].allocated.amount == Decimal("0.33")
