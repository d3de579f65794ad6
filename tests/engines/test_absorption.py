"""
Tests for the absorption predicate shared by the quote and ledger paths.

The same input must be resolved the same way no matter which branch
prices it.
"""

from decimal import Decimal
from uuid import uuid4

from pricing_engines.absorption import (
    absorbed_charges_by_item,
    is_absorbed,
    resolve_absorption,
)
from pricing_engines.ledger_reconciler import LedgerReconciler
from pricing_engines.quote import QuoteEngine
from pricing_kernel.domain.ledger import LedgerOrder, LedgerOrderLine
from pricing_kernel.domain.quote import DraftQuote, QuotedLine
from pricing_kernel.domain.values import Currency
from pricing_kernel.domain.work_order import (
    FixedCharge,
    HourlyCharge,
    Item,
    LineRef,
    WorkOrderEntities,
)

USD = Currency("USD")


class TestIsAbsorbed:
    """Tests for the predicate itself."""

    def setup_method(self):
        self.absorbing = Item(uuid=uuid4(), product_ref="service", quantity=1, absorb_charges=True)
        self.plain = Item(uuid=uuid4(), product_ref="widget", quantity=1)
        self.items_by_uuid = {i.uuid: i for i in (self.absorbing, self.plain)}

    def test_parent_with_flag_absorbs(self):
        charge = FixedCharge(uuid=uuid4(), amount="5", parent_item_uuid=self.absorbing.uuid)
        assert is_absorbed(charge, self.items_by_uuid)

    def test_parent_without_flag(self):
        charge = FixedCharge(uuid=uuid4(), amount="5", parent_item_uuid=self.plain.uuid)
        assert not is_absorbed(charge, self.items_by_uuid)

    def test_no_parent(self):
        charge = HourlyCharge(uuid=uuid4(), rate="10", hours="1")
        assert not is_absorbed(charge, self.items_by_uuid)

    def test_unknown_parent(self):
        charge = HourlyCharge(uuid=uuid4(), rate="10", hours="1", parent_item_uuid=uuid4())
        assert not is_absorbed(charge, self.items_by_uuid)

    def test_resolve_and_group(self):
        absorbed = FixedCharge(uuid=uuid4(), amount="5", parent_item_uuid=self.absorbing.uuid)
        linked = FixedCharge(uuid=uuid4(), amount="5", parent_item_uuid=self.plain.uuid)
        items = [self.absorbing, self.plain]

        assert resolve_absorption(items, [absorbed, linked]) == {absorbed.uuid: self.absorbing.uuid}
        assert absorbed_charges_by_item(items, [absorbed, linked]) == {
            self.absorbing.uuid: [absorbed]
        }


class TestBranchesAgree:
    """The quote and ledger branches absorb exactly the same charges."""

    def _entities(self, placed: bool):
        line = LineRef(ref="line-1", order_ref="order-1") if placed else None
        other_line = LineRef(ref="line-2", order_ref="order-1") if placed else None
        absorbing = Item(
            uuid=uuid4(), product_ref="service", quantity=1, absorb_charges=True, line_ref=line,
        )
        plain = Item(uuid=uuid4(), product_ref="widget", quantity=1, line_ref=other_line)
        charges = (
            FixedCharge(uuid=uuid4(), amount="5.00", parent_item_uuid=absorbing.uuid, line_ref=line),
            HourlyCharge(
                uuid=uuid4(), rate="10", hours="1", parent_item_uuid=plain.uuid,
                line_ref=LineRef(ref="line-3", order_ref="order-1") if placed else None,
            ),
        )
        return absorbing, plain, charges

    def test_same_absorption_map(self):
        absorbing, plain, charges = self._entities(placed=False)
        engine = QuoteEngine()
        lines = engine.build_lines([absorbing, plain], charges, USD)
        quoted = [
            QuotedLine(attributes=line.attributes, original_total="5.00", discounted_total="5.00")
            if line.product_ref == "service"
            else QuotedLine(attributes=line.attributes, original_total="10.00", discounted_total="10.00")
            for line in lines
        ]
        quote_breakdown = engine.decompose(
            quote=DraftQuote(lines=quoted, subtotal="25.00", tax="0", total="25.00"),
            items=[absorbing, plain],
            charges=charges,
            currency=USD,
        )

        placed_absorbing, placed_plain, placed_charges = self._entities(placed=True)
        ledger_breakdown = LedgerReconciler().reconcile(
            lines=[
                LedgerOrderLine("line-1", "order-1", Decimal("1.00"), Decimal("1.00"), 5),
                LedgerOrderLine("line-2", "order-1", Decimal("10.00"), Decimal("10.00"), 1),
                LedgerOrderLine("line-3", "order-1", Decimal("10.00"), Decimal("10.00"), 1),
            ],
            orders={"order-1": LedgerOrder("order-1", Decimal("25.00"), Decimal("25.00"))},
            entities=WorkOrderEntities(
                items=(placed_absorbing, placed_plain),
                hourly_charges=(placed_charges[1],),
                fixed_charges=(placed_charges[0],),
            ),
            currency=USD,
        )

        assert set(quote_breakdown.absorbed_charges) == {charges[0].uuid}
        assert set(ledger_breakdown.absorbed_charges) == {placed_charges[0].uuid}
        assert quote_breakdown.absorbed_charges[charges[0].uuid] == absorbing.uuid
        assert ledger_breakdown.absorbed_charges[placed_charges[0].uuid] == placed_absorbing.uuid
