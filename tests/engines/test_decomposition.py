"""
Tests for the line decomposition rule shared by the quote and ledger paths.

Covers:
- Absorbed charges subtracted from the item price
- Discount factor scaling and ceiling rounding of charges
- Zero original total guard
- Clamping when charges exceed the line
- Quantity countdown over item records sharing a line
- Charge-only lines
"""

from uuid import uuid4

from pricing_engines.decomposition import decompose_line
from pricing_kernel.domain.values import Currency, Money
from pricing_kernel.domain.work_order import FixedCharge, HourlyCharge, Item

USD = Currency("USD")


def usd(amount: str) -> Money:
    return Money.of(amount, USD)


def item(quantity: int = 1, absorb: bool = True) -> Item:
    return Item(uuid=uuid4(), product_ref="service", quantity=quantity, absorb_charges=absorb)


class TestAbsorbedCharges:

    def test_fixed_charge_absorbed_into_item(self):
        """A 20.00 line with a 5.00 absorbed charge: item 15.00, charge 5.00."""
        absorbing = item()
        charge = FixedCharge(uuid=uuid4(), amount="5.00", parent_item_uuid=absorbing.uuid)

        result = decompose_line(
            original_total=usd("20.00"),
            discounted_total=usd("20.00"),
            items=[absorbing],
            charges=[charge],
        )

        assert result.item_prices == {absorbing.uuid: usd("15.00")}
        assert result.charge_prices == {charge.uuid: usd("5.00")}
        assert result.total(USD) == usd("20.00")
        assert not result.clamped

    def test_discount_factor_scales_charges(self):
        """A 10% line discount reduces the absorbed charge by 10% too."""
        absorbing = item()
        charge = HourlyCharge(uuid=uuid4(), rate="10", hours="2", parent_item_uuid=absorbing.uuid)

        result = decompose_line(
            original_total=usd("100.00"),
            discounted_total=usd("90.00"),
            items=[absorbing],
            charges=[charge],
        )

        assert result.charge_prices[charge.uuid] == usd("18.00")
        assert result.item_prices[absorbing.uuid] == usd("72.00")

    def test_scaled_charge_rounds_up(self):
        """10.00 x 2/3 is 6.666..., priced at 6.67; the item takes the rest."""
        absorbing = item()
        charge = FixedCharge(uuid=uuid4(), amount="10.00", parent_item_uuid=absorbing.uuid)

        result = decompose_line(
            original_total=usd("30.00"),
            discounted_total=usd("20.00"),
            items=[absorbing],
            charges=[charge],
        )

        assert result.charge_prices[charge.uuid] == usd("6.67")
        assert result.item_prices[absorbing.uuid] == usd("13.33")
        assert result.total(USD) == usd("20.00")


class TestGuards:

    def test_zero_original_total(self):
        """No division by zero; the factor defaults to 1."""
        plain = item(absorb=False)

        result = decompose_line(
            original_total=usd("0"),
            discounted_total=usd("0"),
            items=[plain],
            charges=[],
        )

        assert result.item_prices == {plain.uuid: usd("0")}

    def test_charges_exceeding_line_clamp_item(self, captured_logs):
        """The item never goes negative; the clamp is reported."""
        absorbing = item()
        charge = FixedCharge(uuid=uuid4(), amount="15.00", parent_item_uuid=absorbing.uuid)

        result = decompose_line(
            original_total=usd("10.00"),
            discounted_total=usd("10.00"),
            items=[absorbing],
            charges=[charge],
        )

        assert result.item_prices[absorbing.uuid] == usd("0")
        assert result.charge_prices[charge.uuid] == usd("15.00")
        assert result.clamped
        assert any(
            r["message"] == "line_charges_exceed_line_total" for r in captured_logs()
        )


class TestSharedLines:

    def test_items_sharing_a_line(self):
        """10.00 over three single units: 3.34, 3.33, 3.33."""
        units = [item(absorb=False) for _ in range(3)]

        result = decompose_line(
            original_total=usd("10.00"),
            discounted_total=usd("10.00"),
            items=units,
            charges=[],
        )

        assert [result.item_prices[u.uuid] for u in units] == [
            usd("3.34"),
            usd("3.33"),
            usd("3.33"),
        ]

    def test_charge_only_line(self):
        """Without items, the last charge takes what the others leave."""
        first = FixedCharge(uuid=uuid4(), amount="4.00")
        last = FixedCharge(uuid=uuid4(), amount="6.00")

        result = decompose_line(
            original_total=usd("10.00"),
            discounted_total=usd("9.00"),
            items=[],
            charges=[first, last],
        )

        assert result.charge_prices == {first.uuid: usd("3.60"), last.uuid: usd("5.40")}
        assert result.item_prices == {}

    def test_single_custom_charge_line(self):
        charge = HourlyCharge(uuid=uuid4(), rate="33.333", hours="1")

        result = decompose_line(
            original_total=usd("33.34"),
            discounted_total=usd("30.00"),
            items=[],
            charges=[charge],
        )

        assert result.charge_prices == {charge.uuid: usd("30.00")}
