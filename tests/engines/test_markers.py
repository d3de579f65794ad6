"""
Tests for quote line correlation markers.

Covers:
- Key encoding per entity kind
- Parsing primary keys vs sub-keys
- Decoding absorbed-into markers
- Tolerance of unknown and malformed keys
"""

from uuid import UUID, uuid4

from pricing_engines.markers import (
    ABSORBED_INTO_SUFFIX,
    LineMarker,
    MarkerKind,
    decode_attributes,
    parse_marker_key,
)
from pricing_kernel.domain.work_order import FixedCharge, HourlyCharge, Item


class TestMarkerEncoding:

    def test_item_key(self):
        item = Item(uuid=uuid4(), product_ref="widget", quantity=2)
        assert LineMarker.for_item(item).key == f"_wm_item_uuid:{item.uuid}"

    def test_charge_keys_by_kind(self):
        hourly = HourlyCharge(uuid=uuid4(), rate="10", hours="1")
        fixed = FixedCharge(uuid=uuid4(), amount="5")

        assert LineMarker.for_charge(hourly).key == f"_wm_hourly_charge_uuid:{hourly.uuid}"
        assert LineMarker.for_charge(fixed).key == f"_wm_fixed_charge_uuid:{fixed.uuid}"
        assert LineMarker.for_charge(fixed).is_charge

    def test_sub_key(self):
        marker = LineMarker(MarkerKind.FIXED_CHARGE, uuid4())
        assert marker.sub_key(ABSORBED_INTO_SUFFIX) == f"{marker.key}:absorbed_into"


class TestParseMarkerKey:

    def test_round_trips_primary_key(self):
        marker = LineMarker(MarkerKind.HOURLY_CHARGE, uuid4())
        assert parse_marker_key(marker.key) == marker

    def test_sub_key_is_not_primary(self):
        marker = LineMarker(MarkerKind.FIXED_CHARGE, uuid4())
        assert parse_marker_key(marker.sub_key("_wm_sku")) is None

    def test_unknown_prefix(self):
        assert parse_marker_key("Labour (1)") is None
        assert parse_marker_key(f"_wm_part_uuid:{uuid4()}") is None

    def test_malformed_uuid(self, captured_logs):
        assert parse_marker_key("_wm_item_uuid:not-a-uuid") is None
        assert any(r["message"] == "marker_malformed_uuid" for r in captured_logs())


class TestDecodeAttributes:

    def setup_method(self):
        self.item = LineMarker(MarkerKind.ITEM, uuid4())
        self.hourly = LineMarker(MarkerKind.HOURLY_CHARGE, uuid4())
        self.fixed = LineMarker(MarkerKind.FIXED_CHARGE, uuid4())

    def test_item_line_with_absorbed_charge(self):
        decoded = decode_attributes({
            self.item.key: "1",
            self.fixed.sub_key(ABSORBED_INTO_SUFFIX): str(self.item.uuid),
            self.fixed.sub_key("_wm_sku"): "LABOUR",
            "Labour": "5.00",
        })

        assert decoded.markers == (self.item,)
        assert decoded.item_markers == (self.item,)
        assert decoded.charge_markers == ()
        assert decoded.absorbed == {self.fixed: self.item.uuid}

    def test_charge_line(self):
        decoded = decode_attributes({
            self.hourly.key: "1",
            "_wm_linked_to_item_uuid": str(self.item.uuid),
            "_wm_sku": "LABOUR",
        })

        assert decoded.charge_markers == (self.hourly,)
        assert decoded.absorbed == {}

    def test_items_cannot_be_absorbed(self):
        decoded = decode_attributes({
            self.item.sub_key(ABSORBED_INTO_SUFFIX): str(uuid4()),
        })

        assert decoded.is_empty

    def test_malformed_absorbed_into_value_skipped(self):
        decoded = decode_attributes({
            self.item.key: "1",
            self.fixed.sub_key(ABSORBED_INTO_SUFFIX): "nope",
        })

        assert decoded.absorbed == {}
        assert decoded.markers == (self.item,)

    def test_empty(self):
        assert decode_attributes({}).is_empty
        assert decode_attributes({"note": "hello"}).is_empty

    def test_several_items_on_one_line(self):
        other = LineMarker(MarkerKind.ITEM, UUID(int=7))
        decoded = decode_attributes({self.item.key: "2", other.key: "1"})

        assert set(decoded.item_markers) == {self.item, other}
