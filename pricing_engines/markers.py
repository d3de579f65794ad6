"""
Module: pricing_engines.markers
Responsibility:
    Encode and decode the correlation markers carried in quote line
    attributes, so a quote response can be mapped back to the items and
    charges that produced it without relying on line order.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Wire format (attribute keys):
    _wm_item_uuid:<uuid>                      item on this line
    _wm_hourly_charge_uuid:<uuid>             hourly charge on this line
    _wm_fixed_charge_uuid:<uuid>              fixed charge on this line
    <charge marker key>:absorbed_into         charge absorbed by an item on this line
    <charge marker key>:<attribute>           other attributes of an absorbed charge

Invariants enforced:
    - A key is a primary marker only if its prefix is known and the rest is
      a bare uuid (no further ':').
    - Decoding never raises on unknown or malformed keys; it skips them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from pricing_kernel.domain.work_order import Charge, ChargeKind, Item
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.markers")

LINKED_TO_ITEM_ATTRIBUTE = "_wm_linked_to_item_uuid"
SKU_ATTRIBUTE = "_wm_sku"
ABSORBED_INTO_SUFFIX = "absorbed_into"


class MarkerKind(str, Enum):
    """Which kind of entity a marker points at."""

    ITEM = "item"
    HOURLY_CHARGE = "hourly_charge"
    FIXED_CHARGE = "fixed_charge"

    @property
    def prefix(self) -> str:
        return f"_wm_{self.value}_uuid:"

    @classmethod
    def for_charge(cls, charge: Charge) -> MarkerKind:
        if charge.kind is ChargeKind.HOURLY:
            return cls.HOURLY_CHARGE
        return cls.FIXED_CHARGE


@dataclass(frozen=True)
class LineMarker:
    """Opaque correlation token for one item or charge."""

    kind: MarkerKind
    uuid: UUID

    @classmethod
    def for_item(cls, item: Item) -> LineMarker:
        return cls(MarkerKind.ITEM, item.uuid)

    @classmethod
    def for_charge(cls, charge: Charge) -> LineMarker:
        return cls(MarkerKind.for_charge(charge), charge.uuid)

    @property
    def key(self) -> str:
        return f"{self.kind.prefix}{self.uuid}"

    @property
    def is_charge(self) -> bool:
        return self.kind is not MarkerKind.ITEM

    def sub_key(self, name: str) -> str:
        """Key of an attribute that belongs to this entity on another entity's line."""
        return f"{self.key}:{name}"

    def __str__(self) -> str:
        return self.key


def parse_marker_key(key: str) -> LineMarker | None:
    """
    The marker a primary key names, or None.

    Sub-keys (``<marker>:<name>``) and keys whose uuid does not parse are
    not primary markers.
    """
    for kind in MarkerKind:
        if not key.startswith(kind.prefix):
            continue
        rest = key[len(kind.prefix):]
        if ":" in rest:
            return None
        try:
            return LineMarker(kind, UUID(rest))
        except ValueError:
            logger.warning("marker_malformed_uuid", extra={"key": key})
            return None
    return None


@dataclass(frozen=True)
class DecodedLine:
    """
    What a quoted line's attributes say about its contents.

    ``absorbed`` maps an absorbed charge's marker to the uuid of the item
    that absorbs it.
    """

    markers: tuple[LineMarker, ...] = ()
    absorbed: dict[LineMarker, UUID] = field(default_factory=dict)

    @property
    def item_markers(self) -> tuple[LineMarker, ...]:
        return tuple(m for m in self.markers if m.kind is MarkerKind.ITEM)

    @property
    def charge_markers(self) -> tuple[LineMarker, ...]:
        return tuple(m for m in self.markers if m.is_charge)

    @property
    def is_empty(self) -> bool:
        return not self.markers and not self.absorbed


def decode_attributes(attributes: Mapping[str, str]) -> DecodedLine:
    """Extract primary and absorbed-into markers from line attributes."""
    markers: list[LineMarker] = []
    absorbed: dict[LineMarker, UUID] = {}
    suffix = f":{ABSORBED_INTO_SUFFIX}"

    for key, value in attributes.items():
        marker = parse_marker_key(key)
        if marker is not None:
            markers.append(marker)
            continue

        if not key.endswith(suffix):
            continue
        charge_marker = parse_marker_key(key[: -len(suffix)])
        if charge_marker is None or not charge_marker.is_charge:
            continue
        try:
            absorbed[charge_marker] = UUID(value)
        except ValueError:
            logger.warning("marker_malformed_absorbed_into", extra={"key": key, "value": value})

    return DecodedLine(markers=tuple(markers), absorbed=absorbed)
