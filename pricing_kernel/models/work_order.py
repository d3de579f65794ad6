"""
Module: pricing_kernel.models.work_order
Responsibility: ORM persistence for work orders and the items, hourly
    charges and fixed charges stored against them.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/ or outer layers.

Invariants enforced:
    - Work order names are unique per ledger (uq_work_order_name).
    - Each entity row id IS the entity uuid used in calculate requests.
    - A line reference is stored as three columns (line_ref,
      line_order_ref, line_is_draft); line_ref NULL means "not ordered".

Failure modes:
    - IntegrityError on duplicate work order name.
    - IntegrityError when an entity references a missing work order.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_kernel.db.base import Base, UUIDString


class WorkOrder(Base):
    """A named work order; the unit a price breakdown is computed for."""

    __tablename__ = "work_orders"

    __table_args__ = (
        UniqueConstraint("name", name="uq_work_order_name"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    shop: Mapped[str | None] = mapped_column(String(255), nullable=True)

    items: Mapped[list["WorkOrderItem"]] = relationship(
        back_populates="work_order",
        order_by="WorkOrderItem.position",
    )
    hourly_charges: Mapped[list["WorkOrderHourlyCharge"]] = relationship(
        back_populates="work_order",
        order_by="WorkOrderHourlyCharge.position",
    )
    fixed_charges: Mapped[list["WorkOrderFixedCharge"]] = relationship(
        back_populates="work_order",
        order_by="WorkOrderFixedCharge.position",
    )

    def __repr__(self) -> str:
        return f"<WorkOrder {self.name}>"


class _LineLinked:
    """Columns shared by every entity that can sit on a commercial order line."""

    # Position within the work order, for stable ordering
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    line_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)

    line_order_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)

    line_is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class WorkOrderItem(_LineLinked, Base):
    """A sellable item on a work order."""

    __tablename__ = "work_order_items"

    __table_args__ = (
        Index("idx_work_order_item_work_order", "work_order_id"),
        Index("idx_work_order_item_line", "line_ref"),
    )

    work_order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("work_orders.id"),
        nullable=False,
    )

    product_ref: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    absorb_charges: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    work_order: Mapped[WorkOrder] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<WorkOrderItem {self.id} {self.product_ref} x{self.quantity}>"


class WorkOrderHourlyCharge(_LineLinked, Base):
    """Labour billed as hours x rate."""

    __tablename__ = "work_order_hourly_charges"

    __table_args__ = (
        Index("idx_work_order_hourly_charge_work_order", "work_order_id"),
        Index("idx_work_order_hourly_charge_line", "line_ref"),
    )

    work_order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("work_orders.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="Labour")

    rate: Mapped[Decimal] = mapped_column(nullable=False)

    hours: Mapped[Decimal] = mapped_column(nullable=False)

    parent_item_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("work_order_items.id"),
        nullable=True,
    )

    work_order: Mapped[WorkOrder] = relationship(back_populates="hourly_charges")

    def __repr__(self) -> str:
        return f"<WorkOrderHourlyCharge {self.id} {self.hours}h @ {self.rate}>"


class WorkOrderFixedCharge(_LineLinked, Base):
    """Labour billed at a fixed amount."""

    __tablename__ = "work_order_fixed_charges"

    __table_args__ = (
        Index("idx_work_order_fixed_charge_work_order", "work_order_id"),
        Index("idx_work_order_fixed_charge_line", "line_ref"),
    )

    work_order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("work_orders.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="Labour")

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    parent_item_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("work_order_items.id"),
        nullable=True,
    )

    work_order: Mapped[WorkOrder] = relationship(back_populates="fixed_charges")

    def __repr__(self) -> str:
        return f"<WorkOrderFixedCharge {self.id} {self.amount}>"
