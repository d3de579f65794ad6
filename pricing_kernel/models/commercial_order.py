"""
Module: pricing_kernel.models.commercial_order
Responsibility: ORM persistence for placed commercial orders and their
    lines, as mirrored from the storefront.  These rows are the ledger the
    reconciler decomposes; the pricing engine only ever reads them.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - order_ref is unique (uq_commercial_order_ref).
    - line_ref is unique (uq_commercial_order_line_ref).
    - Line amounts are per unit except total_tax, which covers the line.
"""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_kernel.db.base import Base


class CommercialOrder(Base):
    """A placed order with its payment state."""

    __tablename__ = "commercial_orders"

    __table_args__ = (
        UniqueConstraint("order_ref", name="uq_commercial_order_ref"),
    )

    order_ref: Mapped[str] = mapped_column(String(255), nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    total: Mapped[Decimal] = mapped_column(nullable=False)

    outstanding: Mapped[Decimal] = mapped_column(nullable=False)

    # Draft orders are mirrored too but never decomposed
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    lines: Mapped[list["CommercialOrderLine"]] = relationship(back_populates="order")

    def __repr__(self) -> str:
        return f"<CommercialOrder {self.order_ref} total={self.total}>"


class CommercialOrderLine(Base):
    """One line of a placed order."""

    __tablename__ = "commercial_order_lines"

    __table_args__ = (
        UniqueConstraint("line_ref", name="uq_commercial_order_line_ref"),
        Index("idx_commercial_order_line_order", "order_ref"),
    )

    line_ref: Mapped[str] = mapped_column(String(255), nullable=False)

    order_ref: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("commercial_orders.order_ref"),
        nullable=False,
    )

    unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    discounted_unit_price: Mapped[Decimal] = mapped_column(nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    total_tax: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    order: Mapped[CommercialOrder] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<CommercialOrderLine {self.line_ref} x{self.quantity}>"
