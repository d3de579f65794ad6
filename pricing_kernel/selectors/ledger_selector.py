"""
Module: pricing_kernel.selectors.ledger_selector
Responsibility: Read-only queries over the work-order ledger: resolving a
    work order by name, loading its stored items and charges, and reading
    the placed commercial order lines and orders those entities point at.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants enforced:
    - Only non-draft line references are followed to the order lines table;
      draft lines are never decomposed from the ledger.
    - Every result is a frozen domain DTO with Decimal amounts.
    - Results are deterministically ordered (position, then line_ref).

Failure modes:
    - get_work_order_id() and get_order() return None for unknown keys; the
      caller decides which NotFoundError to raise.
"""

from uuid import UUID

from sqlalchemy import select, union
from sqlalchemy.orm import Session

from pricing_kernel.domain.ledger import LedgerOrder, LedgerOrderLine
from pricing_kernel.domain.work_order import (
    FixedCharge,
    HourlyCharge,
    Item,
    LineRef,
    WorkOrderEntities,
)
from pricing_kernel.models.commercial_order import CommercialOrder, CommercialOrderLine
from pricing_kernel.models.work_order import (
    WorkOrder,
    WorkOrderFixedCharge,
    WorkOrderHourlyCharge,
    WorkOrderItem,
)
from pricing_kernel.selectors.base import BaseSelector


def _line_ref(row) -> LineRef | None:
    if row.line_ref is None:
        return None
    return LineRef(
        ref=row.line_ref,
        order_ref=row.line_order_ref,
        is_draft=row.line_is_draft,
    )


class LedgerSelector(BaseSelector[CommercialOrderLine]):
    """
    Selector for the stored state a price breakdown is reconciled against.

    Contract:
        Pure reads.  The ids used for items and charges are the entity
        uuids callers put in calculate requests.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_work_order_id(self, name: str) -> UUID | None:
        """Id of the work order called ``name``, or None."""
        return self.session.execute(
            select(WorkOrder.id).where(WorkOrder.name == name)
        ).scalar_one_or_none()

    def get_items_and_charges(self, work_order_id: UUID) -> WorkOrderEntities:
        """Stored items, hourly charges and fixed charges of a work order."""
        items = self.session.execute(
            select(WorkOrderItem)
            .where(WorkOrderItem.work_order_id == work_order_id)
            .order_by(WorkOrderItem.position, WorkOrderItem.id)
        ).scalars().all()

        hourly = self.session.execute(
            select(WorkOrderHourlyCharge)
            .where(WorkOrderHourlyCharge.work_order_id == work_order_id)
            .order_by(WorkOrderHourlyCharge.position, WorkOrderHourlyCharge.id)
        ).scalars().all()

        fixed = self.session.execute(
            select(WorkOrderFixedCharge)
            .where(WorkOrderFixedCharge.work_order_id == work_order_id)
            .order_by(WorkOrderFixedCharge.position, WorkOrderFixedCharge.id)
        ).scalars().all()

        return WorkOrderEntities(
            items=tuple(
                Item(
                    uuid=row.id,
                    product_ref=row.product_ref,
                    quantity=row.quantity,
                    absorb_charges=row.absorb_charges,
                    line_ref=_line_ref(row),
                )
                for row in items
            ),
            hourly_charges=tuple(
                HourlyCharge(
                    uuid=row.id,
                    name=row.name,
                    rate=row.rate,
                    hours=row.hours,
                    parent_item_uuid=row.parent_item_id,
                    line_ref=_line_ref(row),
                )
                for row in hourly
            ),
            fixed_charges=tuple(
                FixedCharge(
                    uuid=row.id,
                    name=row.name,
                    amount=row.amount,
                    parent_item_uuid=row.parent_item_id,
                    line_ref=_line_ref(row),
                )
                for row in fixed
            ),
        )

    def get_order_lines_for_work_order(self, work_order_id: UUID) -> list[LedgerOrderLine]:
        """
        Every placed order line referenced by an item or charge of the
        work order, each exactly once.
        """
        referenced = union(
            *(
                select(model.line_ref).where(
                    model.work_order_id == work_order_id,
                    model.line_ref.is_not(None),
                    model.line_is_draft.is_(False),
                )
                for model in (WorkOrderItem, WorkOrderHourlyCharge, WorkOrderFixedCharge)
            )
        ).subquery()

        rows = self.session.execute(
            select(CommercialOrderLine)
            .where(CommercialOrderLine.line_ref.in_(select(referenced.c.line_ref)))
            .order_by(CommercialOrderLine.line_ref)
        ).scalars().all()

        return [
            LedgerOrderLine(
                line_ref=row.line_ref,
                order_ref=row.order_ref,
                unit_price=row.unit_price,
                discounted_unit_price=row.discounted_unit_price,
                quantity=row.quantity,
                total_tax=row.total_tax,
            )
            for row in rows
        ]

    def get_order(self, order_ref: str) -> LedgerOrder | None:
        """Totals of the order ``order_ref``, or None."""
        row = self.session.execute(
            select(CommercialOrder).where(CommercialOrder.order_ref == order_ref)
        ).scalar_one_or_none()
        if row is None:
            return None
        return LedgerOrder(
            order_ref=row.order_ref,
            total=row.total,
            outstanding=row.outstanding,
        )
