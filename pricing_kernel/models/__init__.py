"""ORM models for the work-order ledger."""

from pricing_kernel.models.commercial_order import CommercialOrder, CommercialOrderLine
from pricing_kernel.models.work_order import (
    WorkOrder,
    WorkOrderFixedCharge,
    WorkOrderHourlyCharge,
    WorkOrderItem,
)

__all__ = [
    "CommercialOrder",
    "CommercialOrderLine",
    "WorkOrder",
    "WorkOrderFixedCharge",
    "WorkOrderHourlyCharge",
    "WorkOrderItem",
]
