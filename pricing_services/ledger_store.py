"""
pricing_services.ledger_store -- Read-only access to placed orders.

Responsibility:
    The ledger port the orchestrator reads through, and ``SqlLedgerStore``,
    its SQLAlchemy implementation on top of ``LedgerSelector``.

Architecture position:
    Services -- I/O boundary.  Methods are blocking; the orchestrator runs
    them in worker threads.

Invariants enforced:
    - One short-lived session per call; nothing is ever written.
    - Unknown keys raise typed NotFoundErrors instead of returning None.

Failure modes:
    - WorkOrderNotFoundError for an unknown work order name.
    - OrderNotFoundError for an unknown order reference.
    - SQLAlchemy errors propagate unchanged.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from pricing_kernel.domain.ledger import LedgerOrder, LedgerOrderLine
from pricing_kernel.domain.work_order import WorkOrderEntities
from pricing_kernel.exceptions import OrderNotFoundError, WorkOrderNotFoundError
from pricing_kernel.logging_config import get_logger
from pricing_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.ledger_store")


@runtime_checkable
class LedgerStore(Protocol):
    """Protocol for the read-only ledger accessors.

    Implementations: SqlLedgerStore.
    """

    def get_work_order_id(self, name: str) -> UUID:
        """Raises WorkOrderNotFoundError for an unknown name."""
        ...

    def get_items_and_charges(self, work_order_id: UUID) -> WorkOrderEntities:
        ...

    def get_order_lines_for_work_order(self, work_order_id: UUID) -> list[LedgerOrderLine]:
        ...

    def get_order(self, order_ref: str) -> LedgerOrder:
        """Raises OrderNotFoundError for an unknown reference."""
        ...


class SqlLedgerStore:
    """LedgerStore backed by the ORM ledger tables."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_work_order_id(self, name: str) -> UUID:
        with self._session_factory() as session:
            work_order_id = LedgerSelector(session).get_work_order_id(name)
        if work_order_id is None:
            logger.info("work_order_not_found", extra={"name": name})
            raise WorkOrderNotFoundError(name)
        return work_order_id

    def get_items_and_charges(self, work_order_id: UUID) -> WorkOrderEntities:
        with self._session_factory() as session:
            return LedgerSelector(session).get_items_and_charges(work_order_id)

    def get_order_lines_for_work_order(self, work_order_id: UUID) -> list[LedgerOrderLine]:
        with self._session_factory() as session:
            return LedgerSelector(session).get_order_lines_for_work_order(work_order_id)

    def get_order(self, order_ref: str) -> LedgerOrder:
        with self._session_factory() as session:
            order = LedgerSelector(session).get_order(order_ref)
        if order is None:
            logger.warning("order_not_found", extra={"order_ref": order_ref})
            raise OrderNotFoundError(order_ref)
        return order
