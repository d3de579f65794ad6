"""
Pytest fixtures for the work-order pricing test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- In-memory SQLite ledger (or DATABASE_URL when set) with fresh tables per test
- A ``seed_ledger`` helper to store work orders, entities and placed orders
- Catalog oracle / orchestrator factories

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of a scratch database.  Defaults to an
  in-memory SQLite database.
"""

import json
import logging
import os
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest

from pricing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from pricing_kernel.domain.work_order import FixedCharge, HourlyCharge, Item, LineRef
from pricing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from pricing_kernel.models import (
    CommercialOrder,
    CommercialOrderLine,
    WorkOrder,
    WorkOrderFixedCharge,
    WorkOrderHourlyCharge,
    WorkOrderItem,
)
from pricing_services.allocation_orchestrator import AllocationOrchestrator
from pricing_services.ledger_store import SqlLedgerStore
from pricing_services.quote_oracle import CatalogQuoteOracle
from pricing_services.quote_service import QuoteOracleAdapter

DEFAULT_DATABASE_URL = "sqlite://"

CATALOG_PRICES = {
    "oil-change": Decimal("49.99"),
    "brake-pads": Decimal("89.50"),
    "tire-rotation": Decimal("25.00"),
    "widget": Decimal("10.00"),
    "service": Decimal("1.00"),
}


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture workorder_pricing logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "breakdown_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("workorder_pricing")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def ledger_db():
    """Fresh ledger tables for one test; yields the session factory."""
    init_engine_from_url(get_database_url())
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def ledger_store(ledger_db):
    return SqlLedgerStore(ledger_db)


@pytest.fixture
def seed_ledger(ledger_db):
    """
    Store a work order, its entities and the placed orders they sit on.

    Usage::

        work_order_id = seed_ledger(
            name="WO-1",
            items=[Item(...)],
            charges=[FixedCharge(...)],
            orders=[{"order_ref": "o-1", "total": "100", "outstanding": "25",
                     "lines": [{"line_ref": "l-1", "unit_price": "20", ...}]}],
        )
    """

    def _seed(name, items=(), charges=(), orders=()) -> UUID:
        with session_scope() as session:
            for order in orders:
                session.add(
                    CommercialOrder(
                        order_ref=order["order_ref"],
                        total=Decimal(order["total"]),
                        outstanding=Decimal(order["outstanding"]),
                    )
                )
                for line in order.get("lines", ()):
                    session.add(
                        CommercialOrderLine(
                            line_ref=line["line_ref"],
                            order_ref=order["order_ref"],
                            unit_price=Decimal(line["unit_price"]),
                            discounted_unit_price=Decimal(
                                line.get("discounted_unit_price", line["unit_price"])
                            ),
                            quantity=line["quantity"],
                            total_tax=Decimal(line.get("total_tax", "0")),
                        )
                    )
            session.flush()

            work_order = WorkOrder(name=name)
            session.add(work_order)
            session.flush()

            for position, item in enumerate(items):
                session.add(
                    WorkOrderItem(
                        id=item.uuid,
                        work_order_id=work_order.id,
                        position=position,
                        product_ref=item.product_ref,
                        quantity=item.quantity,
                        absorb_charges=item.absorb_charges,
                        **_line_columns(item.line_ref),
                    )
                )
            session.flush()

            for position, charge in enumerate(charges):
                common = dict(
                    id=charge.uuid,
                    work_order_id=work_order.id,
                    position=position,
                    name=charge.name,
                    parent_item_id=charge.parent_item_uuid,
                    **_line_columns(charge.line_ref),
                )
                if isinstance(charge, HourlyCharge):
                    session.add(WorkOrderHourlyCharge(rate=charge.rate, hours=charge.hours, **common))
                else:
                    session.add(WorkOrderFixedCharge(amount=charge.amount, **common))

            return work_order.id

    return _seed


def _line_columns(line_ref: LineRef | None) -> dict:
    if line_ref is None:
        return {"line_ref": None, "line_order_ref": None, "line_is_draft": False}
    return {
        "line_ref": line_ref.ref,
        "line_order_ref": line_ref.order_ref,
        "line_is_draft": line_ref.is_draft,
    }


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def catalog_oracle():
    return CatalogQuoteOracle(prices=CATALOG_PRICES, currency="USD")


@pytest.fixture
def quote_adapter(catalog_oracle):
    return QuoteOracleAdapter(catalog_oracle, labour_sku="LABOUR")


@pytest.fixture
def orchestrator(ledger_store, quote_adapter):
    return AllocationOrchestrator(
        ledger_store=ledger_store,
        quote_adapter=quote_adapter,
        currency="USD",
    )
