"""
Module: pricing_services
Responsibility:
    I/O boundary of the pricing engine: the quote oracle port and adapter,
    the in-process catalog oracle, the ledger store, request validation and
    the allocation orchestrator that ties them together.
"""

from pricing_services.allocation_orchestrator import AllocationOrchestrator, placed_entities
from pricing_services.ledger_store import LedgerStore, SqlLedgerStore
from pricing_services.quote_oracle import CatalogQuoteOracle, QuoteOracle
from pricing_services.quote_service import QuoteOracleAdapter
from pricing_services.request_document import parse_calculate_request
from pricing_services.validation import validate_placed_entities, validate_request

__all__ = [
    "AllocationOrchestrator",
    "CatalogQuoteOracle",
    "LedgerStore",
    "QuoteOracle",
    "QuoteOracleAdapter",
    "SqlLedgerStore",
    "parse_calculate_request",
    "placed_entities",
    "validate_placed_entities",
    "validate_request",
]
