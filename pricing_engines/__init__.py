"""
Module: pricing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    pricing_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel (domain, exceptions, logging_config) and
    sibling engine modules.  MUST NOT import pricing_services.

Invariants enforced:
    - Decimal-only arithmetic; floats are refused by the domain types.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    The reconciler, quote decomposition and allocation entry points are
    traced via ``@traced_engine`` (see ``pricing_engines.tracer``), emitting
    PRICING_ENGINE_TRACE records with an input fingerprint and duration.
"""

from pricing_engines.absorption import (
    absorbed_charges_by_item,
    is_absorbed,
    resolve_absorption,
)
from pricing_engines.allocation import (
    AllocationEngine,
    AllocationLine,
    AllocationMethod,
    AllocationResult,
    AllocationTarget,
)
from pricing_engines.decomposition import LineDecomposition, decompose_line
from pricing_engines.ledger_reconciler import LedgerReconciler
from pricing_engines.markers import (
    DecodedLine,
    LineMarker,
    MarkerKind,
    decode_attributes,
    parse_marker_key,
)
from pricing_engines.quote import QuoteEngine, unique_charge_names
from pricing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "AllocationEngine",
    "AllocationLine",
    "AllocationMethod",
    "AllocationResult",
    "AllocationTarget",
    "DecodedLine",
    "LedgerReconciler",
    "LineDecomposition",
    "LineMarker",
    "MarkerKind",
    "QuoteEngine",
    "absorbed_charges_by_item",
    "compute_input_fingerprint",
    "decode_attributes",
    "decompose_line",
    "is_absorbed",
    "parse_marker_key",
    "resolve_absorption",
    "traced_engine",
    "unique_charge_names",
]
