"""
Pricing configuration schema.

Frozen dataclasses the YAML configuration is parsed into.  The loader
builds them; ``get_active_config()`` is the only way runtime code obtains
one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class CatalogConfig:
    """Prices and tax rate for the in-process catalog oracle."""

    tax_rate: Decimal = Decimal("0")
    prices: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PricingConfig:
    """Runtime configuration of the pricing engine."""

    currency: str
    labour_sku: str | None = None
    database_url: str = "sqlite://"
    log_level: str = "INFO"
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    checksum: str = ""
