"""
Configuration Loader (``pricing_config.loader``).

Responsibility
--------------
Loads the pricing YAML file and parses it into the frozen dataclasses of
``pricing_config.schema``.  Runtime code goes through
``pricing_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Amounts and rates are parsed to ``Decimal`` from their string form;
  YAML floats are converted through ``str`` so no binary error leaks in.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  source for configuration identity.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``currency``  -> ``KeyError`` propagates.
* Unknown currency, negative tax rate or price, bad log level
  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from pricing_config.schema import CatalogConfig, PricingConfig
from pricing_kernel.domain.currency import CurrencyRegistry


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """Parse a YAML scalar into a Decimal."""
    if isinstance(value, bool):
        raise ValueError(f"{field_name}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{field_name}: expected a number, got {value!r}") from e


def parse_catalog(data: dict[str, Any]) -> CatalogConfig:
    """Parse the ``catalog`` section."""
    tax_rate = parse_decimal(data.get("tax_rate", "0"), "catalog.tax_rate")
    if tax_rate < 0:
        raise ValueError(f"catalog.tax_rate must not be negative, got {tax_rate}")

    prices: dict[str, Decimal] = {}
    for product_ref, price in (data.get("prices") or {}).items():
        amount = parse_decimal(price, f"catalog.prices.{product_ref}")
        if amount < 0:
            raise ValueError(f"catalog.prices.{product_ref} must not be negative, got {amount}")
        prices[str(product_ref)] = amount

    return CatalogConfig(tax_rate=tax_rate, prices=prices)


def parse_config(data: dict[str, Any]) -> PricingConfig:
    """
    Parse a ``PricingConfig`` from a dict.

    Raises:
        KeyError: if ``currency`` is missing.
        ValueError: on invalid values.
    """
    currency = str(data["currency"]).upper().strip()
    if not CurrencyRegistry.is_valid(currency):
        raise ValueError(f"Unknown currency: {data['currency']!r}")

    log_level = str(data.get("log_level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Unknown log level: {data.get('log_level')!r}")

    return PricingConfig(
        currency=currency,
        labour_sku=data.get("labour_sku") or None,
        database_url=data.get("database_url", "sqlite://"),
        log_level=log_level,
        catalog=parse_catalog(data.get("catalog") or {}),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> PricingConfig:
    """Load and parse the YAML file at ``path``."""
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
