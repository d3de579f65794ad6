"""
pricing_config -- single public entrypoint for pricing configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``pricing_kernel`` and below
    ``pricing_services`` and the scripts.  The kernel and engines MUST
    NEVER import from ``pricing_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - The returned ``PricingConfig`` has passed validation.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PRICING_CONFIG_TRACE`` log entry carrying the source path, currency
    and checksum, tying each computed breakdown to the configuration that
    governed it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pricing_config.loader import load_config
from pricing_config.schema import CatalogConfig, PricingConfig

_logger = logging.getLogger("workorder_pricing.config")

CONFIG_ENV_VAR = "WORKORDER_PRICING_CONFIG"

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "pricing.yaml"


def get_active_config(path: Path | str | None = None) -> PricingConfig:
    """The ONLY public configuration entrypoint.

    Resolution order: the ``path`` argument, then the
    ``WORKORDER_PRICING_CONFIG`` environment variable, then
    ``config/pricing.yaml`` at the project root.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ValueError: If validation fails.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or _DEFAULT_CONFIG_PATH
    path = Path(path)

    if not path.is_file():
        raise FileNotFoundError(f"Pricing configuration not found: {path}")

    config = load_config(path)

    _logger.info(
        "PRICING_CONFIG_TRACE",
        extra={
            "trace_type": "PRICING_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": config.checksum,
            "currency": config.currency,
            "product_count": len(config.catalog.prices),
        },
    )
    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "CatalogConfig",
    "PricingConfig",
    "get_active_config",
]
