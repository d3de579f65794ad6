"""Read-only ledger selectors."""

from pricing_kernel.selectors.base import BaseSelector
from pricing_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["BaseSelector", "LedgerSelector"]
