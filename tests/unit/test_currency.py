"""
Tests for currency validation and minor-unit precision.

- Currency codes are validated against the registry at the domain boundary.
- Rounding precision is always derived from the currency's minor units.
"""

import pytest
from decimal import Decimal

from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.domain.values import Currency, Money
from pricing_kernel.exceptions import InvalidCurrencyError


class TestCurrencyRegistry:
    """Registry lookups."""

    def test_known_codes_valid(self):
        for code in ["USD", "CAD", "EUR", "GBP", "JPY", "KWD"]:
            assert CurrencyRegistry.is_valid(code)

    def test_lookup_is_case_and_whitespace_insensitive(self):
        assert CurrencyRegistry.is_valid("usd")
        assert CurrencyRegistry.is_valid(" cad ")

    def test_unknown_codes_invalid(self):
        for code in ["XXY", "US", "", "USDD"]:
            assert not CurrencyRegistry.is_valid(code)

    def test_non_string_invalid(self):
        assert not CurrencyRegistry.is_valid(None)
        assert not CurrencyRegistry.is_valid(840)

    def test_minor_units(self):
        assert CurrencyRegistry.get_minor_units("USD") == 2
        assert CurrencyRegistry.get_minor_units("JPY") == 0
        assert CurrencyRegistry.get_minor_units("KWD") == 3

    def test_minor_units_unknown_raises(self):
        with pytest.raises(KeyError):
            CurrencyRegistry.get_minor_units("XXY")

    def test_info_quantum(self):
        assert CurrencyRegistry.get_info("USD").quantum == Decimal("0.01")
        assert CurrencyRegistry.get_info("JPY").quantum == Decimal("1")
        assert CurrencyRegistry.get_info("BHD").quantum == Decimal("0.001")

    def test_all_codes(self):
        codes = CurrencyRegistry.all_codes()
        assert "USD" in codes
        assert isinstance(codes, frozenset)


class TestCurrencyValue:
    """Currency value object."""

    def test_normalized(self):
        assert Currency("usd").code == "USD"
        assert Currency(" eur ") == Currency("EUR")

    def test_invalid_rejected(self):
        with pytest.raises(InvalidCurrencyError) as exc_info:
            Currency("XXY")
        assert exc_info.value.code == "INVALID_CURRENCY"
        assert exc_info.value.currency == "XXY"

    def test_quantum_follows_registry(self):
        assert Currency("USD").quantum == Decimal("0.01")
        assert Currency("JPY").quantum == Decimal("1")

    def test_rounding_uses_currency_precision(self):
        assert Money.of("10.005", "USD").round().amount == Decimal("10.01")
        assert Money.of("10.5", "JPY").round().amount == Decimal("11")
        assert Money.of("1.0004", "KWD").ceil().amount == Decimal("1.001")
