"""Currency -- ISO 4217 registry and minor-unit precision."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Minor-unit information for a single ISO 4217 currency."""

    code: str
    minor_units: int
    name: str

    @property
    def quantum(self) -> Decimal:
        """Smallest representable amount, usable as a ``quantize`` exponent."""
        return Decimal(1).scaleb(-self.minor_units)


class CurrencyRegistry:
    """Registry of the currencies a shop can price work orders in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar"),
        "NZD": CurrencyInfo("NZD", 2, "New Zealand Dollar"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "DKK": CurrencyInfo("DKK", 2, "Danish Krone"),
        "NOK": CurrencyInfo("NOK", 2, "Norwegian Krone"),
        "SEK": CurrencyInfo("SEK", 2, "Swedish Krona"),
        "PLN": CurrencyInfo("PLN", 2, "Polish Zloty"),
        "MXN": CurrencyInfo("MXN", 2, "Mexican Peso"),
        "BRL": CurrencyInfo("BRL", 2, "Brazilian Real"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar"),
        "HKD": CurrencyInfo("HKD", 2, "Hong Kong Dollar"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        # Zero minor units
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        "ISK": CurrencyInfo("ISK", 0, "Icelandic Krona"),
        "CLP": CurrencyInfo("CLP", 0, "Chilean Peso"),
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong"),
        # Three minor units
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial"),
        "JOD": CurrencyInfo("JOD", 3, "Jordanian Dinar"),
        "TND": CurrencyInfo("TND", 3, "Tunisian Dinar"),
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is known."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_minor_units(cls, code: str) -> int:
        """Minor units for a currency; unknown codes never reach here."""
        info = cls.get_info(code)
        if info is None:
            raise KeyError(code)
        return info.minor_units

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES.keys())
