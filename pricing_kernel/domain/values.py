"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides Currency and Money, the fixed-point decimal types every price
    in a work-order breakdown is expressed in, plus ``safe_ratio`` for the
    guarded divisions the allocation engine performs (discount factors,
    paid fractions).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine and service. No outward dependencies except
    pricing_kernel.domain.currency and pricing_kernel.exceptions.

Invariants enforced:
    - Amounts are Decimal, never float; a float passed in is rejected.
    - Money never mixes currencies in arithmetic or comparison.
    - Money never rounds implicitly; precision is only lost in an explicit
      ``round``/``ceil``/``divide`` call, always to the currency's minor unit.

Failure modes:
    - InvalidCurrencyError for an unknown currency code.
    - CurrencyMismatchError when arithmetic mixes currencies.
    - TypeError when a float is used as an amount or scalar.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation

from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.exceptions import CurrencyMismatchError, InvalidCurrencyError

_ZERO = Decimal("0")
_ONE = Decimal("1")


def to_decimal(value: Decimal | str | int) -> Decimal:
    """Convert a str/int/Decimal to Decimal, refusing floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Refusing to build a Decimal from {type(value).__name__}: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal value: {value!r}") from e


def safe_ratio(
    numerator: Decimal,
    denominator: Decimal,
    default: Decimal = _ONE,
) -> Decimal:
    """
    ``numerator / denominator`` at full precision, or ``default`` when the
    denominator is exactly zero.

    Used for discount factors (default 1, i.e. no discount effect) and paid
    fractions (default 0, i.e. nothing paid on an empty order).
    """
    if denominator == _ZERO:
        return default
    return numerator / denominator


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Guarantees:
        - code is uppercase, stripped and known to CurrencyRegistry.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if isinstance(self.code, str) else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise InvalidCurrencyError(str(self.code))
        object.__setattr__(self, "code", normalized)

    @property
    def minor_units(self) -> int:
        return CurrencyRegistry.get_minor_units(self.code)

    @property
    def quantum(self) -> Decimal:
        """Smallest amount representable in this currency (e.g. 0.01)."""
        return _ONE.scaleb(-self.minor_units)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency. Intermediate values may
        carry any precision; only ``round``, ``ceil`` and ``divide`` bring an
        amount back to the currency's minor unit.

    Non-goals:
        - No currency conversion.
        - No implicit rounding.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """Factory: ``Money.of("10.00", "USD")``."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=_ZERO.quantize(currency.quantum), currency=currency)

    @classmethod
    def max(cls, first: Money, second: Money) -> Money:
        first._check_currency(second, "compare")
        return second if second.amount > first.amount else first

    @classmethod
    def min(cls, first: Money, second: Money) -> Money:
        first._check_currency(second, "compare")
        return second if second.amount < first.amount else first

    @classmethod
    def sum(cls, values: list[Money] | tuple[Money, ...], currency: str | Currency) -> Money:
        """Sum of Money values; zero in ``currency`` when empty."""
        total = cls.zero(currency)
        for value in values:
            total = total + value
        return total

    @property
    def is_zero(self) -> bool:
        return self.amount == _ZERO

    @property
    def is_negative(self) -> bool:
        return self.amount < _ZERO

    @property
    def is_rounded(self) -> bool:
        """True when the amount carries no more than the currency's minor units."""
        return self.amount == self.amount.quantize(self.currency.quantum, rounding=ROUND_HALF_UP)

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Quantize to the currency's minor unit with an explicit rounding mode."""
        rounded = self.amount.quantize(self.currency.quantum, rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def ceil(self) -> Money:
        """
        Round towards positive infinity at the minor unit.

        This is the rounding applied to every item and charge price: a
        price never rounds down against the merchant.
        """
        return self.round(ROUND_CEILING)

    def divide(self, divisor: Decimal | int | str, rounding: str) -> Money:
        """Divide by a non-zero scalar and round to the minor unit."""
        divisor = to_decimal(divisor)
        if divisor == _ZERO:
            raise ZeroDivisionError(f"Cannot divide {self} by zero")
        return Money(amount=self.amount / divisor, currency=self.currency).round(rounding)

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code, operation)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, float):
            raise TypeError("Cannot multiply Money by float")
        if isinstance(factor, (int, str)):
            factor = to_decimal(factor)
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        """Full-precision division; pair with ``round``/``ceil``."""
        if isinstance(divisor, float):
            raise TypeError("Cannot divide Money by float")
        if isinstance(divisor, (int, str)):
            divisor = to_decimal(divisor)
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(amount=self.amount / divisor, currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
