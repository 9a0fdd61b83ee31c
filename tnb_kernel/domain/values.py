"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Currency and Money, the types every fiscal amount flows through.  A
    gross, exempted, net, per-owner or penalty amount is a Decimal paired
    with its currency, so amounts can never be mixed with floats or with
    another currency.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except tnb_kernel.domain.currency.

Invariants enforced:
    - amounts are Decimal, never float
    - arithmetic never mixes currencies
    - rounding happens once, explicitly, through Money.round (ROUND_HALF_UP)
    - whole-unit views (to_units / from_units) are exact

Failure modes:
    - ValueError on construction with invalid amounts or currencies
    - TypeError when currency is neither Currency nor str
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from tnb_kernel.domain.currency import CurrencyRegistry


def to_decimal(value: Decimal | str | int, field: str) -> Decimal:
    """Coerce a numeric input to Decimal, rejecting floats.

    Raises:
        ValueError: If value is a float, not a valid number, NaN or infinite.
    """
    if isinstance(value, float):
        raise ValueError(f"{field} must not be a float: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid {field}: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{field} must be a finite number: {value!r}")
    return result


@dataclass(frozen=True, slots=True)
class Currency:
    """A registered settlement currency, normalized to upper case."""

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Unsupported currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def quantum(self) -> Decimal:
        """Smallest unit of this currency (one centime for MAD)."""
        return Decimal(1).scaleb(-self.decimal_places)

    def __str__(self) -> str:
        return self.code


def _as_currency(currency: str | Currency) -> Currency:
    if isinstance(currency, Currency):
        return currency
    if isinstance(currency, str):
        return Currency(currency)
    raise TypeError(f"currency must be Currency or str, got {type(currency)}")


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency; they are never separated.
    Guarantees:
        - Immutable and hashable.
        - ``amount`` is a Decimal; floats are rejected.
        - Arithmetic and comparisons require the same currency.
    Non-goals:
        - No implicit rounding.  Callers round once, at the end of a
          computation, with ``round()``.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))
        except ValueError as e:
            raise ValueError(f"Invalid Money amount: {e}") from e
        object.__setattr__(self, "currency", _as_currency(self.currency))

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Raises:
            ValueError: If amount cannot be converted or currency is unsupported.
        """
        return cls(amount=amount, currency=_as_currency(currency))

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        currency = _as_currency(currency)
        return cls(amount=Decimal(0).quantize(currency.quantum), currency=currency)

    @classmethod
    def from_units(cls, units: int, currency: str | Currency) -> Money:
        """Amount from a whole number of currency units (centimes)."""
        currency = _as_currency(currency)
        return cls(amount=units * currency.quantum, currency=currency)

    def to_units(self) -> int:
        """Whole currency units of the rounded amount."""
        return int(self.round().amount.scaleb(self.currency.decimal_places))

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Quantize to the currency's decimal places (ROUND_HALF_UP by default)."""
        return Money(self.amount.quantize(self.currency.quantum, rounding=rounding), self.currency)

    def _same_currency(self, other: Money, op: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {op} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        """Multiply by a scalar (a rate, a share, a month count)."""
        if isinstance(factor, float) or not isinstance(factor, (Decimal, int, str)):
            return NotImplemented
        return Money(self.amount * to_decimal(factor, "factor"), self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other, "compare")
        return self.amount <= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"
