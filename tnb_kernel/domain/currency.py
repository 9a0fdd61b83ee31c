"""Currency -- registry of the currencies a municipality may issue TNB notices in."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """One settlement currency: ISO code, minor-unit digits and notice symbol."""

    code: str
    decimal_places: int
    name: str
    symbol: str

    @property
    def quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.decimal_places)


def _normalize(code: object) -> str | None:
    if not code or not isinstance(code, str):
        return None
    return code.strip().upper()


class CurrencyRegistry:
    """Registered settlement currencies.

    Fiscal amounts are settled to the centime, so every entry has two
    decimal places.
    """

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            CurrencyInfo("MAD", 2, "Moroccan Dirham", "DH"),
            CurrencyInfo("EUR", 2, "Euro", "EUR"),
            CurrencyInfo("USD", 2, "US Dollar", "$"),
            CurrencyInfo("DZD", 2, "Algerian Dinar", "DA"),
            CurrencyInfo("TND", 2, "Tunisian Dinar", "DT"),
        )
    }

    DEFAULT_CURRENCY: ClassVar[str] = "MAD"

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        normalized = _normalize(code)
        return cls._CURRENCIES.get(normalized) if normalized else None

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return cls.get_info(code) is not None

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return info.decimal_places if info else 2

    @classmethod
    def validate(cls, code: str) -> str:
        """Return the normalized code.

        Raises:
            ValueError: Empty, not three letters, or not registered.
        """
        normalized = _normalize(code)
        if normalized is None or len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 letters: {code!r}")
        if normalized not in cls._CURRENCIES:
            raise ValueError(f"Unsupported currency code: {code!r}")
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES)
