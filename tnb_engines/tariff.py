"""
Module: tnb_engines.tariff
Responsibility:
    Look up the unit tariff (currency per m^2) for a zone and fiscal year.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The records are handed
    in by the caller (configuration or a persistence selector).

Invariants enforced:
    - Exactly one active record per (zone, year) is usable; more than one
      is a data-integrity failure, never silently resolved.
    - No implicit fallback to a prior year's rate.

Failure modes:
    - TariffNotFoundError when no active record matches.
    - DuplicateTariffError when several active records match.

Usage:
    table = TariffTable([TariffRecord("A", 2025, Decimal("20"))])
    table.rate("A", 2025)  # Decimal("20")
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol

from tnb_kernel.domain.parcel import TariffRecord
from tnb_kernel.exceptions import DuplicateTariffError, TariffNotFoundError
from tnb_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from tnb_config.schema import FiscalPolicy

logger = get_logger("engines.tariff")


class TariffSource(Protocol):
    """Anything that can resolve the active tariff of a zone for a year."""

    def get_tariff(self, zone: str, year: int) -> TariffRecord: ...


def _zone_key(zone: str) -> str:
    return str(zone).strip().upper()


class TariffTable:
    """
    In-memory tariff lookup.

    Contract:
        Immutable after construction; lookups are pure.
    Guarantees:
        - ``rate`` returns the unit rate of the single active record.
        - Inactive records are kept but never returned.
    Non-goals:
        - Duplicates are not rejected at construction, so a table built
          from raw collaborator data reports them at lookup time with
          the zone and year that are affected.
    """

    def __init__(self, records: Iterable[TariffRecord]):
        self._records: tuple[TariffRecord, ...] = tuple(records)
        index: dict[tuple[str, int], list[TariffRecord]] = {}
        for record in self._records:
            if record.active:
                index.setdefault((record.zone, record.year), []).append(record)
        self._active = index

    @classmethod
    def from_policy(cls, policy: FiscalPolicy) -> TariffTable:
        """Build a table from the base zone tariffs of a policy."""
        return cls(policy.tariffs)

    @property
    def records(self) -> tuple[TariffRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def get_tariff(self, zone: str, year: int) -> TariffRecord:
        """Return the single active record for (zone, year).

        Raises:
            TariffNotFoundError: No active record.
            DuplicateTariffError: More than one active record.
        """
        key = (_zone_key(zone), year)
        matches = self._active.get(key, [])
        if not matches:
            logger.warning("tariff_not_found", extra={"zone": key[0], "year": year})
            raise TariffNotFoundError(key[0], year)
        if len(matches) > 1:
            logger.error("tariff_duplicate", extra={
                "zone": key[0],
                "year": year,
                "count": len(matches),
            })
            raise DuplicateTariffError(key[0], year, len(matches))
        return matches[0]

    def rate(self, zone: str, year: int) -> Decimal:
        """Unit rate for (zone, year)."""
        return self.get_tariff(zone, year).unit_rate

    def zones(self, year: int) -> list[str]:
        """Zones with at least one active tariff in ``year``, sorted."""
        return sorted({zone for zone, y in self._active if y == year})
