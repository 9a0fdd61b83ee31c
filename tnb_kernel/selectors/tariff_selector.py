"""
Module: tnb_kernel.selectors.tariff_selector
Responsibility: Read-only access to zone tariffs.  Implements the TariffSource
    shape (``get_tariff(zone, year)``) consumed by the fiscal calculator.

Failure modes:
    - TariffNotFoundError when no active row matches.
    - DuplicateTariffError when more than one active row matches; duplicates
      are never resolved by picking one.
"""

from sqlalchemy import select

from tnb_kernel.domain.parcel import TariffRecord
from tnb_kernel.exceptions import DuplicateTariffError, TariffNotFoundError
from tnb_kernel.logging_config import get_logger
from tnb_kernel.models.tariff import TariffModel
from tnb_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.tariff")


def _to_record(row: TariffModel) -> TariffRecord:
    return TariffRecord(
        zone=row.zone,
        year=row.year,
        unit_rate=row.unit_rate,
        active=row.active,
    )


class TariffSelector(BaseSelector[TariffModel]):
    """Selector for zone tariffs."""

    def get_tariff(self, zone: str, year: int) -> TariffRecord:
        zone = str(zone).strip().upper()
        rows = self.session.scalars(
            select(TariffModel).where(
                TariffModel.zone == zone,
                TariffModel.year == year,
                TariffModel.active.is_(True),
            )
        ).all()

        if not rows:
            raise TariffNotFoundError(zone, year)
        if len(rows) > 1:
            logger.error("tariff_duplicate", extra={
                "zone": zone, "year": year, "count": len(rows),
            })
            raise DuplicateTariffError(zone, year, len(rows))
        return _to_record(rows[0])

    def load_records(self, year: int | None = None) -> list[TariffRecord]:
        """All tariff rows, active or not, ordered by year then zone."""
        stmt = select(TariffModel).order_by(TariffModel.year, TariffModel.zone)
        if year is not None:
            stmt = stmt.where(TariffModel.year == year)
        return [_to_record(row) for row in self.session.scalars(stmt)]
