"""
Module: tnb_kernel.models.tariff
Responsibility: ORM persistence for per-zone unit tariffs.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - unit_rate is stored as Numeric, never float.
    - At most one ACTIVE row per (zone, year) is expected; the store does not
      enforce it so that the selector can report duplicates as a
      configuration error instead of failing on insert.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tnb_kernel.db.base import Base


class TariffModel(Base):
    """One zone tariff for one fiscal year."""

    __tablename__ = "tnb_tariffs"

    __table_args__ = (
        Index("idx_tariff_zone_year", "zone", "year"),
    )

    zone: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Currency per square meter
    unit_rate: Mapped[Decimal] = mapped_column(nullable=False)

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<TariffModel {self.zone}/{self.year} = {self.unit_rate}>"
