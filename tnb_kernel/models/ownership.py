"""
Module: tnb_kernel.models.ownership
Responsibility: ORM persistence for co-owner quote-shares of a parcel.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - share is stored as Numeric in (0, 1] (CHECK constraint).
    - valid_to, when present, is not before valid_from (CHECK constraint).
    - The sum of active shares per parcel is NOT enforced here; it is
      checked at apportionment time.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from tnb_kernel.db.base import Base


class OwnershipShareModel(Base):
    """A co-owner's quote-part of a parcel over a validity window."""

    __tablename__ = "tnb_ownership_shares"

    __table_args__ = (
        Index("idx_share_parcel", "parcel_id"),
        CheckConstraint("share > 0 AND share <= 1", name="ck_share_range"),
        CheckConstraint(
            "valid_to IS NULL OR valid_from IS NULL OR valid_to >= valid_from",
            name="ck_share_window",
        ),
    )

    parcel_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    share: Mapped[Decimal] = mapped_column(nullable=False)
    valid_from: Mapped[date | None] = mapped_column(nullable=True)
    valid_to: Mapped[date | None] = mapped_column(nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<OwnershipShareModel {self.parcel_id}/{self.owner_id} = {self.share}>"
