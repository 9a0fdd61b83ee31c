"""
Module: tnb_kernel.selectors.ownership_selector
Responsibility: Read-only access to co-owner quote-shares.  Implements the
    ``get_active_shares(parcel_id, as_of)`` shape consumed by the
    apportionment engine.

Invariants enforced:
    - Only rows flagged active and, when a date is given, valid on that date
      are returned.
    - Results are ordered by owner id for deterministic apportionment.
"""

from datetime import date

from sqlalchemy import or_, select

from tnb_kernel.domain.parcel import OwnershipShare
from tnb_kernel.models.ownership import OwnershipShareModel
from tnb_kernel.selectors.base import BaseSelector


class OwnershipSelector(BaseSelector[OwnershipShareModel]):
    """Selector for ownership shares."""

    def get_active_shares(
        self, parcel_id: str, as_of: date | None = None,
    ) -> list[OwnershipShare]:
        stmt = select(OwnershipShareModel).where(
            OwnershipShareModel.parcel_id == str(parcel_id),
            OwnershipShareModel.active.is_(True),
        )
        if as_of is not None:
            stmt = stmt.where(
                or_(OwnershipShareModel.valid_from.is_(None), OwnershipShareModel.valid_from <= as_of),
                or_(OwnershipShareModel.valid_to.is_(None), OwnershipShareModel.valid_to >= as_of),
            )
        stmt = stmt.order_by(OwnershipShareModel.owner_id)

        return [
            OwnershipShare(
                parcel_id=row.parcel_id,
                owner_id=row.owner_id,
                share=row.share,
                valid_from=row.valid_from,
                valid_to=row.valid_to,
                active=row.active,
            )
            for row in self.session.scalars(stmt)
        ]
