"""
Parcel, tariff and ownership records (``tnb_kernel.domain.parcel``).

Responsibility
--------------
Frozen DTOs for the data the persistence collaborator hands to the fiscal
core: the parcel subset relevant to taxation, per-zone tariff entries and
co-owner quote-shares.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Numeric fields are Decimal; floats are rejected at construction.
* A quote-share lies in (0, 1] and its validity window is ordered.
* Business limits on the surface (positive, sanity ceiling) are checked
  by the fiscal calculator, which knows the configured ceiling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from tnb_kernel.domain.values import to_decimal
from tnb_kernel.domain.workflow import WorkflowState
from tnb_kernel.exceptions import ValidationError


class LegalStatus(str, Enum):
    """Land-registry status of a parcel."""

    TITLED = "titled"
    IN_REQUISITION = "in_requisition"
    UNTITLED = "untitled"
    PUBLIC_DOMAIN = "public_domain"
    COLLECTIVE = "collective"

    @property
    def always_exempt(self) -> bool:
        return self in (LegalStatus.PUBLIC_DOMAIN, LegalStatus.COLLECTIVE)


class OccupationStatus(str, Enum):
    """Built state of a parcel."""

    BARE = "bare"
    BUILT = "built"
    UNDER_CONSTRUCTION = "under_construction"
    PARTIALLY_BUILT = "partially_built"

    @property
    def subject_to_tax(self) -> bool:
        """A fully built parcel has no untaxed remainder."""
        return self is not OccupationStatus.BUILT


def _decimal_field(value, field: str, parcel_id: str | None = None) -> Decimal:
    try:
        return to_decimal(value, field)
    except ValueError as e:
        raise ValidationError(field, value, str(e), parcel_id=parcel_id) from e


@dataclass(frozen=True)
class Parcel:
    """
    The parcel fields the fiscal core reads.

    Contract:
        ``taxable_surface`` is already the pre-filtered taxable portion in
        square meters (the geometry collaborator measures it).
    Guarantees:
        - Enum fields accept their string values and are normalized.
        - ``taxable_surface`` is a Decimal.
    Non-goals:
        - Does not enforce surface limits; see FiscalCalculator.
    """

    parcel_id: str
    taxable_surface: Decimal
    zone: str
    legal_status: LegalStatus
    occupation_status: OccupationStatus = OccupationStatus.BARE
    permit_date: date | None = None
    workflow_state: WorkflowState = WorkflowState.DRAFT

    def __post_init__(self) -> None:
        object.__setattr__(self, "parcel_id", str(self.parcel_id))
        object.__setattr__(
            self,
            "taxable_surface",
            _decimal_field(self.taxable_surface, "taxable_surface", self.parcel_id),
        )
        if not self.zone or not str(self.zone).strip():
            raise ValidationError("zone", self.zone, "zone code is required", self.parcel_id)
        object.__setattr__(self, "zone", str(self.zone).strip().upper())
        try:
            object.__setattr__(self, "legal_status", LegalStatus(self.legal_status))
            object.__setattr__(
                self, "occupation_status", OccupationStatus(self.occupation_status),
            )
            object.__setattr__(
                self, "workflow_state", WorkflowState(self.workflow_state),
            )
        except ValueError as e:
            raise ValidationError("status", str(e), "unknown status value", self.parcel_id) from e


@dataclass(frozen=True)
class TariffRecord:
    """
    Unit tariff for one zone and fiscal year.

    Guarantees:
        - ``unit_rate`` is a positive Decimal (currency per m^2).
        - ``zone`` is stripped and upper-cased.
    """

    zone: str
    year: int
    unit_rate: Decimal
    active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "zone", str(self.zone).strip().upper())
        rate = to_decimal(self.unit_rate, "unit_rate")
        if rate <= Decimal("0"):
            raise ValueError(f"Tariff unit_rate must be positive: {rate}")
        object.__setattr__(self, "unit_rate", rate)
        if not isinstance(self.year, int) or self.year < 1900:
            raise ValueError(f"Invalid fiscal year: {self.year!r}")


@dataclass(frozen=True)
class OwnershipShare:
    """
    A co-owner's quote-part of a parcel.

    Guarantees:
        - ``share`` is a Decimal in (0, 1].
        - ``valid_to``, when set, is not before ``valid_from``.
    """

    parcel_id: str
    owner_id: str
    share: Decimal
    valid_from: date | None = None
    valid_to: date | None = None
    active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "parcel_id", str(self.parcel_id))
        object.__setattr__(self, "owner_id", str(self.owner_id))
        share = _decimal_field(self.share, "share", self.parcel_id)
        if share <= Decimal("0") or share > Decimal("1"):
            raise ValidationError(
                "share", share, "quote-part must lie in (0, 1]", self.parcel_id,
            )
        object.__setattr__(self, "share", share)
        if (
            self.valid_from is not None
            and self.valid_to is not None
            and self.valid_to < self.valid_from
        ):
            raise ValidationError(
                "valid_to",
                self.valid_to,
                f"ends before valid_from {self.valid_from}",
                self.parcel_id,
            )

    def is_active_on(self, on_date: date | None = None) -> bool:
        """Active flag set and, when a date is given, inside the validity window."""
        if not self.active:
            return False
        if on_date is None:
            return True
        if self.valid_from is not None and on_date < self.valid_from:
            return False
        if self.valid_to is not None and on_date > self.valid_to:
            return False
        return True
