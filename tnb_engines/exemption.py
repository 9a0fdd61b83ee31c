"""
Module: tnb_engines.exemption
Responsibility:
    Decide whether a parcel's tax is waived, for how long, and how much
    of the window remains on a given date.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.  The
    as-of date and the exemption tiers are always supplied by the caller.

Invariants enforced:
    - Public-domain and collective parcels are permanently exempt,
      regardless of surface or permit date.
    - No permit date means no exemption.
    - Tier upper bounds are inclusive.
    - The exemption is binary: all of the gross amount or none of it.

Failure modes:
    - ValidationError on a negative surface or malformed tiers.

Usage:
    decision = evaluate_exemption(
        surface=Decimal("80"),
        legal_status=LegalStatus.TITLED,
        occupation_status=OccupationStatus.BARE,
        permit_date=date(2023, 1, 1),
        as_of=date(2024, 6, 1),
        tiers=policy.exemption_tiers,
    )
    decision.exempt  # True, window ends 2026-01-01
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from tnb_engines.tracer import traced_engine
from tnb_kernel.domain.fiscal_terms import ExemptionTier, tier_for_surface
from tnb_kernel.domain.parcel import LegalStatus, OccupationStatus
from tnb_kernel.logging_config import get_logger

logger = get_logger("engines.exemption")

PERMANENT_WINDOW_END = date.max


class ExemptionReason(str, Enum):
    """Why an exemption decision came out the way it did."""

    PERMANENT_LEGAL_STATUS = "permanent_legal_status"
    NO_PERMIT = "no_permit"
    WITHIN_WINDOW = "within_window"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ExemptionDecision:
    """
    Outcome of an exemption evaluation.

    Contract:
        Derived value, computed fresh for every calculation and never
        cached across fiscal years.
    Guarantees:
        - ``permanent`` implies ``exempt`` and
          ``window_end == PERMANENT_WINDOW_END``.
        - ``remaining_days`` is None when permanent or when there is no
          window, 0 once the window has expired.
    """

    exempt: bool
    reason: ExemptionReason
    permanent: bool = False
    duration_years: int | None = None
    window_start: date | None = None
    window_end: date | None = None
    remaining_days: int | None = None

    def exempted_amount(self, gross: Decimal) -> Decimal:
        """Binary waiver: the whole gross amount or nothing."""
        return gross if self.exempt else Decimal("0")


def add_years(start: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 February lands on 28 February."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


@traced_engine(
    "exemption", "1.0",
    fingerprint_fields=("surface", "legal_status", "permit_date", "as_of", "tiers"),
)
def evaluate_exemption(
    surface: Decimal,
    legal_status: LegalStatus,
    occupation_status: OccupationStatus,
    permit_date: date | None,
    as_of: date,
    tiers: Sequence[ExemptionTier],
) -> ExemptionDecision:
    """
    Evaluate the exemption window of a parcel on ``as_of``.

    The occupation status does not change the decision itself; whether a
    parcel is subject to the tax at all is decided by the fiscal
    calculator before this is consulted.

    Raises:
        ValidationError: Negative surface or malformed tiers.
    """
    legal_status = LegalStatus(legal_status)

    if legal_status.always_exempt:
        logger.debug("exemption_permanent", extra={"legal_status": legal_status.value})
        return ExemptionDecision(
            exempt=True,
            reason=ExemptionReason.PERMANENT_LEGAL_STATUS,
            permanent=True,
            window_start=permit_date,
            window_end=PERMANENT_WINDOW_END,
        )

    # Tier lookup also validates the surface, so malformed input fails
    # even when there is no permit to anchor a window.
    tier = tier_for_surface(surface, tiers)

    if permit_date is None:
        return ExemptionDecision(exempt=False, reason=ExemptionReason.NO_PERMIT)

    expiry = add_years(permit_date, tier.years)
    exempt = as_of < expiry
    remaining = (expiry - as_of).days if exempt else 0

    logger.debug("exemption_evaluated", extra={
        "surface": str(surface),
        "occupation_status": OccupationStatus(occupation_status).value,
        "duration_years": tier.years,
        "window_end": expiry.isoformat(),
        "exempt": exempt,
    })

    return ExemptionDecision(
        exempt=exempt,
        reason=ExemptionReason.WITHIN_WINDOW if exempt else ExemptionReason.EXPIRED,
        duration_years=tier.years,
        window_start=permit_date,
        window_end=expiry,
        remaining_days=remaining,
    )
