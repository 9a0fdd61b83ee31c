"""
Fiscal policy terms (``tnb_kernel.domain.fiscal_terms``).

Responsibility
--------------
Pure value objects for the policy values the engines are parameterized
with: exemption duration tiers by surface bracket and late-payment
penalty terms.  Values come from configuration (``tnb_config``); the
engines never hardcode them.

Invariants enforced
-------------------
* Tier upper bounds are inclusive: a surface exactly on a boundary
  belongs to the lower bracket.
* Tiers are strictly ascending and the last tier is unbounded.
* Durations are positive whole years.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from tnb_kernel.exceptions import ValidationError


@dataclass(frozen=True)
class ExemptionTier:
    """Exemption duration for surfaces up to ``max_surface`` m^2 (inclusive).

    ``max_surface=None`` marks the open-ended top bracket.
    """

    max_surface: Decimal | None
    years: int

    def __post_init__(self) -> None:
        if not isinstance(self.years, int) or self.years <= 0:
            raise ValidationError(
                "years", self.years, "exemption duration must be a positive number of years",
            )
        if self.max_surface is not None and self.max_surface <= Decimal("0"):
            raise ValidationError(
                "max_surface", self.max_surface, "tier bound must be positive",
            )


def validate_tiers(tiers: Sequence[ExemptionTier]) -> list[str]:
    """Return a list of structural problems with a tier sequence (empty if valid)."""
    errors: list[str] = []
    if not tiers:
        return ["at least one exemption tier is required"]

    previous: Decimal | None = None
    for index, tier in enumerate(tiers):
        is_last = index == len(tiers) - 1
        if tier.max_surface is None and not is_last:
            errors.append(f"tier {index}: only the last tier may be unbounded")
            continue
        if tier.max_surface is not None:
            if previous is not None and tier.max_surface <= previous:
                errors.append(
                    f"tier {index}: bound {tier.max_surface} is not above {previous}"
                )
            previous = tier.max_surface
    if tiers[-1].max_surface is not None:
        errors.append("the last tier must be unbounded (max_surface: null)")
    return errors


def tier_for_surface(
    surface: Decimal, tiers: Sequence[ExemptionTier],
) -> ExemptionTier:
    """Select the bracket a surface falls into.

    Raises:
        ValidationError: if the surface is negative or the tiers are malformed.
    """
    if surface < Decimal("0"):
        raise ValidationError("taxable_surface", surface, "surface cannot be negative")
    problems = validate_tiers(tiers)
    if problems:
        raise ValidationError("exemption_tiers", len(tiers), "; ".join(problems))

    for tier in tiers:
        if tier.max_surface is None or surface <= tier.max_surface:
            return tier
    # validate_tiers guarantees an unbounded last tier
    raise AssertionError("unreachable: no unbounded exemption tier")


@dataclass(frozen=True)
class PenaltyTerms:
    """Late-payment terms: payment due on (due_month, due_day) of the fiscal
    year; ``monthly_rate`` applies per started period of ``days_per_month``
    days late."""

    monthly_rate: Decimal = Decimal("0.02")
    days_per_month: int = 30
    due_month: int = 12
    due_day: int = 31

    def __post_init__(self) -> None:
        if self.monthly_rate < Decimal("0"):
            raise ValidationError("monthly_rate", self.monthly_rate, "cannot be negative")
        if self.days_per_month <= 0:
            raise ValidationError("days_per_month", self.days_per_month, "must be positive")
        if not 1 <= self.due_month <= 12 or not 1 <= self.due_day <= 31:
            raise ValidationError(
                "due_date", f"{self.due_month}-{self.due_day}", "not a calendar day",
            )
