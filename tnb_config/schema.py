"""
FiscalPolicy schema.

Defines the human-authored, reviewable policy artifact for the TNB core.
YAML files are parsed into these types by the loader and checked by the
validator before any engine sees them.

Everything that is municipal policy rather than arithmetic lives here:
exemption tiers, the surface sanity ceiling, the quote-share tolerance,
zone tariffs, late-payment terms and the workflow permission table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from tnb_kernel.domain.fiscal_terms import ExemptionTier, PenaltyTerms
from tnb_kernel.domain.parcel import TariffRecord
from tnb_kernel.domain.workflow import WorkflowPolicy

DEFAULT_SURFACE_CEILING = Decimal("1000000")
DEFAULT_SHARE_TOLERANCE = Decimal("0.0001")


@dataclass(frozen=True)
class FiscalPolicy:
    """A complete, validated policy set.

    ``checksum`` is the SHA-256 of the canonical source data and ties every
    computation back to the exact policy version that governed it.
    """

    policy_id: str
    version: int
    currency: str
    exemption_tiers: tuple[ExemptionTier, ...]
    workflow: WorkflowPolicy
    surface_ceiling: Decimal = DEFAULT_SURFACE_CEILING
    share_tolerance: Decimal = DEFAULT_SHARE_TOLERANCE
    tariffs: tuple[TariffRecord, ...] = ()
    penalty: PenaltyTerms = field(default_factory=PenaltyTerms)
    municipality: str = "*"
    description: str = ""
    checksum: str = ""
