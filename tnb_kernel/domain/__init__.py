"""
Pure domain layer.

This module contains pure value objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable and deterministic.
"""

from tnb_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from tnb_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from tnb_kernel.domain.fiscal_terms import (
    ExemptionTier,
    PenaltyTerms,
    tier_for_surface,
    validate_tiers,
)
from tnb_kernel.domain.parcel import (
    LegalStatus,
    OccupationStatus,
    OwnershipShare,
    Parcel,
    TariffRecord,
)
from tnb_kernel.domain.values import Currency, Money, to_decimal
from tnb_kernel.domain.workflow import (
    STATE_ORDER,
    MutationRule,
    Operation,
    Role,
    TransitionRule,
    WorkflowPolicy,
    WorkflowState,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Currency",
    "Money",
    "to_decimal",
    "ExemptionTier",
    "PenaltyTerms",
    "tier_for_surface",
    "validate_tiers",
    "LegalStatus",
    "OccupationStatus",
    "OwnershipShare",
    "Parcel",
    "TariffRecord",
    "STATE_ORDER",
    "MutationRule",
    "Operation",
    "Role",
    "TransitionRule",
    "WorkflowPolicy",
    "WorkflowState",
]
