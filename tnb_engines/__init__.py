"""
Module: tnb_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    fiscal engines.  This is the canonical import surface for
    ``tnb_services`` and external callers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import tnb_kernel (and sibling engine modules).
    MUST NOT import tnb_services.

Invariants enforced:
    - Purity: engines never read the wall clock directly; the fiscal
      calculator only consults its injected Clock when no as-of date is
      supplied.
    - Decimal-only arithmetic; floats are rejected.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``tnb_engines.tracer``), emitting TNB_ENGINE_TRACE log records with
    engine name, version, input fingerprint and duration.

Usage:
    from tnb_engines import FiscalCalculator, ApportionmentEngine, TariffTable
"""

from tnb_engines.apportionment import DEFAULT_TOLERANCE, ApportionmentEngine, ShareSource
from tnb_engines.exemption import (
    PERMANENT_WINDOW_END,
    ExemptionDecision,
    ExemptionReason,
    add_years,
    evaluate_exemption,
)
from tnb_engines.fiscal import FiscalCalculator, FiscalResult, OwnerAmount
from tnb_engines.notice import (
    FiscalNotice,
    NoticeCode,
    build_notices,
    generate_notice_code,
    is_valid_notice_code,
    parse_notice_code,
)
from tnb_engines.penalty import (
    PenaltyResult,
    compute_penalty,
    months_late,
    payment_due_date,
)
from tnb_engines.tariff import TariffSource, TariffTable
from tnb_engines.tracer import compute_input_fingerprint, traced_engine
from tnb_engines.validation_state import (
    ValidationStateMachine,
    allowed_targets,
    can_mutate,
    can_transition,
    require_mutation,
    require_transition,
)

__all__ = [
    "DEFAULT_TOLERANCE",
    "ApportionmentEngine",
    "ShareSource",
    "PERMANENT_WINDOW_END",
    "ExemptionDecision",
    "ExemptionReason",
    "add_years",
    "evaluate_exemption",
    "FiscalCalculator",
    "FiscalResult",
    "OwnerAmount",
    "FiscalNotice",
    "NoticeCode",
    "build_notices",
    "generate_notice_code",
    "is_valid_notice_code",
    "parse_notice_code",
    "PenaltyResult",
    "compute_penalty",
    "months_late",
    "payment_due_date",
    "TariffSource",
    "TariffTable",
    "compute_input_fingerprint",
    "traced_engine",
    "ValidationStateMachine",
    "allowed_targets",
    "can_mutate",
    "can_transition",
    "require_mutation",
    "require_transition",
]
