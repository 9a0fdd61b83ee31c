"""
tnb_services.fiscal_notice_service -- Fiscal computation and notice generation.

Responsibility:
    Run the fiscal control flow for one parcel: confirm the caller's role
    may act in the parcel's workflow state, compute the fiscal result,
    apportion it across the active co-owners and assemble one notice per
    owner.

Architecture position:
    Services -- orchestration over engines + kernel.  Collaborators
    (tariff source, share source, clock) are injected; the service
    performs no I/O of its own beyond what they do.

Invariants enforced:
    - The workflow check runs before any computation.
    - Ids that cannot appear in a notice code are rejected early: the
      parcel id before computation, owner ids before apportionment.
    - Shares that do not partition the parcel block notice generation
      (IndivisionError); they are never normalized.
    - Every call runs inside a bound LogContext (correlation id, parcel,
      actor, role, fiscal year).

Failure modes:
    - ForbiddenTransition when the role may not act in the current state.
    - ValidationError / ConfigurationError from the fiscal calculator.
    - IndivisionError from the apportionment engine.

Usage:
    service = FiscalNoticeService(
        tariff_source=TariffTable.from_policy(policy),
        share_source=OwnershipSelector(session),
        policy=policy,
    )
    batch = service.generate_notices(parcel, 2025, role=Role.FISCAL_AGENT)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import uuid4

from tnb_config.schema import FiscalPolicy
from tnb_engines.apportionment import ApportionmentEngine, ShareSource
from tnb_engines.fiscal import FiscalCalculator, FiscalResult
from tnb_engines.notice import FiscalNotice, build_notices, check_notice_id
from tnb_engines.tariff import TariffSource
from tnb_engines.validation_state import ValidationStateMachine
from tnb_kernel.domain.clock import Clock, SystemClock
from tnb_kernel.domain.parcel import Parcel
from tnb_kernel.domain.workflow import Operation, Role
from tnb_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.fiscal_notice")


@dataclass(frozen=True)
class NoticeBatch:
    """The apportioned result of one parcel and its notices."""

    result: FiscalResult
    notices: tuple[FiscalNotice, ...]
    policy_checksum: str = ""

    @property
    def total_amount(self) -> Decimal:
        return sum((n.amount for n in self.notices), Decimal("0.00"))


class FiscalNoticeService:
    """
    Orchestrates state check, computation, apportionment and notices.

    Contract:
        Stateless apart from its injected collaborators; safe to share
        between calls for different parcels.
    Non-goals:
        - Does not persist results or move the workflow state; the
          caller writes the batch and serializes writes per parcel.
    """

    def __init__(
        self,
        tariff_source: TariffSource,
        share_source: ShareSource,
        policy: FiscalPolicy,
        clock: Clock | None = None,
    ):
        self._shares = share_source
        self._policy = policy
        self._clock = clock or SystemClock()
        self._calculator = FiscalCalculator(tariff_source, policy, self._clock)
        self._apportionment = ApportionmentEngine.from_policy(policy)
        self._workflow = ValidationStateMachine(policy.workflow)

    @property
    def workflow(self) -> ValidationStateMachine:
        return self._workflow

    def compute(
        self,
        parcel: Parcel,
        fiscal_year: int,
        role: Role,
        actor_id: str | None = None,
        as_of: date | None = None,
    ) -> FiscalResult:
        """Compute and apportion without producing notices.

        Requires read permission only, so any role may preview a result.
        """
        role = Role(role)
        with LogContext.bind(
            correlation_id=str(uuid4()),
            parcel_id=parcel.parcel_id,
            actor_id=actor_id,
            actor_role=role.value,
            fiscal_year=fiscal_year,
        ):
            self._workflow.require_mutation(
                parcel.workflow_state, role, Operation.READ, parcel.parcel_id,
            )
            return self._compute_apportioned(parcel, fiscal_year, as_of)

    def generate_notices(
        self,
        parcel: Parcel,
        fiscal_year: int,
        role: Role,
        actor_id: str | None = None,
        as_of: date | None = None,
    ) -> NoticeBatch:
        """
        Produce the fiscal notices of ``parcel`` for ``fiscal_year``.

        A parcel that is not subject to the tax yields a batch with no
        notices.

        Raises:
            ForbiddenTransition: Notice generation is not allowed for
                ``role`` in the parcel's state.
            IndivisionError: The active shares do not partition the parcel.
            ValidationError: A parcel or owner id cannot appear in a notice
                code.
        """
        role = Role(role)
        with LogContext.bind(
            correlation_id=str(uuid4()),
            parcel_id=parcel.parcel_id,
            actor_id=actor_id,
            actor_role=role.value,
            fiscal_year=fiscal_year,
        ):
            self._workflow.require_mutation(
                parcel.workflow_state, role, Operation.GENERATE_NOTICE, parcel.parcel_id,
            )
            check_notice_id("parcel_id", parcel.parcel_id, parcel.parcel_id)
            result = self._compute_apportioned(parcel, fiscal_year, as_of, for_notices=True)

            if not result.applicable:
                logger.info("notices_skipped_not_applicable")
                return NoticeBatch(result, (), self._policy.checksum)

            notices = build_notices(result, self._policy.penalty)
            logger.info("notices_generated", extra={
                "notice_count": len(notices),
                "net_amount": str(result.net_amount),
                "policy_checksum": self._policy.checksum,
            })
            return NoticeBatch(result, notices, self._policy.checksum)

    def _compute_apportioned(
        self, parcel: Parcel, fiscal_year: int, as_of: date | None,
        for_notices: bool = False,
    ) -> FiscalResult:
        as_of = as_of or self._clock.today()
        result = self._calculator.compute(parcel, fiscal_year, as_of)
        if not result.applicable:
            return result
        shares = self._shares.get_active_shares(parcel.parcel_id, as_of)
        if for_notices:
            for share in shares:
                check_notice_id("owner_id", share.owner_id, parcel.parcel_id)
        return self._apportionment.apportion_result(result, shares, as_of)
