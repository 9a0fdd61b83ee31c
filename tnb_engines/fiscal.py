"""
Module: tnb_engines.fiscal
Responsibility:
    Compute the TNB amount of a parcel for a fiscal year: gross amount
    from surface and zone tariff, the exemption, and the net amount.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Depends on a
    TariffSource, the exemption evaluator and an injected Clock (only
    used when the caller omits ``as_of``).

Invariants enforced:
    - All arithmetic in Decimal; a single ROUND_HALF_UP quantization to
      the currency's decimal places at the end, never on intermediate
      terms.
    - Surface must be positive and within the configured sanity ceiling.
    - A fully built parcel is "not applicable", which is distinct from
      "exempt".
    - Results are immutable; apportionment produces a new result.

Failure modes:
    - ValidationError for malformed parcel fields.
    - ConfigurationError (TariffNotFoundError / DuplicateTariffError)
      bubbled from the tariff source.

Usage:
    calculator = FiscalCalculator(TariffTable.from_policy(policy), policy)
    result = calculator.compute(parcel, 2025, as_of=date(2025, 3, 1))
    result.net_amount
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from tnb_engines.exemption import ExemptionDecision, evaluate_exemption
from tnb_engines.tariff import TariffSource
from tnb_engines.tracer import traced_engine
from tnb_kernel.domain.clock import Clock, SystemClock
from tnb_kernel.domain.parcel import Parcel
from tnb_kernel.domain.values import Money
from tnb_kernel.exceptions import ValidationError
from tnb_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from tnb_config.schema import FiscalPolicy

logger = get_logger("engines.fiscal")


@dataclass(frozen=True)
class OwnerAmount:
    """One co-owner's share of a net amount."""

    owner_id: str
    share: Decimal
    amount: Decimal


@dataclass(frozen=True)
class FiscalResult:
    """
    Outcome of one fiscal computation.

    Contract:
        Frozen; superseded by a new computation, never mutated.
    Guarantees:
        - ``net_amount == gross_amount - exempted_amount``.
        - When ``applicable`` is False all amounts are zero and
          ``exemption`` is None.
        - When ``owner_amounts`` is non-empty, their amounts sum exactly
          to ``net_amount``.
    """

    parcel_id: str
    fiscal_year: int
    taxable_surface: Decimal
    unit_rate: Decimal
    gross_amount: Decimal
    exemption_applied: bool
    exempted_amount: Decimal
    net_amount: Decimal
    currency: str = "MAD"
    applicable: bool = True
    exemption: ExemptionDecision | None = None
    owner_amounts: tuple[OwnerAmount, ...] = ()

    @property
    def net(self) -> Money:
        return Money.of(self.net_amount, self.currency)

    @property
    def gross(self) -> Money:
        return Money.of(self.gross_amount, self.currency)

    @property
    def is_apportioned(self) -> bool:
        return bool(self.owner_amounts)

    def with_apportionment(self, owner_amounts: tuple[OwnerAmount, ...]) -> FiscalResult:
        """Return a copy carrying the per-owner breakdown."""
        return replace(self, owner_amounts=tuple(owner_amounts))


class FiscalCalculator:
    """
    Computes fiscal results for parcels.

    Contract:
        Stateless apart from its collaborators; ``compute`` is a pure
        function of (parcel, fiscal_year, as_of, tariffs, policy).
    Non-goals:
        - Does not check workflow permissions; see
          ``tnb_engines.validation_state``.
        - Does not reduce the surface for partially built parcels; the
          supplied taxable surface is already the taxable portion.
    """

    def __init__(
        self,
        tariffs: TariffSource,
        policy: FiscalPolicy,
        clock: Clock | None = None,
    ):
        self._tariffs = tariffs
        self._policy = policy
        self._clock = clock or SystemClock()

    def validate_parcel(self, parcel: Parcel) -> None:
        """Raise ValidationError when the surface is out of range."""
        surface = parcel.taxable_surface
        if surface <= Decimal("0"):
            raise ValidationError(
                "taxable_surface", surface, "surface must be positive", parcel.parcel_id,
            )
        if surface > self._policy.surface_ceiling:
            raise ValidationError(
                "taxable_surface",
                surface,
                f"surface exceeds the sanity ceiling of {self._policy.surface_ceiling} m2",
                parcel.parcel_id,
            )

    @traced_engine("fiscal", "1.0", fingerprint_fields=("parcel", "fiscal_year", "as_of"))
    def compute(
        self,
        parcel: Parcel,
        fiscal_year: int,
        as_of: date | None = None,
    ) -> FiscalResult:
        """
        Compute the fiscal result for ``parcel`` in ``fiscal_year``.

        Args:
            parcel: Parcel snapshot from the persistence collaborator.
            fiscal_year: Year whose tariff applies.
            as_of: Date the exemption window is judged on.  Defaults to
                the clock's today.

        Returns:
            FiscalResult without a per-owner breakdown.
        """
        if not isinstance(fiscal_year, int) or isinstance(fiscal_year, bool):
            raise ValidationError("fiscal_year", fiscal_year, "must be an integer year")
        self.validate_parcel(parcel)
        as_of = as_of or self._clock.today()
        currency = self._policy.currency

        rate = self._tariffs.get_tariff(parcel.zone, fiscal_year).unit_rate

        if not parcel.occupation_status.subject_to_tax:
            logger.info("fiscal_not_applicable", extra={
                "parcel_id": parcel.parcel_id,
                "occupation_status": parcel.occupation_status.value,
            })
            zero = Money.zero(currency).amount
            return FiscalResult(
                parcel_id=parcel.parcel_id,
                fiscal_year=fiscal_year,
                taxable_surface=parcel.taxable_surface,
                unit_rate=rate,
                gross_amount=zero,
                exemption_applied=False,
                exempted_amount=zero,
                net_amount=zero,
                currency=currency,
                applicable=False,
            )

        decision = evaluate_exemption(
            surface=parcel.taxable_surface,
            legal_status=parcel.legal_status,
            occupation_status=parcel.occupation_status,
            permit_date=parcel.permit_date,
            as_of=as_of,
            tiers=self._policy.exemption_tiers,
        )

        raw_gross = parcel.taxable_surface * rate
        raw_exempted = decision.exempted_amount(raw_gross)
        gross = Money.of(raw_gross, currency).round()
        exempted = Money.of(raw_exempted, currency).round()
        net = gross - exempted

        logger.info("fiscal_computed", extra={
            "parcel_id": parcel.parcel_id,
            "fiscal_year": fiscal_year,
            "zone": parcel.zone,
            "unit_rate": str(rate),
            "gross_amount": str(gross.amount),
            "exempt": decision.exempt,
            "net_amount": str(net.amount),
        })

        return FiscalResult(
            parcel_id=parcel.parcel_id,
            fiscal_year=fiscal_year,
            taxable_surface=parcel.taxable_surface,
            unit_rate=rate,
            gross_amount=gross.amount,
            exemption_applied=decision.exempt,
            exempted_amount=exempted.amount,
            net_amount=net.amount,
            currency=currency,
            applicable=True,
            exemption=decision,
        )
