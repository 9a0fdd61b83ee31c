"""
Module: tnb_engines.apportionment
Responsibility:
    Split a parcel's net amount across its co-owners ("indivision") by
    quote-share, so that the owner amounts sum exactly to the net.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Consumes the output of
    ``tnb_engines.fiscal`` and the active shares supplied by the caller.

Invariants enforced:
    - Shares must sum to 1 within the configured tolerance before any
      amount is produced; they are never normalized.
    - Owner amounts sum exactly to the net amount (largest-remainder
      correction on whole currency units).
    - Deterministic: owners are processed by owner id, and ties between
      equal remainders go to the larger share, then the smaller owner id.

Failure modes:
    - IndivisionError when there are no active shares or the sum is off.
    - ValidationError on duplicate owners, shares from another parcel,
      a negative net amount or one carrying sub-centime digits.

Usage:
    engine = ApportionmentEngine(tolerance=Decimal("0.0001"))
    lines = engine.apportion(result, shares)
    sum(line.amount for line in lines) == result.net_amount  # always
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING, Protocol

from tnb_engines.fiscal import FiscalResult, OwnerAmount
from tnb_engines.tracer import traced_engine
from tnb_kernel.domain.parcel import OwnershipShare
from tnb_kernel.domain.values import Currency, Money, to_decimal
from tnb_kernel.exceptions import IndivisionError, ValidationError
from tnb_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from tnb_config.schema import FiscalPolicy

logger = get_logger("engines.apportionment")

DEFAULT_TOLERANCE = Decimal("0.0001")


class ShareSource(Protocol):
    """Anything that can list the active quote-shares of a parcel."""

    def get_active_shares(
        self, parcel_id: str, as_of: date | None = None,
    ) -> Sequence[OwnershipShare]: ...


class ApportionmentEngine:
    """
    Largest-remainder apportionment of a net amount.

    Contract:
        Pure; the same inputs always produce the same owner amounts.
    Guarantees:
        - Rounding Strategy:
            * Each owner's exact amount ``net x share`` is floored to
              the currency unit.
            * Leftover units go one at a time to the largest fractional
              remainders (share size descending, then owner id, breaks
              ties).
            * When shares sum slightly above 1 the surplus units are
              taken back from the smallest remainders instead.
        - Returned lines are ordered by owner id ascending.
    Non-goals:
        - Does not decide which shares are current beyond the active
          flag and the optional ``on_date`` window.
    """

    def __init__(self, tolerance: Decimal = DEFAULT_TOLERANCE):
        tolerance = Decimal(str(tolerance))
        if not Decimal("0") <= tolerance < Decimal("1"):
            raise ValueError(f"Tolerance must lie in [0, 1): {tolerance}")
        self.tolerance = tolerance

    @classmethod
    def from_policy(cls, policy: FiscalPolicy) -> ApportionmentEngine:
        return cls(tolerance=policy.share_tolerance)

    def check_shares(
        self,
        shares: Sequence[OwnershipShare],
        parcel_id: str | None = None,
        on_date: date | None = None,
    ) -> list[OwnershipShare]:
        """
        Return the active shares ordered by owner id after checking they
        partition the parcel.

        Raises:
            ValidationError: Duplicate owner or foreign parcel id.
            IndivisionError: No active share or sum outside tolerance.
        """
        active = [s for s in shares if s.is_active_on(on_date)]
        if parcel_id is None and active:
            parcel_id = active[0].parcel_id

        seen: set[str] = set()
        for share in active:
            if share.parcel_id != parcel_id:
                raise ValidationError(
                    "parcel_id", share.parcel_id,
                    "share belongs to another parcel", parcel_id,
                )
            if share.owner_id in seen:
                raise ValidationError(
                    "owner_id", share.owner_id,
                    "owner holds more than one active share", parcel_id,
                )
            seen.add(share.owner_id)

        total = sum((s.share for s in active), Decimal("0"))
        if not active or abs(total - Decimal("1")) > self.tolerance:
            logger.warning("apportionment_indivision_error", extra={
                "parcel_id": parcel_id,
                "computed_sum": str(total),
                "share_count": len(active),
            })
            raise IndivisionError(parcel_id, total, self.tolerance, len(active))

        return sorted(active, key=lambda s: s.owner_id)

    @traced_engine("apportionment", "1.0", fingerprint_fields=("result_or_net", "shares"))
    def apportion(
        self,
        result_or_net: FiscalResult | Money | Decimal,
        shares: Sequence[OwnershipShare],
        on_date: date | None = None,
    ) -> tuple[OwnerAmount, ...]:
        """
        Distribute a net amount across the active shares.

        Args:
            result_or_net: A FiscalResult, or a bare net amount.
            shares: Ownership shares of the parcel; inactive ones are
                ignored.
            on_date: When given, shares must also be within their
                validity window on that date.

        Returns:
            OwnerAmount lines ordered by owner id, summing exactly to net.
        """
        parcel_id, net, currency = _unpack(result_or_net)
        if net < Decimal("0"):
            raise ValidationError("net_amount", net, "cannot apportion a negative amount", parcel_id)
        if net != net.quantize(currency.quantum):
            raise ValidationError(
                "net_amount", net,
                f"must be rounded to {currency.decimal_places} decimal places before apportionment",
                parcel_id,
            )

        ordered = self.check_shares(shares, parcel_id, on_date)
        net_units = Money(net, currency).to_units()

        units, remainders = _floor_units(net_units, ordered)
        leftover = net_units - sum(units)
        if leftover:
            _distribute_leftover(units, remainders, ordered, leftover)

        lines = tuple(
            OwnerAmount(
                owner_id=s.owner_id,
                share=s.share,
                amount=Money.from_units(units[i], currency).amount,
            )
            for i, s in enumerate(ordered)
        )

        logger.info("apportionment_completed", extra={
            "parcel_id": parcel_id,
            "net_amount": str(Money.from_units(net_units, currency).amount),
            "owner_count": len(lines),
            "leftover_units": leftover,
        })
        return lines

    def apportion_result(
        self,
        result: FiscalResult,
        shares: Sequence[OwnershipShare],
        on_date: date | None = None,
    ) -> FiscalResult:
        """Apportion and return a new FiscalResult carrying the breakdown."""
        return result.with_apportionment(self.apportion(result, shares, on_date))


def _unpack(result_or_net: FiscalResult | Money | Decimal) -> tuple[str | None, Decimal, Currency]:
    if isinstance(result_or_net, FiscalResult):
        return (
            result_or_net.parcel_id,
            result_or_net.net_amount,
            Currency(result_or_net.currency),
        )
    if isinstance(result_or_net, Money):
        return None, result_or_net.amount, result_or_net.currency
    try:
        return None, to_decimal(result_or_net, "net_amount"), Currency("MAD")
    except ValueError as e:
        raise ValidationError("net_amount", result_or_net, str(e)) from e


def _floor_units(
    net_units: int, ordered: Sequence[OwnershipShare],
) -> tuple[list[int], list[Decimal]]:
    units: list[int] = []
    remainders: list[Decimal] = []
    for share in ordered:
        exact = Decimal(net_units) * share.share
        floored = int(exact.to_integral_value(rounding=ROUND_FLOOR))
        units.append(floored)
        remainders.append(exact - floored)
    return units, remainders


def _distribute_leftover(
    units: list[int],
    remainders: list[Decimal],
    ordered: Sequence[OwnershipShare],
    leftover: int,
) -> None:
    """Adjust ``units`` in place until they sum to the net."""
    count = len(ordered)
    if leftover > 0:
        ranking = sorted(
            range(count),
            key=lambda i: (-remainders[i], -ordered[i].share, ordered[i].owner_id),
        )
        rounds, extra = divmod(leftover, count)
        for position, i in enumerate(ranking):
            units[i] += rounds + (1 if position < extra else 0)
        return

    # Shares above 1 within tolerance: take units back from the smallest
    # remainders, never below zero.
    ranking = sorted(
        range(count),
        key=lambda i: (remainders[i], ordered[i].share, ordered[i].owner_id),
    )
    surplus = -leftover
    while surplus:
        progressed = False
        for i in ranking:
            if surplus == 0:
                break
            if units[i] > 0:
                units[i] -= 1
                surplus -= 1
                progressed = True
        if not progressed:
            raise AssertionError("apportionment surplus exceeds allocated units")
