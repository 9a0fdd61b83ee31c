"""
Module: tnb_engines.penalty
Responsibility:
    Late-payment penalties on a fiscal notice: the payment due date of a
    fiscal year and the surcharge for each started period of lateness.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Terms come from the
    policy (``PenaltyTerms``).

Invariants enforced:
    - No penalty on or before the due date.
    - Months late = ceil(days late / days_per_month).
    - One ROUND_HALF_UP quantization of the penalty at the end.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from tnb_engines.tracer import traced_engine
from tnb_kernel.domain.fiscal_terms import PenaltyTerms
from tnb_kernel.domain.values import Money
from tnb_kernel.exceptions import ValidationError
from tnb_kernel.logging_config import get_logger

logger = get_logger("engines.penalty")


@dataclass(frozen=True)
class PenaltyResult:
    base_amount: Decimal
    due_date: date
    days_late: int
    months_late: int
    penalty_amount: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.base_amount + self.penalty_amount

    @property
    def is_late(self) -> bool:
        return self.days_late > 0


def payment_due_date(fiscal_year: int, terms: PenaltyTerms | None = None) -> date:
    """Due date of a fiscal year's notices (31 December by default).

    A due day past the end of the month is clamped to the month's last day.
    """
    terms = terms or PenaltyTerms()
    last_day = calendar.monthrange(fiscal_year, terms.due_month)[1]
    return date(fiscal_year, terms.due_month, min(terms.due_day, last_day))


def months_late(days_late: int, terms: PenaltyTerms | None = None) -> int:
    """Number of started periods of lateness; 0 when not late."""
    terms = terms or PenaltyTerms()
    if days_late <= 0:
        return 0
    return -(-days_late // terms.days_per_month)


@traced_engine("penalty", "1.0", fingerprint_fields=("amount", "fiscal_year", "paid_on"))
def compute_penalty(
    amount: Decimal,
    fiscal_year: int,
    paid_on: date,
    terms: PenaltyTerms | None = None,
    currency: str = "MAD",
) -> PenaltyResult:
    """
    Penalty owed on ``amount`` for a payment made on ``paid_on``.

    Raises:
        ValidationError: If ``amount`` is negative.
    """
    terms = terms or PenaltyTerms()
    amount = Money.of(amount, currency).amount
    if amount < Decimal("0"):
        raise ValidationError("amount", amount, "cannot be negative")

    due = payment_due_date(fiscal_year, terms)
    days = max((paid_on - due).days, 0)
    months = months_late(days, terms)
    penalty = Money.of(amount * terms.monthly_rate * months, currency).round()

    if months:
        logger.info("penalty_computed", extra={
            "fiscal_year": fiscal_year,
            "days_late": days,
            "months_late": months,
            "penalty_amount": str(penalty.amount),
        })

    return PenaltyResult(
        base_amount=amount,
        due_date=due,
        days_late=days,
        months_late=months,
        penalty_amount=penalty.amount,
    )
