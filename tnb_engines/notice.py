"""
Module: tnb_engines.notice
Responsibility:
    Fiscal notice codes (``TNB-<year>-<parcel>-<owner>-<seq>``) and the
    assembly of one notice per co-owner from an apportioned result.

Architecture position:
    Engines -- pure functions, zero I/O.  Rendering and storage of the
    notices belong to external collaborators.

Invariants enforced:
    - Codes are canonical: four-digit year, alphanumeric parcel and owner
      ids, four-digit zero-padded sequence in 1..9999.
    - A notice is only built from an apportioned result, so a parcel
      whose shares do not partition it cannot produce notices.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from tnb_engines.fiscal import FiscalResult
from tnb_engines.penalty import payment_due_date
from tnb_kernel.domain.fiscal_terms import PenaltyTerms
from tnb_kernel.exceptions import IndivisionError, ValidationError
from tnb_kernel.logging_config import get_logger

logger = get_logger("engines.notice")

NOTICE_PREFIX = "TNB"
MAX_SEQUENCE = 9999

_ID_RE = re.compile(r"^[A-Za-z0-9]+$")
_CODE_RE = re.compile(r"^TNB-(\d{4})-([A-Za-z0-9]+)-([A-Za-z0-9]+)-(\d{4})$")


def check_notice_id(field: str, value: str, parcel_id: str | None = None) -> None:
    """Raise ValidationError unless ``value`` can be embedded in a notice code."""
    if not _ID_RE.match(str(value)):
        raise ValidationError(field, value, "must be alphanumeric", parcel_id)


class NoticeCode(NamedTuple):
    fiscal_year: int
    parcel_id: str
    owner_id: str
    sequence: int


def generate_notice_code(
    fiscal_year: int, parcel_id: str, owner_id: str, sequence: int,
) -> str:
    """Build a notice code.

    Raises:
        ValidationError: On an id that is not alphanumeric, a year outside
            1000..9999 or a sequence outside 1..9999.
    """
    if not 1000 <= fiscal_year <= 9999:
        raise ValidationError("fiscal_year", fiscal_year, "must have four digits")
    check_notice_id("parcel_id", parcel_id)
    check_notice_id("owner_id", owner_id)
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise ValidationError("sequence", sequence, f"must lie in 1..{MAX_SEQUENCE}")
    return f"{NOTICE_PREFIX}-{fiscal_year}-{parcel_id}-{owner_id}-{sequence:04d}"


def parse_notice_code(code: str) -> NoticeCode | None:
    """Split a notice code into its parts; None when it is malformed."""
    match = _CODE_RE.match(code or "")
    if match is None:
        return None
    year, parcel_id, owner_id, sequence = match.groups()
    return NoticeCode(int(year), parcel_id, owner_id, int(sequence))


def is_valid_notice_code(code: str) -> bool:
    return parse_notice_code(code) is not None


@dataclass(frozen=True)
class FiscalNotice:
    """One co-owner's notice for a fiscal year."""

    code: str
    parcel_id: str
    owner_id: str
    fiscal_year: int
    share: Decimal
    amount: Decimal
    currency: str
    due_date: date


def build_notices(
    result: FiscalResult,
    terms: PenaltyTerms | None = None,
    first_sequence: int = 1,
) -> tuple[FiscalNotice, ...]:
    """
    One notice per owner line of an apportioned result, in owner order.

    Raises:
        IndivisionError: The result carries no per-owner breakdown.
    """
    if not result.is_apportioned:
        raise IndivisionError(result.parcel_id, Decimal("0"), Decimal("0"), 0)

    due = payment_due_date(result.fiscal_year, terms)
    notices = tuple(
        FiscalNotice(
            code=generate_notice_code(
                result.fiscal_year, result.parcel_id, line.owner_id, first_sequence + offset,
            ),
            parcel_id=result.parcel_id,
            owner_id=line.owner_id,
            fiscal_year=result.fiscal_year,
            share=line.share,
            amount=line.amount,
            currency=result.currency,
            due_date=due,
        )
        for offset, line in enumerate(result.owner_amounts)
    )
    logger.info("notices_built", extra={
        "parcel_id": result.parcel_id,
        "fiscal_year": result.fiscal_year,
        "notice_count": len(notices),
    })
    return notices
