"""
Typed Exception Hierarchy for the TNB Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The controller layer maps every failure of the fiscal core onto a user-facing
response. Parsing message strings for that is fragile, so:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (parcel id, expected vs. actual values)

Example:
    try:
        result = calculator.compute(parcel, fiscal_year=2025)
    except TariffNotFoundError as e:
        api_response(status=500, code=e.code, zone=e.zone, year=e.year)
    except ValidationError as e:
        api_response(status=400, code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TnbKernelError (base)
    |
    +-- ConfigurationError          data setup problem (5xx-class)
    |   +-- TariffNotFoundError
    |   +-- DuplicateTariffError
    |   +-- InvalidPolicyError
    |
    +-- ValidationError             malformed parcel/share input (4xx-class)
    |
    +-- IndivisionError             shares do not sum to 1 (blocks notices)
    |
    +-- ForbiddenTransition         state/role mismatch (never retried)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                  | When Raised
----------------|-----------------------|-----------------------------------------
Configuration   | TARIFF_NOT_FOUND      | No active tariff for (zone, year)
                | DUPLICATE_TARIFF      | More than one active tariff for (zone, year)
                | INVALID_POLICY        | Policy file fails structural validation
----------------|-----------------------|-----------------------------------------
Validation      | VALIDATION_ERROR      | Negative/zero/oversized surface, bad share
----------------|-----------------------|-----------------------------------------
Indivision      | INDIVISION_ERROR      | Active shares do not sum to 1 within tolerance
----------------|-----------------------|-----------------------------------------
Workflow        | FORBIDDEN_TRANSITION  | Transition or mutation outside the permission table

===============================================================================
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class TnbKernelError(Exception):
    """
    Base exception for all TNB kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TNB_KERNEL_ERROR"


# Configuration exceptions


class ConfigurationError(TnbKernelError):
    """Base exception for data-setup problems (tariffs, policy files)."""

    code: str = "CONFIGURATION_ERROR"


class TariffNotFoundError(ConfigurationError):
    """No active tariff exists for the requested zone and fiscal year.

    There is no implicit fallback to a prior year's rate.
    """

    code: str = "TARIFF_NOT_FOUND"

    def __init__(self, zone: str, year: int):
        self.zone = zone
        self.year = year
        super().__init__(f"No active tariff for zone {zone!r} in fiscal year {year}")


class DuplicateTariffError(ConfigurationError):
    """More than one active tariff exists for a zone and fiscal year.

    This is a data-integrity error and is never resolved silently.
    """

    code: str = "DUPLICATE_TARIFF"

    def __init__(self, zone: str, year: int, count: int):
        self.zone = zone
        self.year = year
        self.count = count
        super().__init__(
            f"{count} active tariffs for zone {zone!r} in fiscal year {year}; "
            f"expected exactly one"
        )


class InvalidPolicyError(ConfigurationError):
    """Fiscal policy configuration failed validation."""

    code: str = "INVALID_POLICY"

    def __init__(self, errors: list[str], source: str | None = None):
        self.errors = list(errors)
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(
            f"Invalid fiscal policy{where}: " + "; ".join(self.errors)
        )


# Input validation


class ValidationError(TnbKernelError):
    """Malformed parcel or share input."""

    code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        value: Any,
        reason: str,
        parcel_id: str | None = None,
    ):
        self.field = field
        self.value = value
        self.reason = reason
        self.parcel_id = parcel_id
        prefix = f"Parcel {parcel_id}: " if parcel_id is not None else ""
        super().__init__(f"{prefix}invalid {field}={value!r}: {reason}")


# Indivision


class IndivisionError(TnbKernelError):
    """Active ownership shares of a parcel do not partition it.

    Blocks any fiscal-notice generation until the shares are corrected.
    Shares are never normalized automatically.
    """

    code: str = "INDIVISION_ERROR"

    def __init__(
        self,
        parcel_id: str | None,
        computed_sum: Decimal,
        tolerance: Decimal,
        share_count: int = 0,
    ):
        self.parcel_id = parcel_id
        self.computed_sum = computed_sum
        self.tolerance = tolerance
        self.share_count = share_count
        super().__init__(
            f"Shares of parcel {parcel_id} sum to {computed_sum} "
            f"({share_count} active share(s)); expected 1 within {tolerance}"
        )


# Workflow


class ForbiddenTransition(TnbKernelError):
    """A transition or mutation is not permitted for this state and role."""

    code: str = "FORBIDDEN_TRANSITION"

    def __init__(
        self,
        current_state: str,
        action: str,
        role: str,
        parcel_id: str | None = None,
    ):
        self.current_state = current_state
        self.action = action
        self.role = role
        self.parcel_id = parcel_id
        target = f" on parcel {parcel_id}" if parcel_id is not None else ""
        super().__init__(
            f"Role {role!r} may not {action}{target} while in state {current_state!r}"
        )
