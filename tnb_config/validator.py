"""
Policy Validator (``tnb_config.validator``).

Responsibility
--------------
Checks a parsed ``FiscalPolicy`` for structural and business integrity
before any engine is parameterized with it.

Architecture position
---------------------
**Config layer** -- called by ``tnb_config.get_active_policy()`` after
parsing.  Depends only on the schema and kernel domain value objects.

Invariants enforced
-------------------
* Exemption tiers are strictly ascending with a single unbounded top tier.
* Share tolerance lies in (0, 1); surface ceiling is positive.
* At most one active tariff per (zone, year).
* Currency is a known ISO 4217 code.
* The workflow table covers the reference transitions (warning only).

Failure modes
-------------
* Errors (``PolicyValidationResult.errors``)  -> the policy MUST NOT be
  handed to engines; the entry point raises ``InvalidPolicyError``.
* Warnings  -> the policy is usable but should be reviewed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal

from tnb_config.schema import FiscalPolicy
from tnb_kernel.domain.currency import CurrencyRegistry
from tnb_kernel.domain.fiscal_terms import validate_tiers
from tnb_kernel.domain.workflow import STATE_ORDER


@dataclass
class PolicyValidationResult:
    """
    Result of policy validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_policy(policy: FiscalPolicy) -> PolicyValidationResult:
    """
    Validate a parsed policy.

    Postconditions:
        - Returns a ``PolicyValidationResult``; never raises for content
          problems.
    """
    result = PolicyValidationResult()

    for problem in validate_tiers(policy.exemption_tiers):
        result.add_error(f"exemption_tiers: {problem}")

    if not Decimal("0") < policy.share_tolerance < Decimal("1"):
        result.add_error(
            f"share_tolerance must lie in (0, 1), got {policy.share_tolerance}"
        )
    if policy.surface_ceiling <= Decimal("0"):
        result.add_error(
            f"surface_ceiling must be positive, got {policy.surface_ceiling}"
        )
    if not CurrencyRegistry.is_valid(policy.currency):
        result.add_error(f"unknown currency code {policy.currency!r}")

    _validate_tariffs(policy, result)
    _validate_workflow(policy, result)
    return result


def _validate_tariffs(policy: FiscalPolicy, result: PolicyValidationResult) -> None:
    active = Counter((t.zone, t.year) for t in policy.tariffs if t.active)
    for (zone, year), count in sorted(active.items()):
        if count > 1:
            result.add_error(
                f"tariffs: {count} active entries for zone {zone!r} year {year}"
            )
    if not policy.tariffs:
        result.add_warning("no tariffs configured; a tariff source must be supplied")


def _validate_workflow(policy: FiscalPolicy, result: PolicyValidationResult) -> None:
    workflow = policy.workflow
    for from_state, to_state in zip(STATE_ORDER, STATE_ORDER[1:]):
        roles = workflow.transition_roles(from_state, to_state)
        if not roles:
            result.add_warning(
                f"workflow: no role may move {from_state.value} -> {to_state.value}"
            )
    if not workflow.revert_roles:
        result.add_warning("workflow: no role may revert to draft")
