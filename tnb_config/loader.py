"""
Policy Loader (``tnb_config.loader``).

Responsibility
--------------
Loads a YAML policy file and parses it into the typed
``tnb_config.schema.FiscalPolicy``.  The single public entry point for
runtime policy is ``tnb_config.get_active_policy()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  May import kernel domain
types; the kernel and engines never import this module.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad enum names or numbers  -> ``ValueError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tnb_config.schema import (
    DEFAULT_SHARE_TOLERANCE,
    DEFAULT_SURFACE_CEILING,
    FiscalPolicy,
)
from tnb_kernel.domain.fiscal_terms import ExemptionTier, PenaltyTerms
from tnb_kernel.domain.parcel import TariffRecord
from tnb_kernel.domain.workflow import (
    MutationRule,
    Operation,
    Role,
    TransitionRule,
    WorkflowPolicy,
    WorkflowState,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field: str) -> Decimal:
    """Parse a YAML scalar into Decimal; floats go through ``str`` so that
    ``0.0001`` in YAML is exactly ``Decimal('0.0001')``."""
    if isinstance(value, bool):
        raise ValueError(f"{field}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{field}: invalid number {value!r}") from e


def parse_roles(values: Any) -> frozenset[Role]:
    return frozenset(Role(v) for v in (values or ()))


def parse_tier(data: dict[str, Any]) -> ExemptionTier:
    """Parse an ExemptionTier; ``max_surface: null`` is the open top bracket."""
    max_surface = data.get("max_surface")
    return ExemptionTier(
        max_surface=parse_decimal(max_surface, "max_surface") if max_surface is not None else None,
        years=int(data["years"]),
    )


def parse_tariff(data: dict[str, Any]) -> TariffRecord:
    return TariffRecord(
        zone=data["zone"],
        year=int(data["year"]),
        unit_rate=parse_decimal(data["unit_rate"], "unit_rate"),
        active=bool(data.get("active", True)),
    )


def parse_penalty(data: dict[str, Any] | None) -> PenaltyTerms:
    if not data:
        return PenaltyTerms()
    defaults = PenaltyTerms()
    return PenaltyTerms(
        monthly_rate=parse_decimal(data.get("monthly_rate", defaults.monthly_rate), "monthly_rate"),
        days_per_month=int(data.get("days_per_month", defaults.days_per_month)),
        due_month=int(data.get("due_month", defaults.due_month)),
        due_day=int(data.get("due_day", defaults.due_day)),
    )


def parse_workflow(data: dict[str, Any]) -> WorkflowPolicy:
    """
    Parse the workflow permission table.

    Preconditions:
        - ``data`` contains ``transitions`` and ``mutations`` lists.
    Raises:
        KeyError: if required keys are missing.
        ValueError: on unknown state/role/operation names or a
            non-forward transition.
    """
    transitions = tuple(
        TransitionRule(
            from_state=WorkflowState(t["from"]),
            to_state=WorkflowState(t["to"]),
            roles=parse_roles(t.get("roles")),
        )
        for t in data["transitions"]
    )
    mutations = tuple(
        MutationRule(
            state=WorkflowState(m["state"]),
            operation=Operation(m["operation"]),
            roles=parse_roles(m.get("roles")),
        )
        for m in data["mutations"]
    )
    kwargs: dict[str, Any] = {}
    if "revert_roles" in data:
        kwargs["revert_roles"] = parse_roles(data["revert_roles"])
    if "read_roles" in data:
        kwargs["read_roles"] = parse_roles(data["read_roles"])
    return WorkflowPolicy(transitions=transitions, mutations=mutations, **kwargs)


def parse_policy(data: dict[str, Any]) -> FiscalPolicy:
    """
    Parse a ``FiscalPolicy`` from a dict.

    Preconditions:
        - ``data`` contains ``policy_id``, ``exemption_tiers`` and ``workflow``.
    Postconditions:
        - Returns a frozen ``FiscalPolicy`` with ``checksum`` set.
    """
    return FiscalPolicy(
        policy_id=data["policy_id"],
        version=int(data.get("version", 1)),
        currency=str(data.get("currency", "MAD")).upper(),
        exemption_tiers=tuple(parse_tier(t) for t in data["exemption_tiers"]),
        workflow=parse_workflow(data["workflow"]),
        surface_ceiling=parse_decimal(
            data.get("surface_ceiling", DEFAULT_SURFACE_CEILING), "surface_ceiling",
        ),
        share_tolerance=parse_decimal(
            data.get("share_tolerance", DEFAULT_SHARE_TOLERANCE), "share_tolerance",
        ),
        tariffs=tuple(parse_tariff(t) for t in data.get("tariffs", ())),
        penalty=parse_penalty(data.get("penalty")),
        municipality=str(data.get("municipality", "*")),
        description=data.get("description", ""),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
