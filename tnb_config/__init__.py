"""
tnb_config -- single public entrypoint for fiscal policy.

Responsibility:
    Provides the ONLY way to obtain policy at runtime through
    ``get_active_policy()``.  Engines never read YAML, environment
    variables or hardcoded policy literals; they are handed a frozen
    ``FiscalPolicy``.

Architecture position:
    Configuration -- YAML-driven policy, validated before use.  This
    package sits above ``tnb_kernel`` and beside ``tnb_engines``.  The
    kernel MUST NEVER import from ``tnb_config``.

Invariants enforced:
    - Single entrypoint: all runtime policy flows through
      ``get_active_policy()``.
    - Validation: tiers, tolerance, ceiling, currency and tariff
      uniqueness are checked before a policy is returned.
    - Deterministic loading: the same YAML always yields the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- the policy file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``InvalidPolicyError`` -- parsing or validation failed.

Audit relevance:
    Every successful ``get_active_policy()`` call emits a
    ``TNB_CONFIG_TRACE`` log entry with the policy id, version and
    checksum, tying each fiscal notice to the policy that governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tnb_config.loader import load_yaml_file, parse_policy
from tnb_config.schema import FiscalPolicy
from tnb_config.validator import PolicyValidationResult, validate_policy
from tnb_kernel.exceptions import InvalidPolicyError, ValidationError

_logger = logging.getLogger("tnb_kernel.config")

DEFAULT_POLICY_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_policy(path: Path | str | None = None) -> FiscalPolicy:
    """The ONLY public policy entrypoint.

    Guarantees:
        - The returned ``FiscalPolicy`` has passed ``validate_policy``.
        - A ``TNB_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - No caching across calls; callers hold the returned policy for
          the duration of a computation batch.

    Args:
        path: Policy YAML file.  Defaults to the packaged
            ``sets/default.yaml`` reference policy.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidPolicyError: If the file cannot be parsed into a policy
            or the policy fails validation.
    """
    source = Path(path) if path is not None else DEFAULT_POLICY_PATH
    data = load_yaml_file(source)

    try:
        policy = parse_policy(data)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise InvalidPolicyError([f"{type(e).__name__}: {e}"], source=str(source)) from e

    validation = validate_policy(policy)
    if not validation.is_valid:
        raise InvalidPolicyError(validation.errors, source=str(source))
    for warning in validation.warnings:
        _logger.warning("policy_warning", extra={"warning": warning, "source": str(source)})

    _logger.info(
        "TNB_CONFIG_TRACE",
        extra={
            "trace_type": "TNB_CONFIG_TRACE",
            "policy_id": policy.policy_id,
            "policy_version": policy.version,
            "checksum": policy.checksum,
            "municipality": policy.municipality,
            "tier_count": len(policy.exemption_tiers),
            "tariff_count": len(policy.tariffs),
        },
    )
    return policy


__all__ = [
    "DEFAULT_POLICY_PATH",
    "FiscalPolicy",
    "PolicyValidationResult",
    "get_active_policy",
    "validate_policy",
]
