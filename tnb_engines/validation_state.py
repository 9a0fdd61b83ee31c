"""
Module: tnb_engines.validation_state
Responsibility:
    Decide which workflow transitions and which mutations a role may
    perform on a parcel or fiscal notice in a given state.

Architecture position:
    Engines -- pure decision functions over a declarative
    ``WorkflowPolicy`` table.  The state itself lives on the record owned
    by the persistence layer; this module only reads it.

Invariants enforced:
    - One permission table, one set of decision functions.
    - Transitions are forward only, except the revert to Draft which is
      reserved for ``policy.revert_roles``.
    - Reads are allowed to every role in ``policy.read_roles`` in every
      state.  Anything not listed in the table is denied.
    - Denials raise ForbiddenTransition from the ``require_*`` variants;
      nothing is downgraded to a no-op.
"""

from __future__ import annotations

from tnb_kernel.domain.workflow import (
    STATE_ORDER,
    Operation,
    Role,
    WorkflowPolicy,
    WorkflowState,
)
from tnb_kernel.exceptions import ForbiddenTransition
from tnb_kernel.logging_config import get_logger

logger = get_logger("engines.validation_state")


def can_transition(
    policy: WorkflowPolicy,
    current: WorkflowState,
    target: WorkflowState,
    role: Role,
) -> bool:
    current, target, role = WorkflowState(current), WorkflowState(target), Role(role)
    if current == target:
        return False
    if target == WorkflowState.DRAFT:
        return role in policy.revert_roles
    roles = policy.transition_roles(current, target)
    return roles is not None and role in roles


def can_mutate(
    policy: WorkflowPolicy,
    current: WorkflowState,
    role: Role,
    operation: Operation,
) -> bool:
    current, role, operation = WorkflowState(current), Role(role), Operation(operation)
    if operation == Operation.READ:
        return role in policy.read_roles
    return role in policy.mutation_roles(current, operation)


def allowed_targets(
    policy: WorkflowPolicy,
    current: WorkflowState,
    role: Role,
) -> list[WorkflowState]:
    """States ``role`` may move to from ``current``, in workflow order."""
    return [
        state for state in STATE_ORDER
        if can_transition(policy, current, state, role)
    ]


def require_transition(
    policy: WorkflowPolicy,
    current: WorkflowState,
    target: WorkflowState,
    role: Role,
    parcel_id: str | None = None,
) -> WorkflowState:
    """Return ``target`` when permitted, else raise ForbiddenTransition."""
    if not can_transition(policy, current, target, role):
        logger.warning("workflow_transition_denied", extra={
            "current_state": WorkflowState(current).value,
            "target_state": WorkflowState(target).value,
            "role": Role(role).value,
            "parcel_id": parcel_id,
        })
        raise ForbiddenTransition(
            WorkflowState(current).value,
            f"transition to {WorkflowState(target).value}",
            Role(role).value,
            parcel_id,
        )
    return WorkflowState(target)


def require_mutation(
    policy: WorkflowPolicy,
    current: WorkflowState,
    role: Role,
    operation: Operation,
    parcel_id: str | None = None,
) -> None:
    """Raise ForbiddenTransition unless ``role`` may perform ``operation``."""
    if not can_mutate(policy, current, role, operation):
        logger.warning("workflow_mutation_denied", extra={
            "current_state": WorkflowState(current).value,
            "operation": Operation(operation).value,
            "role": Role(role).value,
            "parcel_id": parcel_id,
        })
        raise ForbiddenTransition(
            WorkflowState(current).value,
            Operation(operation).value,
            Role(role).value,
            parcel_id,
        )


class ValidationStateMachine:
    """
    The decision functions bound to one workflow policy.

    Contract:
        Holds no state of its own; every method delegates to the
        module-level functions with the bound policy.
    """

    def __init__(self, policy: WorkflowPolicy):
        self.policy = policy

    def can_transition(self, current: WorkflowState, target: WorkflowState, role: Role) -> bool:
        return can_transition(self.policy, current, target, role)

    def can_mutate(self, current: WorkflowState, role: Role, operation: Operation) -> bool:
        return can_mutate(self.policy, current, role, operation)

    def allowed_targets(self, current: WorkflowState, role: Role) -> list[WorkflowState]:
        return allowed_targets(self.policy, current, role)

    def require_transition(
        self,
        current: WorkflowState,
        target: WorkflowState,
        role: Role,
        parcel_id: str | None = None,
    ) -> WorkflowState:
        return require_transition(self.policy, current, target, role, parcel_id)

    def require_mutation(
        self,
        current: WorkflowState,
        role: Role,
        operation: Operation,
        parcel_id: str | None = None,
    ) -> None:
        require_mutation(self.policy, current, role, operation, parcel_id)
