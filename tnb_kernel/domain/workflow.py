"""
Validation workflow types (``tnb_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the parcel / fiscal-notice validation workflow:
the states, the caller roles, the guarded operations, and the single
declarative permission table (``WorkflowPolicy``) that the decision
functions in ``tnb_engines.validation_state`` consume.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Forward transitions only move to a later state in ``STATE_ORDER``.
* Reverts (back to Draft) are declared separately through
  ``revert_roles`` -- they are an escape hatch, not a generic transition.
* At most one rule per (from_state, to_state) and per (state, operation).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class WorkflowState(str, Enum):
    """Validation state of a parcel or fiscal notice."""

    DRAFT = "draft"
    VALIDATED = "validated"
    PUBLISHED = "published"
    ARCHIVED = "archived"


STATE_ORDER: tuple[WorkflowState, ...] = (
    WorkflowState.DRAFT,
    WorkflowState.VALIDATED,
    WorkflowState.PUBLISHED,
    WorkflowState.ARCHIVED,
)


class Role(str, Enum):
    """Caller role supplied by the identity collaborator."""

    ADMIN = "admin"
    TECHNICIAN = "technician"
    FISCAL_AGENT = "fiscal_agent"
    READER = "reader"


class Operation(str, Enum):
    """Guarded operation on a record in a given state."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    GENERATE_NOTICE = "generate_notice"


WRITE_OPERATIONS: frozenset[Operation] = frozenset({
    Operation.CREATE,
    Operation.UPDATE,
    Operation.DELETE,
})


def is_forward(from_state: WorkflowState, to_state: WorkflowState) -> bool:
    """True if ``to_state`` comes strictly after ``from_state``."""
    return STATE_ORDER.index(to_state) > STATE_ORDER.index(from_state)


@dataclass(frozen=True)
class TransitionRule:
    """A forward transition and the roles allowed to trigger it."""

    from_state: WorkflowState
    to_state: WorkflowState
    roles: frozenset[Role]

    def __post_init__(self) -> None:
        if not is_forward(self.from_state, self.to_state):
            raise ValueError(
                f"Transition {self.from_state.value} -> {self.to_state.value} "
                f"is not forward; declare reverts through revert_roles"
            )


@dataclass(frozen=True)
class MutationRule:
    """Roles allowed to perform ``operation`` while in ``state``.

    An empty role set means the operation is rejected outright in that
    state.
    """

    state: WorkflowState
    operation: Operation
    roles: frozenset[Role]


@dataclass(frozen=True)
class WorkflowPolicy:
    """The declarative transition / permission table.

    Contract: frozen; at most one rule per transition pair and per
    (state, operation). ``read_roles`` may read in every state.
    Operations with no rule for a state are denied.
    """

    transitions: tuple[TransitionRule, ...]
    mutations: tuple[MutationRule, ...]
    revert_roles: frozenset[Role] = frozenset({Role.ADMIN})
    read_roles: frozenset[Role] = field(default_factory=lambda: frozenset(Role))

    def __post_init__(self) -> None:
        pairs = [(t.from_state, t.to_state) for t in self.transitions]
        if len(pairs) != len(set(pairs)):
            raise ValueError("Duplicate transition rule in workflow policy")
        keys = [(m.state, m.operation) for m in self.mutations]
        if len(keys) != len(set(keys)):
            raise ValueError("Duplicate mutation rule in workflow policy")
        if any(m.operation == Operation.READ for m in self.mutations):
            raise ValueError("READ is governed by read_roles, not mutation rules")

    def transition_roles(
        self, from_state: WorkflowState, to_state: WorkflowState,
    ) -> frozenset[Role] | None:
        for rule in self.transitions:
            if rule.from_state == from_state and rule.to_state == to_state:
                return rule.roles
        return None

    def mutation_roles(
        self, state: WorkflowState, operation: Operation,
    ) -> frozenset[Role]:
        for rule in self.mutations:
            if rule.state == state and rule.operation == operation:
                return rule.roles
        return frozenset()
