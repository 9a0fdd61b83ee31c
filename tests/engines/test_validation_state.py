"""
Tests for the validation workflow decisions.

Covers:
- Forward transitions per role
- Admin-only revert to Draft
- Per-state mutation permissions
- ForbiddenTransition from the enforcing variants
- Custom permission tables
"""

import pytest

from tnb_engines.validation_state import (
    ValidationStateMachine,
    allowed_targets,
    can_mutate,
    can_transition,
    require_mutation,
    require_transition,
)
from tnb_kernel.domain.workflow import (
    MutationRule,
    Operation,
    Role,
    TransitionRule,
    WorkflowPolicy,
    WorkflowState,
)
from tnb_kernel.exceptions import ForbiddenTransition

D, V, P, A = (
    WorkflowState.DRAFT,
    WorkflowState.VALIDATED,
    WorkflowState.PUBLISHED,
    WorkflowState.ARCHIVED,
)


@pytest.fixture
def workflow(policy):
    return policy.workflow


class TestTransitions:
    """Reference transition table."""

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.TECHNICIAN])
    def test_draft_to_validated(self, workflow, role):
        assert can_transition(workflow, D, V, role)

    @pytest.mark.parametrize("role", [Role.FISCAL_AGENT, Role.READER])
    def test_draft_to_validated_denied(self, workflow, role):
        assert not can_transition(workflow, D, V, role)

    def test_validated_to_published_admin_only(self, workflow):
        assert can_transition(workflow, V, P, Role.ADMIN)
        assert not can_transition(workflow, V, P, Role.TECHNICIAN)

    def test_published_to_archived_admin_only(self, workflow):
        assert can_transition(workflow, P, A, Role.ADMIN)
        assert not can_transition(workflow, P, A, Role.FISCAL_AGENT)

    def test_no_skipping_states(self, workflow):
        assert not can_transition(workflow, D, P, Role.ADMIN)
        assert not can_transition(workflow, V, A, Role.ADMIN)

    def test_no_backward_move_other_than_revert(self, workflow):
        assert not can_transition(workflow, P, V, Role.ADMIN)
        assert not can_transition(workflow, A, P, Role.ADMIN)

    def test_same_state_is_not_a_transition(self, workflow):
        assert not can_transition(workflow, D, D, Role.ADMIN)
        assert not can_transition(workflow, V, V, Role.ADMIN)


class TestRevert:
    """Revert to Draft is the Admin-only escape hatch."""

    def test_published_to_draft_technician(self, workflow):
        assert not can_transition(workflow, P, D, Role.TECHNICIAN)

    def test_published_to_draft_admin(self, workflow):
        assert can_transition(workflow, P, D, Role.ADMIN)

    @pytest.mark.parametrize("state", [V, P, A])
    def test_admin_may_revert_any_state(self, workflow, state):
        assert can_transition(workflow, state, D, Role.ADMIN)

    def test_accepts_string_values(self, workflow):
        assert can_transition(workflow, "published", "draft", "admin")


class TestMutations:
    """Per-state mutation permissions."""

    @pytest.mark.parametrize("state", [D, V, P, A])
    @pytest.mark.parametrize("role", list(Role))
    def test_read_always_allowed(self, workflow, state, role):
        assert can_mutate(workflow, state, role, Operation.READ)

    @pytest.mark.parametrize("op", [Operation.CREATE, Operation.UPDATE, Operation.DELETE])
    def test_draft_writes(self, workflow, op):
        assert can_mutate(workflow, D, Role.ADMIN, op)
        assert can_mutate(workflow, D, Role.TECHNICIAN, op)
        assert not can_mutate(workflow, D, Role.READER, op)
        assert not can_mutate(workflow, D, Role.FISCAL_AGENT, op)

    @pytest.mark.parametrize("op", [Operation.CREATE, Operation.UPDATE, Operation.DELETE])
    def test_validated_writes_admin_only(self, workflow, op):
        assert can_mutate(workflow, V, Role.ADMIN, op)
        assert not can_mutate(workflow, V, Role.TECHNICIAN, op)

    @pytest.mark.parametrize("state", [P, A])
    @pytest.mark.parametrize("op", [Operation.CREATE, Operation.UPDATE, Operation.DELETE])
    def test_published_and_archived_are_read_only(self, workflow, state, op):
        for role in Role:
            assert not can_mutate(workflow, state, role, op)

    def test_published_update_denied_for_admin(self, workflow):
        assert not can_mutate(workflow, P, Role.ADMIN, Operation.UPDATE)

    def test_notice_generation(self, workflow):
        assert can_mutate(workflow, V, Role.FISCAL_AGENT, Operation.GENERATE_NOTICE)
        assert can_mutate(workflow, P, Role.ADMIN, Operation.GENERATE_NOTICE)
        assert not can_mutate(workflow, D, Role.ADMIN, Operation.GENERATE_NOTICE)
        assert not can_mutate(workflow, A, Role.FISCAL_AGENT, Operation.GENERATE_NOTICE)
        assert not can_mutate(workflow, P, Role.TECHNICIAN, Operation.GENERATE_NOTICE)


class TestEnforcement:
    """Denials raise ForbiddenTransition, never a silent no-op."""

    def test_require_transition_returns_target(self, workflow):
        assert require_transition(workflow, D, V, Role.TECHNICIAN) == V

    def test_require_transition_raises(self, workflow):
        with pytest.raises(ForbiddenTransition) as exc_info:
            require_transition(workflow, P, D, Role.TECHNICIAN, parcel_id="P1")
        err = exc_info.value
        assert err.current_state == "published"
        assert err.role == "technician"
        assert "draft" in err.action
        assert err.parcel_id == "P1"
        assert err.code == "FORBIDDEN_TRANSITION"

    def test_require_mutation_raises(self, workflow):
        with pytest.raises(ForbiddenTransition) as exc_info:
            require_mutation(workflow, P, Role.ADMIN, Operation.UPDATE)
        assert exc_info.value.action == "update"

    def test_require_mutation_allows(self, workflow):
        require_mutation(workflow, D, Role.TECHNICIAN, Operation.UPDATE)

    def test_denial_is_logged(self, workflow, captured_logs):
        with pytest.raises(ForbiddenTransition):
            require_transition(workflow, V, P, Role.READER)
        assert any(r["message"] == "workflow_transition_denied" for r in captured_logs())


class TestAllowedTargets:

    def test_admin_from_validated(self, workflow):
        assert allowed_targets(workflow, V, Role.ADMIN) == [D, P]

    def test_technician_from_draft(self, workflow):
        assert allowed_targets(workflow, D, Role.TECHNICIAN) == [V]

    def test_reader_goes_nowhere(self, workflow):
        assert allowed_targets(workflow, P, Role.READER) == []


class TestCustomPolicy:
    """The table is configuration, not hardcoded."""

    def setup_method(self):
        self.policy = WorkflowPolicy(
            transitions=(
                TransitionRule(D, V, frozenset({Role.FISCAL_AGENT})),
            ),
            mutations=(
                MutationRule(D, Operation.UPDATE, frozenset({Role.READER})),
            ),
            revert_roles=frozenset(),
            read_roles=frozenset({Role.ADMIN}),
        )
        self.machine = ValidationStateMachine(self.policy)

    def test_custom_transition(self):
        assert self.machine.can_transition(D, V, Role.FISCAL_AGENT)
        assert not self.machine.can_transition(D, V, Role.ADMIN)

    def test_no_revert_roles(self):
        assert not self.machine.can_transition(V, D, Role.ADMIN)

    def test_custom_mutation(self):
        assert self.machine.can_mutate(D, Role.READER, Operation.UPDATE)
        assert not self.machine.can_mutate(D, Role.ADMIN, Operation.UPDATE)

    def test_read_roles_respected(self):
        assert not self.machine.can_mutate(D, Role.READER, Operation.READ)

    def test_backward_rule_rejected(self):
        with pytest.raises(ValueError):
            TransitionRule(P, V, frozenset({Role.ADMIN}))

    def test_duplicate_rule_rejected(self):
        rule = TransitionRule(D, V, frozenset({Role.ADMIN}))
        with pytest.raises(ValueError):
            WorkflowPolicy(transitions=(rule, rule), mutations=())
