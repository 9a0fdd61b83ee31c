"""
Tests for the fiscal notice service (end-to-end control flow).
"""

import pytest
from datetime import date
from decimal import Decimal

from tnb_engines.tariff import TariffTable
from tnb_kernel.domain.parcel import OccupationStatus, OwnershipShare
from tnb_kernel.domain.workflow import Role, WorkflowState
from tnb_kernel.exceptions import ForbiddenTransition, IndivisionError, ValidationError
from tnb_services.fiscal_notice_service import FiscalNoticeService


class InMemoryShares:
    """Share source backed by a dict of parcel id -> shares."""

    def __init__(self, shares):
        self._shares = shares
        self.calls = []

    def get_active_shares(self, parcel_id, as_of=None):
        self.calls.append((parcel_id, as_of))
        return [s for s in self._shares.get(parcel_id, []) if s.is_active_on(as_of)]


@pytest.fixture
def share_source(share_factory):
    return InMemoryShares({
        "P1": share_factory(O1="0.3333", O2="0.3333", O3="0.3334"),
        "P2": share_factory(parcel_id="P2", A="0.49", B="0.49"),
    })


@pytest.fixture
def service(zone_a_table, share_source, policy, deterministic_clock):
    return FiscalNoticeService(zone_a_table, share_source, policy, deterministic_clock)


class TestGenerateNotices:

    def test_full_flow(self, service, parcel_factory):
        batch = service.generate_notices(parcel_factory(surface="5"), 2025, Role.FISCAL_AGENT)

        assert batch.result.net_amount == Decimal("100.00")
        assert [n.amount for n in batch.notices] == [
            Decimal("33.33"), Decimal("33.33"), Decimal("33.34"),
        ]
        assert batch.total_amount == Decimal("100.00")
        assert batch.policy_checksum
        assert batch.notices[0].code == "TNB-2025-P1-O1-0001"

    def test_published_parcel(self, service, parcel_factory):
        parcel = parcel_factory(workflow_state=WorkflowState.PUBLISHED)
        batch = service.generate_notices(parcel, 2025, Role.ADMIN)
        assert len(batch.notices) == 3

    @pytest.mark.parametrize("state", [WorkflowState.DRAFT, WorkflowState.ARCHIVED])
    def test_state_forbids_generation(self, service, parcel_factory, share_source, state):
        with pytest.raises(ForbiddenTransition):
            service.generate_notices(parcel_factory(workflow_state=state), 2025, Role.ADMIN)
        assert share_source.calls == []

    def test_role_forbids_generation(self, service, parcel_factory):
        with pytest.raises(ForbiddenTransition) as exc_info:
            service.generate_notices(parcel_factory(), 2025, Role.TECHNICIAN)
        assert exc_info.value.action == "generate_notice"

    def test_bad_shares_block_notices(self, service, parcel_factory):
        with pytest.raises(IndivisionError) as exc_info:
            service.generate_notices(parcel_factory(parcel_id="P2"), 2025, Role.ADMIN)
        assert exc_info.value.computed_sum == Decimal("0.98")

    def test_parcel_without_shares_blocked(self, service, parcel_factory):
        with pytest.raises(IndivisionError):
            service.generate_notices(parcel_factory(parcel_id="P3"), 2025, Role.ADMIN)

    def test_built_parcel_yields_no_notices(self, service, parcel_factory, share_source):
        parcel = parcel_factory(occupation_status=OccupationStatus.BUILT)
        batch = service.generate_notices(parcel, 2025, Role.ADMIN)
        assert not batch.result.applicable
        assert batch.notices == ()
        assert share_source.calls == []

    def test_exempt_parcel_yields_zero_notices(self, service, parcel_factory):
        parcel = parcel_factory(surface="80", permit_date=date(2024, 1, 1))
        batch = service.generate_notices(parcel, 2025, Role.ADMIN)
        assert batch.result.exemption_applied
        assert all(n.amount == Decimal("0.00") for n in batch.notices)

    def test_shares_fetched_for_as_of(self, service, parcel_factory, share_source):
        service.generate_notices(parcel_factory(), 2025, Role.ADMIN, as_of=date(2025, 3, 1))
        assert share_source.calls == [("P1", date(2025, 3, 1))]

    def test_unusable_parcel_id_rejected_before_computation(
        self, service, parcel_factory, share_source, captured_logs,
    ):
        with pytest.raises(ValidationError) as exc_info:
            service.generate_notices(parcel_factory(parcel_id="P-1"), 2025, Role.ADMIN)
        assert exc_info.value.field == "parcel_id"
        assert share_source.calls == []
        assert not [r for r in captured_logs() if r["message"] == "TNB_ENGINE_TRACE"]

    def test_unusable_owner_id_rejected_before_apportionment(
        self, zone_a_table, policy, deterministic_clock, parcel_factory, captured_logs,
    ):
        source = InMemoryShares({"P1": [
            OwnershipShare("P1", "O1", Decimal("0.5")),
            OwnershipShare("P1", "owner-2", Decimal("0.5")),
        ]})
        service = FiscalNoticeService(zone_a_table, source, policy, deterministic_clock)
        with pytest.raises(ValidationError) as exc_info:
            service.generate_notices(parcel_factory(), 2025, Role.ADMIN)
        assert exc_info.value.field == "owner_id"
        engines = {r["engine_name"] for r in captured_logs() if r["message"] == "TNB_ENGINE_TRACE"}
        assert "apportionment" not in engines

    def test_log_context_bound(self, service, parcel_factory, captured_logs):
        service.generate_notices(parcel_factory(), 2025, Role.FISCAL_AGENT, actor_id="agent-7")
        records = [r for r in captured_logs() if r["message"] == "notices_generated"]
        assert len(records) == 1
        assert records[0]["parcel_id"] == "P1"
        assert records[0]["actor_id"] == "agent-7"
        assert records[0]["actor_role"] == "fiscal_agent"
        assert records[0]["fiscal_year"] == "2025"
        assert "correlation_id" in records[0]


class TestCompute:

    def test_any_role_may_preview(self, service, parcel_factory):
        result = service.compute(parcel_factory(workflow_state=WorkflowState.DRAFT), 2025, Role.READER)
        assert result.is_apportioned
        assert sum(line.amount for line in result.owner_amounts) == result.net_amount

    def test_tariffs_from_policy(self, share_source, policy, deterministic_clock, parcel_factory):
        service = FiscalNoticeService(
            TariffTable.from_policy(policy), share_source, policy, deterministic_clock,
        )
        result = service.compute(parcel_factory(surface="10", zone="ZR1"), 2025, Role.ADMIN)
        assert result.net_amount == Decimal("120.00")

    def test_preview_accepts_any_id(self, zone_a_table, policy, deterministic_clock, parcel_factory):
        source = InMemoryShares({"P-1": [OwnershipShare("P-1", "owner-1", Decimal("1"))]})
        service = FiscalNoticeService(zone_a_table, source, policy, deterministic_clock)
        result = service.compute(parcel_factory(parcel_id="P-1"), 2025, Role.ADMIN)
        assert result.owner_amounts[0].owner_id == "owner-1"


class TestCustomShares:

    def test_single_owner(self, zone_a_table, policy, deterministic_clock, parcel_factory):
        source = InMemoryShares({"P1": [OwnershipShare("P1", "SOLE", Decimal("1"))]})
        service = FiscalNoticeService(zone_a_table, source, policy, deterministic_clock)
        batch = service.generate_notices(parcel_factory(), 2025, Role.ADMIN)
        assert [(n.owner_id, n.amount) for n in batch.notices] == [("SOLE", Decimal("2000.00"))]
