"""
Pytest fixtures for the TNB fiscal core test suite.

Provides:
- Structured logging configuration and log capture
- A deterministic clock
- The packaged reference policy and engines built from it
- In-memory SQLite sessions for the persistence adapter
- Factory helpers for parcels and shares
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from tnb_config import get_active_policy
from tnb_engines.apportionment import ApportionmentEngine
from tnb_engines.fiscal import FiscalCalculator
from tnb_engines.tariff import TariffTable
from tnb_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from tnb_kernel.domain.clock import DeterministicClock
from tnb_kernel.domain.parcel import (
    LegalStatus,
    OccupationStatus,
    OwnershipShare,
    Parcel,
    TariffRecord,
)
from tnb_kernel.domain.workflow import WorkflowState
from tnb_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture tnb_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "fiscal_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("tnb_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and policy fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock.on(date(2025, 6, 1))


@pytest.fixture(scope="session")
def policy():
    """The packaged reference policy."""
    return get_active_policy()


@pytest.fixture
def zone_a_table():
    """Zone A at 20/m2 for 2025, the reference example."""
    return TariffTable([TariffRecord("A", 2025, Decimal("20"))])


@pytest.fixture
def calculator(zone_a_table, policy, deterministic_clock):
    return FiscalCalculator(zone_a_table, policy, deterministic_clock)


@pytest.fixture
def apportionment(policy):
    return ApportionmentEngine.from_policy(policy)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """A session on a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.close()
        drop_tables()
        reset_engine()


# =============================================================================
# Factories
# =============================================================================


def make_parcel(
    surface="100",
    zone="A",
    legal_status=LegalStatus.TITLED,
    occupation_status=OccupationStatus.BARE,
    permit_date=None,
    workflow_state=WorkflowState.VALIDATED,
    parcel_id="P1",
) -> Parcel:
    return Parcel(
        parcel_id=parcel_id,
        taxable_surface=Decimal(str(surface)),
        zone=zone,
        legal_status=legal_status,
        occupation_status=occupation_status,
        permit_date=permit_date,
        workflow_state=workflow_state,
    )


def make_shares(parcel_id="P1", **owner_shares) -> list[OwnershipShare]:
    """make_shares(O1="0.5", O2="0.5")"""
    return [
        OwnershipShare(parcel_id=parcel_id, owner_id=owner, share=Decimal(share))
        for owner, share in owner_shares.items()
    ]


@pytest.fixture
def parcel_factory():
    return make_parcel


@pytest.fixture
def share_factory():
    return make_shares
