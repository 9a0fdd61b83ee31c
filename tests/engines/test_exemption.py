"""
Tests for the exemption evaluator.

Covers:
- Permanent exemption of public-domain and collective parcels
- No permit, no exemption
- Window expiry per surface tier, boundaries inclusive
- Leap-day permits and future permits
- Malformed input
"""

import pytest
from datetime import date
from decimal import Decimal

from tnb_engines.exemption import (
    PERMANENT_WINDOW_END,
    ExemptionReason,
    add_years,
    evaluate_exemption,
)
from tnb_kernel.domain.fiscal_terms import ExemptionTier, tier_for_surface
from tnb_kernel.domain.parcel import LegalStatus, OccupationStatus
from tnb_kernel.exceptions import ValidationError

TIERS = (
    ExemptionTier(Decimal("100"), 3),
    ExemptionTier(Decimal("500"), 5),
    ExemptionTier(None, 7),
)


def _evaluate(surface="80", legal_status=LegalStatus.TITLED, permit_date=date(2023, 1, 1),
              as_of=date(2024, 6, 1), tiers=TIERS):
    return evaluate_exemption(
        surface=Decimal(surface),
        legal_status=legal_status,
        occupation_status=OccupationStatus.BARE,
        permit_date=permit_date,
        as_of=as_of,
        tiers=tiers,
    )


class TestPermanentExemption:
    """Public-domain and collective land is always exempt."""

    @pytest.mark.parametrize("status", [LegalStatus.PUBLIC_DOMAIN, LegalStatus.COLLECTIVE])
    def test_permanent_regardless_of_permit(self, status):
        decision = _evaluate(surface="5000", legal_status=status, permit_date=None)
        assert decision.exempt
        assert decision.permanent
        assert decision.window_end == PERMANENT_WINDOW_END
        assert decision.remaining_days is None
        assert decision.reason == ExemptionReason.PERMANENT_LEGAL_STATUS

    def test_permanent_even_long_after_permit(self):
        decision = _evaluate(legal_status=LegalStatus.PUBLIC_DOMAIN, as_of=date(2090, 1, 1))
        assert decision.exempt


class TestPermitWindow:
    """Exemption window anchored on the permit date."""

    def test_no_permit_means_no_exemption(self):
        decision = _evaluate(permit_date=None)
        assert not decision.exempt
        assert decision.reason == ExemptionReason.NO_PERMIT
        assert decision.window_end is None

    def test_within_three_year_window(self):
        decision = _evaluate()
        assert decision.exempt
        assert decision.duration_years == 3
        assert decision.window_start == date(2023, 1, 1)
        assert decision.window_end == date(2026, 1, 1)
        assert decision.remaining_days == (date(2026, 1, 1) - date(2024, 6, 1)).days

    def test_past_three_year_window(self):
        decision = _evaluate(as_of=date(2027, 1, 1))
        assert not decision.exempt
        assert decision.reason == ExemptionReason.EXPIRED
        assert decision.remaining_days == 0

    def test_expiry_day_itself_is_taxed(self):
        decision = _evaluate(as_of=date(2026, 1, 1))
        assert not decision.exempt

    def test_day_before_expiry_is_exempt(self):
        decision = _evaluate(as_of=date(2025, 12, 31))
        assert decision.exempt
        assert decision.remaining_days == 1

    def test_future_permit_is_accepted(self):
        decision = _evaluate(permit_date=date(2026, 3, 1), as_of=date(2025, 1, 1))
        assert decision.exempt
        assert decision.window_start == date(2026, 3, 1)
        assert decision.window_end == date(2029, 3, 1)

    def test_exempted_amount_is_binary(self):
        assert _evaluate().exempted_amount(Decimal("1600")) == Decimal("1600")
        expired = _evaluate(as_of=date(2027, 1, 1))
        assert expired.exempted_amount(Decimal("1600")) == Decimal("0")


class TestTiers:
    """Surface brackets with inclusive upper bounds."""

    @pytest.mark.parametrize("surface,years", [
        ("1", 3),
        ("100", 3),
        ("100.01", 5),
        ("500", 5),
        ("500.5", 7),
        ("999999", 7),
    ])
    def test_tier_selection(self, surface, years):
        assert tier_for_surface(Decimal(surface), TIERS).years == years

    def test_boundary_surface_uses_lower_bracket_window(self):
        decision = _evaluate(surface="100", as_of=date(2026, 6, 1))
        assert decision.duration_years == 3
        assert not decision.exempt

    def test_mid_tier_window(self):
        decision = _evaluate(surface="300", as_of=date(2027, 6, 1))
        assert decision.duration_years == 5
        assert decision.exempt

    def test_tiers_are_configuration(self):
        generous = (ExemptionTier(None, 10),)
        decision = _evaluate(as_of=date(2030, 1, 1), tiers=generous)
        assert decision.exempt
        assert decision.duration_years == 10

    def test_tier_configuration_changes_trace_fingerprint(self, captured_logs):
        _evaluate()
        _evaluate(tiers=(ExemptionTier(None, 10),))
        _evaluate()

        traces = [r for r in captured_logs() if r["message"] == "TNB_ENGINE_TRACE"]
        fingerprints = [t["input_fingerprint"] for t in traces if t["engine_name"] == "exemption"]
        assert len(fingerprints) == 3
        assert fingerprints[0] == fingerprints[2] != fingerprints[1]


class TestMalformedInput:
    """Negative surface or malformed tiers are validation errors."""

    def test_negative_surface(self):
        with pytest.raises(ValidationError):
            _evaluate(surface="-1")

    def test_negative_surface_without_permit(self):
        with pytest.raises(ValidationError):
            _evaluate(surface="-1", permit_date=None)

    def test_non_positive_duration(self):
        with pytest.raises(ValidationError):
            ExemptionTier(None, 0)

    def test_bounded_last_tier(self):
        with pytest.raises(ValidationError):
            _evaluate(tiers=(ExemptionTier(Decimal("100"), 3),))

    def test_descending_tiers(self):
        tiers = (
            ExemptionTier(Decimal("500"), 5),
            ExemptionTier(Decimal("100"), 3),
            ExemptionTier(None, 7),
        )
        with pytest.raises(ValidationError):
            _evaluate(tiers=tiers)


class TestAddYears:

    def test_plain_date(self):
        assert add_years(date(2023, 1, 1), 3) == date(2026, 1, 1)

    def test_leap_day_maps_to_28_february(self):
        assert add_years(date(2024, 2, 29), 3) == date(2027, 2, 28)

    def test_leap_day_to_leap_year(self):
        assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)
