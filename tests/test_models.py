"""Tests for mission engine models: proves derived properties and serialization."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

from fluzio.models import (
    BudgetEstimate,
    ErrorCode,
    ProofMethod,
    ProofMethodConfig,
    SubscriptionTier,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    WarningCode,
)
from fluzio.models.level import ProofStrictness, UserLevel
from fluzio.models.mission import (
    AntiCheatKind,
    LocationLockRule,
    ParticipationCaps,
    RateLimitRule,
    RateLimitScope,
)
from fluzio.models.participation import ActivityCounts


class TestValidationResult:
    def test_empty_result_is_valid(self) -> None:
        assert ValidationResult().is_valid

    def test_warnings_do_not_affect_validity(self) -> None:
        result = ValidationResult(warnings=[
            ValidationWarning(WarningCode.HIGH_BUDGET, "expensive"),
        ])
        assert result.is_valid

    def test_any_error_invalidates(self) -> None:
        result = ValidationResult(errors=[
            ValidationError(ErrorCode.MISSION_FULL, "full"),
        ])
        assert not result.is_valid
        assert result.error_codes == [ErrorCode.MISSION_FULL]

    def test_leading_warnings(self) -> None:
        own = ValidationWarning(WarningCode.ALMOST_FULL, "soon")
        lead = ValidationWarning(WarningCode.HIGH_BUDGET, "expensive")
        combined = ValidationResult(warnings=[own]).with_leading_warnings([lead])
        assert combined.warning_codes == [WarningCode.HIGH_BUDGET, WarningCode.ALMOST_FULL]

    def test_to_dict_omits_empty_context(self) -> None:
        error = ValidationError(ErrorCode.REWARD_TOO_LOW, "low", field="rewardPoints",
                                required_value=25, current_value=10)
        data = ValidationResult(errors=[error]).to_dict()
        assert data["is_valid"] is False
        assert data["errors"][0] == {
            "code": "REWARD_TOO_LOW",
            "message": "low",
            "field": "rewardPoints",
            "required_value": 25,
            "current_value": 10,
        }
        assert ValidationError(ErrorCode.MISSION_FULL, "full").to_dict() == {
            "code": "MISSION_FULL", "message": "full",
        }

    def test_results_are_frozen(self) -> None:
        with pytest.raises(FrozenInstanceError):
            ValidationResult().errors = []


class TestEnums:
    def test_error_codes_are_closed(self) -> None:
        assert len(ErrorCode) == 10
        assert len(WarningCode) == 6

    def test_levels_order(self) -> None:
        assert UserLevel.NOVICE < UserLevel.LEGEND
        assert int(UserLevel.CONTRIBUTOR) == 3

    def test_strictness_rank(self) -> None:
        assert ProofStrictness.HIGH.rank > ProofStrictness.MEDIUM.rank > ProofStrictness.LOW.rank

    def test_subscription_rank(self) -> None:
        assert SubscriptionTier.PLATINUM.rank > SubscriptionTier.STARTER.rank


class TestAntiCheatRules:
    def test_rule_kind_is_fixed_per_variant(self) -> None:
        rule = RateLimitRule(max_submissions=1, window_hours=24, scope=RateLimitScope.PER_USER)
        assert rule.kind == AntiCheatKind.RATE_LIMIT
        assert LocationLockRule(
            radius_meters=100, require_gps=True, allow_manual_override=False,
        ).kind == AntiCheatKind.LOCATION_LOCK


class TestProofMethodConfig:
    def test_accepted_skips_forbidden(self) -> None:
        config = ProofMethodConfig(
            primary=ProofMethod.QR_SCAN,
            fallback=ProofMethod.GPS_CHECKIN,
            forbidden={ProofMethod.GPS_CHECKIN: None},
            requires_business_confirmation=False,
        )
        assert config.accepted == [ProofMethod.QR_SCAN]

    def test_to_dict(self) -> None:
        config = ProofMethodConfig(
            primary=ProofMethod.WEBHOOK,
            fallback=None,
            forbidden={ProofMethod.SCREENSHOT_AI: "Easily faked"},
            requires_business_confirmation=True,
        )
        data = config.to_dict()
        assert data["fallback"] is None
        assert data["forbidden"] == {"SCREENSHOT_AI": "Easily faked"}


class TestBudgetEstimate:
    def test_to_dict(self) -> None:
        estimate = BudgetEstimate(estimated_cost=10, daily_cost=1, weekly_cost=7, monthly_cost=30)
        assert estimate.to_dict()["weekly_cost"] == 7


class TestActivityCounts:
    NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

    def test_counts_from_earlier_today_are_current(self) -> None:
        assert ActivityCounts(as_of=self.NOW - timedelta(hours=11)).is_current(self.NOW)

    def test_counts_from_yesterday_are_not_current(self) -> None:
        assert not ActivityCounts(as_of=self.NOW - timedelta(hours=13)).is_current(self.NOW)

    def test_counts_from_the_future_are_not_current(self) -> None:
        assert not ActivityCounts(as_of=self.NOW + timedelta(seconds=1)).is_current(self.NOW)

    def test_day_follows_the_timezone_of_now(self) -> None:
        # 01:00 in UTC+02:00 is 23:00 UTC the previous day
        local_now = datetime(2026, 3, 10, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        as_of = datetime(2026, 3, 9, 22, 30, tzinfo=timezone.utc)
        assert ActivityCounts(as_of=as_of).is_current(local_now)

    def test_naive_as_of_is_utc(self) -> None:
        assert ActivityCounts(as_of=datetime(2026, 3, 10, 8, 0)).is_current(self.NOW)


class TestParticipationCaps:
    def test_to_dict(self) -> None:
        caps = ParticipationCaps(
            max_total_participants=None,
            max_participants_per_day=20,
            recommended_budget=2000,
            max_participations_per_user=1,
            cooldown_days=0,
            one_time_only=True,
            requires_unique_proof=True,
            allow_simultaneous_submissions=False,
            rationale="not exported",
        )
        data = caps.to_dict()
        assert data["recommended_budget"] == 2000
        assert data["requires_unique_proof"] is True
        assert data["allow_simultaneous_submissions"] is False
        assert "rationale" not in data
