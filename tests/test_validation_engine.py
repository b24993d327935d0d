"""Tests for the mission validation engine: proves both pipelines, the
combined flow and the quick checks against the shipped config."""

import json
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from fluzio.engine.validation import MissionValidationEngine
from fluzio.models.level import UserLevel
from fluzio.models.mission import BusinessType, ProofMethod
from fluzio.models.participation import ActivityCounts
from fluzio.models.validation import ErrorCode, WarningCode
from fluzio.policy.resolver import PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
FRESH = ActivityCounts(as_of=NOW)


@pytest.fixture
def engine() -> MissionValidationEngine:
    return MissionValidationEngine(PolicyResolver.from_config_dir(CONFIG_DIR))


def _participate(engine: MissionValidationEngine, **overrides):
    params = dict(
        mission_id="BRING_A_FRIEND",
        user_id="user-1",
        user_total_points=600,
        user_trust_score=60,
        business_type=BusinessType.PHYSICAL,
        proof_method=ProofMethod.QR_SCAN,
        user_completion_count=0,
        last_completion_date=None,
        current_total_participants=0,
        today_participants=0,
        now=NOW,
        activity=FRESH,
    )
    params.update(overrides)
    return engine.validate_mission_participation(**params)


def _activate(engine: MissionValidationEngine, **overrides):
    params = dict(
        mission_id="GOOGLE_REVIEW_TEXT",
        business_type=BusinessType.PHYSICAL,
        business_level=2,
        proof_method=ProofMethod.SCREENSHOT_AI,
        reward_points=100,
        max_participants=None,
    )
    params.update(overrides)
    return engine.validate_mission_activation(**params)


class TestActivation:
    def test_clean_activation(self, engine: MissionValidationEngine) -> None:
        result = _activate(engine)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_screenshot_on_money_mission(self, engine: MissionValidationEngine) -> None:
        result = _activate(
            engine,
            mission_id="FIRST_PURCHASE",
            business_type=BusinessType.ONLINE,
            proof_method=ProofMethod.SCREENSHOT_AI,
            reward_points=40,
        )
        assert result.error_codes == [ErrorCode.INVALID_PROOF_METHOD]
        error = result.errors[0]
        assert error.field == "proofMethod"
        assert error.current_value == "SCREENSHOT_AI"
        assert error.message.startswith("CRITICAL - Order confirmation")
        suggestion = next(
            w for w in result.warnings if w.code == WarningCode.SUGGESTED_PROOF_METHODS
        )
        assert suggestion.message == "Recommended proof methods: WEBHOOK"

    def test_check_in_for_online_business(self, engine: MissionValidationEngine) -> None:
        result = _activate(
            engine,
            mission_id="VISIT_CHECKIN",
            business_type=BusinessType.ONLINE,
            proof_method=ProofMethod.QR_SCAN,
            reward_points=600,
        )
        assert result.error_codes == [ErrorCode.MISSION_NOT_AVAILABLE]
        assert result.errors[0].message == (
            "This mission is not available for online businesses. "
            "Please choose a different mission type."
        )
        assert result.warnings == []

    def test_unknown_mission(self, engine: MissionValidationEngine) -> None:
        result = _activate(engine, mission_id="GHOST")
        assert result.error_codes == [ErrorCode.MISSION_NOT_AVAILABLE]
        assert result.errors[0].field == "missionId"

    def test_reward_too_high_with_otherwise_valid_setup(
        self, engine: MissionValidationEngine,
    ) -> None:
        result = _activate(engine, reward_points=600, max_participants=100)
        assert result.error_codes == [ErrorCode.REWARD_TOO_HIGH]
        assert result.errors[0].message == (
            "Reward cannot exceed 500 points. For higher rewards, split into multiple missions."
        )

    def test_errors_accumulate(self, engine: MissionValidationEngine) -> None:
        result = _activate(
            engine, proof_method=ProofMethod.QR_SCAN, reward_points=600, max_participants=100,
        )
        assert result.error_codes == [ErrorCode.INVALID_PROOF_METHOD, ErrorCode.REWARD_TOO_HIGH]

    @pytest.mark.parametrize("reward, expected", [
        (24, [ErrorCode.REWARD_TOO_LOW]),
        (25, []),
        (500, []),
        (501, [ErrorCode.REWARD_TOO_HIGH]),
    ])
    def test_reward_boundaries(
        self, engine: MissionValidationEngine, reward: int, expected: list,
    ) -> None:
        result = _activate(engine, reward_points=reward, max_participants=10)
        assert result.error_codes == expected

    def test_reward_too_low_context(self, engine: MissionValidationEngine) -> None:
        error = _activate(engine, reward_points=10).errors[0]
        assert error.message == "Reward must be at least 25 points to incentivize participation."
        assert error.required_value == 25
        assert error.current_value == 10

    def test_participant_cap_warning(self, engine: MissionValidationEngine) -> None:
        result = _activate(engine, reward_points=50, max_participants=600)
        assert result.is_valid
        assert result.warnings[0].code == WarningCode.PARTICIPANT_CAP_TOO_HIGH
        assert result.warnings[0].message == (
            "You set max participants to 600, but we recommend 500 for this "
            "mission type to ensure quality."
        )

    def test_upgrade_recommended_for_young_business(
        self, engine: MissionValidationEngine,
    ) -> None:
        result = _activate(
            engine,
            mission_id="CONSULTATION_REQUEST",
            proof_method=ProofMethod.WEBHOOK,
            business_level=1,
        )
        assert result.is_valid
        assert result.warning_codes == [WarningCode.UPGRADE_RECOMMENDED]
        assert _activate(
            engine,
            mission_id="CONSULTATION_REQUEST",
            proof_method=ProofMethod.WEBHOOK,
            business_level=2,
        ).warnings == []

    def test_high_budget_warning(self, engine: MissionValidationEngine) -> None:
        result = _activate(engine, reward_points=200)
        assert result.is_valid
        assert result.warning_codes == [WarningCode.HIGH_BUDGET]
        assert result.warnings[0].message == (
            "This mission will cost approximately 100,000 points. "
            "Consider lowering reward or participant cap."
        )

    def test_budget_at_threshold_is_quiet(self, engine: MissionValidationEngine) -> None:
        # 500 participants x 100 points = 50,000
        assert _activate(engine, reward_points=100).warnings == []


class TestParticipation:
    def test_contributor_passes_trust_gate(self, engine: MissionValidationEngine) -> None:
        result = _participate(engine)
        assert result.is_valid
        assert result.warnings == []

    def test_trust_below_level_floor(self, engine: MissionValidationEngine) -> None:
        result = _participate(engine, user_trust_score=40)
        assert result.error_codes == [ErrorCode.TRUST_SCORE_TOO_LOW]
        assert result.errors[0].message == (
            "Your trust score is 40. You need 50+ to participate in this mission. "
            "Complete more missions successfully to increase your trust score."
        )
        assert result.errors[0].required_value == 50

    def test_novice_never_reaches_referral(self, engine: MissionValidationEngine) -> None:
        for points in (0, 50, 99):
            result = _participate(
                engine,
                mission_id="REFER_PAYING_CUSTOMER",
                user_total_points=points,
                user_trust_score=100,
                business_type=BusinessType.ONLINE,
                proof_method=ProofMethod.REFERRAL_LINK,
            )
            assert ErrorCode.LEVEL_TOO_LOW_REFERRAL in result.error_codes

    def test_referral_gate_message(self, engine: MissionValidationEngine) -> None:
        result = _participate(
            engine,
            mission_id="REFER_PAYING_CUSTOMER",
            user_total_points=50,
            business_type=BusinessType.ONLINE,
            proof_method=ProofMethod.REFERRAL_LINK,
        )
        assert result.errors[0].message == (
            "Referral missions unlock at Contributor level (Level 3). You are currently "
            "Novice. Earn 450 more points to unlock."
        )

    def test_ugc_and_review_gates(self, engine: MissionValidationEngine) -> None:
        ugc = _participate(
            engine,
            mission_id="UGC_PHOTO_UPLOAD",
            user_total_points=50,
            proof_method=ProofMethod.SCREENSHOT_AI,
        )
        review = _participate(
            engine,
            mission_id="GOOGLE_REVIEW_TEXT",
            user_total_points=50,
            proof_method=ProofMethod.SCREENSHOT_AI,
        )
        assert ugc.error_codes == [ErrorCode.LEVEL_TOO_LOW_UGC]
        assert "Earn 50 more points" in ugc.errors[0].message
        assert review.error_codes == [ErrorCode.LEVEL_TOO_LOW_REVIEW]

    def test_category_gate_short_circuits(self, engine: MissionValidationEngine) -> None:
        # Forbidden proof and a full mission are never reported past the gate
        result = _participate(
            engine,
            mission_id="REFER_PAYING_CUSTOMER",
            user_total_points=100,
            user_trust_score=10,
            proof_method=ProofMethod.SCREENSHOT_AI,
            user_completion_count=99,
        )
        assert result.error_codes == [
            ErrorCode.TRUST_SCORE_TOO_LOW, ErrorCode.LEVEL_TOO_LOW_REFERRAL,
        ]

    def test_not_available_for_business_type(self, engine: MissionValidationEngine) -> None:
        result = _participate(
            engine, mission_id="VISIT_CHECKIN", business_type=BusinessType.ONLINE,
        )
        assert result.error_codes == [ErrorCode.MISSION_NOT_AVAILABLE]
        assert result.errors[0].message == "This mission is not available for online businesses."

    def test_unknown_mission(self, engine: MissionValidationEngine) -> None:
        result = _participate(engine, mission_id="GHOST")
        assert result.error_codes == [ErrorCode.MISSION_NOT_AVAILABLE]

    def test_forbidden_proof(self, engine: MissionValidationEngine) -> None:
        result = _participate(engine, proof_method=ProofMethod.SCREENSHOT_AI)
        assert result.error_codes == [ErrorCode.INVALID_PROOF_METHOD]

    def test_mission_full(self, engine: MissionValidationEngine) -> None:
        result = _participate(
            engine,
            mission_id="GOOGLE_REVIEW_TEXT",
            proof_method=ProofMethod.SCREENSHOT_AI,
            current_total_participants=500,
        )
        assert result.error_codes == [ErrorCode.MISSION_FULL]

    @pytest.mark.parametrize("total, warned", [(495, True), (490, True), (489, False)])
    def test_almost_full_threshold(
        self, engine: MissionValidationEngine, total: int, warned: bool,
    ) -> None:
        result = _participate(
            engine,
            mission_id="GOOGLE_REVIEW_TEXT",
            proof_method=ProofMethod.SCREENSHOT_AI,
            current_total_participants=total,
        )
        assert result.is_valid
        assert (WarningCode.ALMOST_FULL in result.warning_codes) is warned

    def test_almost_full_message(self, engine: MissionValidationEngine) -> None:
        result = _participate(
            engine,
            mission_id="GOOGLE_REVIEW_TEXT",
            proof_method=ProofMethod.SCREENSHOT_AI,
            current_total_participants=495,
        )
        assert result.warnings[0].message == (
            "Only 5 spots remaining! Complete this mission soon before it fills up."
        )

    def test_per_user_limit(self, engine: MissionValidationEngine) -> None:
        result = _participate(
            engine,
            mission_id="GOOGLE_REVIEW_TEXT",
            proof_method=ProofMethod.SCREENSHOT_AI,
            user_completion_count=1,
        )
        assert result.error_codes == [ErrorCode.USER_LIMIT_REACHED]
        assert result.errors[0].field == "userCompletionCount"

    def test_cooldown_reports_end(self, engine: MissionValidationEngine) -> None:
        last = NOW - timedelta(days=2)
        result = _participate(
            engine,
            mission_id="UGC_PHOTO_UPLOAD",
            proof_method=ProofMethod.SCREENSHOT_AI,
            user_completion_count=1,
            last_completion_date=last,
        )
        assert result.error_codes == [ErrorCode.USER_LIMIT_REACHED]
        assert result.errors[0].field == "cooldownEnds"
        assert result.errors[0].required_value == (last + timedelta(days=7)).isoformat()

    def test_naive_completion_date(self, engine: MissionValidationEngine) -> None:
        result = _participate(
            engine,
            mission_id="VISIT_CHECKIN",
            user_completion_count=1,
            last_completion_date=datetime(2026, 1, 9),
        )
        assert result.is_valid

    def test_catalog_cooldown_hours_apply(self, engine: MissionValidationEngine) -> None:
        last = NOW - timedelta(days=4)
        result = _participate(
            engine,
            mission_id="STORY_POST_TAG",
            business_type=BusinessType.ONLINE,
            proof_method=ProofMethod.SCREENSHOT_AI,
            user_completion_count=1,
            last_completion_date=last,
        )
        assert ErrorCode.USER_LIMIT_REACHED in result.error_codes
        cooldown = [e for e in result.errors if e.field == "cooldownEnds"]
        assert cooldown[0].required_value == (last + timedelta(hours=168)).isoformat()

    def test_daily_ceiling_from_activity(self, engine: MissionValidationEngine) -> None:
        busy = ActivityCounts(as_of=NOW, missions_today=8)
        result = _participate(engine, activity=busy)
        assert result.error_codes == [ErrorCode.USER_LIMIT_REACHED]
        assert result.errors[0].field == "missionsToday"

    def test_referral_ceiling_from_activity(self, engine: MissionValidationEngine) -> None:
        busy = ActivityCounts(as_of=NOW, referrals_this_month=3)
        result = _participate(engine, activity=busy)
        assert [e.field for e in result.errors] == ["referralsThisMonth"]

    def test_missing_activity_skips_ceilings(self, engine: MissionValidationEngine) -> None:
        assert _participate(engine, activity=None).is_valid

    def test_activity_is_keyword_only(self, engine: MissionValidationEngine) -> None:
        with pytest.raises(TypeError):
            engine.validate_mission_participation(
                "BRING_A_FRIEND", "user-1", 600, 60, BusinessType.PHYSICAL,
                ProofMethod.QR_SCAN, 0, None, 0, 0,
            )

    def test_calls_are_idempotent(self, engine: MissionValidationEngine) -> None:
        first = _participate(engine, user_trust_score=40, current_total_participants=3)
        second = _participate(engine, user_trust_score=40, current_total_participants=3)
        assert first == second

    def test_is_valid_matches_errors(self, engine: MissionValidationEngine) -> None:
        for trust in (0, 40, 60):
            result = _participate(engine, user_trust_score=trust)
            assert result.is_valid == (len(result.errors) == 0)


class TestManualApprovalWarning:
    def test_high_value_without_access_warns(self) -> None:
        names = {
            "catalog": "mission_catalog.json",
            "matrix": "proof_matrix.json",
            "availability": "business_availability.json",
            "levels": "user_levels.json",
            "policy": "validation_policy.json",
        }
        docs = {
            key: json.loads((CONFIG_DIR / name).read_text(encoding="utf-8"))
            for key, name in names.items()
        }
        docs["levels"]["levels"][0]["can_access_high_value_missions"] = False
        engine = MissionValidationEngine(PolicyResolver(**docs))

        result = _participate(
            engine,
            mission_id="FIRST_PURCHASE",
            user_total_points=0,
            user_trust_score=0,
            business_type=BusinessType.ONLINE,
            proof_method=ProofMethod.WEBHOOK,
        )
        assert result.is_valid
        assert result.warning_codes == [WarningCode.REQUIRES_MANUAL_APPROVAL]

    def test_shipped_table_grants_high_value_access(
        self, engine: MissionValidationEngine,
    ) -> None:
        result = _participate(
            engine,
            mission_id="FIRST_PURCHASE",
            user_total_points=0,
            user_trust_score=0,
            business_type=BusinessType.ONLINE,
            proof_method=ProofMethod.WEBHOOK,
        )
        assert result.is_valid
        assert result.warnings == []


class TestCompleteValidation:
    def test_misconfigured_mission_returns_activation_result(
        self, engine: MissionValidationEngine,
    ) -> None:
        result = engine.validate_mission_completely(
            "VISIT_CHECKIN", BusinessType.ONLINE, 2, ProofMethod.QR_SCAN, 50,
            "user-1", 600, 0, 0, None, 0, 0,
            now=NOW, activity=FRESH,
        )
        # Trust 0 would fail participation; activation wins
        assert result.error_codes == [ErrorCode.MISSION_NOT_AVAILABLE]
        assert "Please choose a different mission type." in result.errors[0].message

    def test_activation_warnings_come_first(self, engine: MissionValidationEngine) -> None:
        result = engine.validate_mission_completely(
            "GOOGLE_REVIEW_TEXT", BusinessType.PHYSICAL, 2, ProofMethod.SCREENSHOT_AI, 100,
            "user-1", 600, 60, 0, None, 495, 0, 600,
            now=NOW, activity=FRESH,
        )
        assert result.is_valid
        assert result.warning_codes == [
            WarningCode.PARTICIPANT_CAP_TOO_HIGH,
            WarningCode.HIGH_BUDGET,
            WarningCode.ALMOST_FULL,
        ]

    def test_participation_errors_surface(self, engine: MissionValidationEngine) -> None:
        result = engine.validate_mission_completely(
            "BRING_A_FRIEND", BusinessType.PHYSICAL, 2, ProofMethod.QR_SCAN, 100,
            "user-1", 600, 40, 0, None, 0, 0,
            now=NOW, activity=FRESH,
        )
        assert result.error_codes == [ErrorCode.TRUST_SCORE_TOO_LOW]


class TestQuickChecks:
    def test_user_can_start(self, engine: MissionValidationEngine) -> None:
        check = engine.can_user_start_mission("VISIT_CHECKIN", UserLevel.NOVICE, 0)
        assert check.can_start
        assert check.reason is None

    def test_user_trust_too_low(self, engine: MissionValidationEngine) -> None:
        check = engine.can_user_start_mission("VISIT_CHECKIN", UserLevel.CONTRIBUTOR, 40)
        assert not check.can_start
        assert check.reason == "Trust score too low. Need 50, have 40."

    def test_user_referral_locked(self, engine: MissionValidationEngine) -> None:
        check = engine.can_user_start_mission("REFER_PAYING_CUSTOMER", UserLevel.NOVICE, 50)
        assert not check.can_start
        assert check.reason == "Referral missions unlock at Contributor level."

    def test_business_can_create(self, engine: MissionValidationEngine) -> None:
        assert engine.can_business_create_mission(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.WEBHOOK,
        ).can_create

    def test_business_forbidden_proof(self, engine: MissionValidationEngine) -> None:
        check = engine.can_business_create_mission(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.SCREENSHOT_AI,
        )
        assert not check.can_create
        assert check.reason.startswith("CRITICAL")

    def test_business_not_offered(self, engine: MissionValidationEngine) -> None:
        check = engine.can_business_create_mission(
            "VISIT_CHECKIN", BusinessType.ONLINE, ProofMethod.QR_SCAN,
        )
        assert not check.can_create
        assert check.reason == "This mission type is not available for online businesses."
