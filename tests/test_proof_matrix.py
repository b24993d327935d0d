"""Tests for the proof method matrix: proves lookups, refusal reasons and
the standing proof rules."""

import json
import pytest
from pathlib import Path

from fluzio.models.mission import BusinessType, ProofMethod
from fluzio.models.proof import DEFAULT_FORBIDDEN_REASON
from fluzio.policy.resolver import PolicyResolver
from fluzio.proof.matrix import ProofMethodMatrix


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def matrix() -> ProofMethodMatrix:
    return ProofMethodMatrix(PolicyResolver.from_config_dir(CONFIG_DIR))


def _matrix_with(mutate) -> ProofMethodMatrix:
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
    mutate(docs["matrix"]["missions"])
    return ProofMethodMatrix(PolicyResolver(**docs))


class TestLookup:
    def test_not_offered_is_none(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.get_proof_method_config("VISIT_CHECKIN", BusinessType.ONLINE) is None

    def test_unknown_mission_is_none(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.get_proof_method_config("GHOST", BusinessType.PHYSICAL) is None

    def test_accepted_methods_primary_first(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.accepted_methods("VISIT_CHECKIN", BusinessType.PHYSICAL) == [
            ProofMethod.QR_SCAN, ProofMethod.GPS_CHECKIN,
        ]

    def test_ephemeral_content_has_no_fallback(self, matrix: ProofMethodMatrix) -> None:
        config = matrix.get_proof_method_config("STORY_POST_TAG", BusinessType.ONLINE)
        assert config.fallback is None
        assert config.requires_business_confirmation


class TestIsAllowed:
    def test_primary_allowed(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.is_proof_method_allowed(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.WEBHOOK,
        )

    def test_fallback_allowed(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.is_proof_method_allowed(
            "VISIT_CHECKIN", BusinessType.HYBRID, ProofMethod.GPS_CHECKIN,
        )

    def test_screenshot_forbidden_for_money(self, matrix: ProofMethodMatrix) -> None:
        assert not matrix.is_proof_method_allowed(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.SCREENSHOT_AI,
        )

    def test_not_offered_never_allowed(self, matrix: ProofMethodMatrix) -> None:
        for method in ProofMethod:
            assert not matrix.is_proof_method_allowed(
                "VISIT_CHECKIN", BusinessType.ONLINE, method,
            )

    def test_forbidden_wins_over_primary(self) -> None:
        def mutate(missions: dict) -> None:
            missions["REDEEM_OFFER"]["PHYSICAL"]["forbidden"]["QR_SCAN"] = None

        matrix = _matrix_with(mutate)
        assert not matrix.is_proof_method_allowed(
            "REDEEM_OFFER", BusinessType.PHYSICAL, ProofMethod.QR_SCAN,
        )


class TestForbiddenReason:
    def test_reason_for_forbidden_method(self, matrix: ProofMethodMatrix) -> None:
        reason = matrix.get_forbidden_reason(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.SCREENSHOT_AI,
        )
        assert reason

    def test_no_reason_for_accepted_method(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.get_forbidden_reason(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.WEBHOOK,
        ) is None

    def test_no_reason_when_not_offered(self, matrix: ProofMethodMatrix) -> None:
        assert matrix.get_forbidden_reason(
            "VISIT_CHECKIN", BusinessType.ONLINE, ProofMethod.QR_SCAN,
        ) is None

    def test_null_reason_falls_back_to_default(self) -> None:
        def mutate(missions: dict) -> None:
            missions["FIRST_PURCHASE"]["ONLINE"]["forbidden"]["SCREENSHOT_AI"] = None

        matrix = _matrix_with(mutate)
        assert matrix.get_forbidden_reason(
            "FIRST_PURCHASE", BusinessType.ONLINE, ProofMethod.SCREENSHOT_AI,
        ) == DEFAULT_FORBIDDEN_REASON


class TestStandingRules:
    def test_shipped_matrix_is_clean(self, matrix: ProofMethodMatrix) -> None:
        for mission_id in (
            "FIRST_PURCHASE", "VISIT_CHECKIN", "REDEEM_OFFER",
            "STORY_POST_TAG", "INSTAGRAM_FOLLOW", "BRING_A_FRIEND",
        ):
            for business_type in BusinessType:
                assert matrix.validate_proof_method_config(mission_id, business_type) == []

    def test_gps_primary_on_physical_mission(self) -> None:
        def mutate(missions: dict) -> None:
            entry = missions["VISIT_CHECKIN"]["PHYSICAL"]
            entry["primary"], entry["fallback"] = "GPS_CHECKIN", "QR_SCAN"

        errors = _matrix_with(mutate).validate_proof_method_config(
            "VISIT_CHECKIN", BusinessType.PHYSICAL,
        )
        assert errors == [
            "VISIT_CHECKIN/PHYSICAL: physical-presence missions must prefer QR_SCAN "
            "over GPS_CHECKIN"
        ]

    def test_gps_primary_on_hybrid_physical_mission(self) -> None:
        def mutate(missions: dict) -> None:
            entry = missions["VISIT_CHECKIN"]["HYBRID"]
            entry["primary"], entry["fallback"] = "GPS_CHECKIN", "QR_SCAN"

        errors = _matrix_with(mutate).validate_proof_method_config(
            "VISIT_CHECKIN", BusinessType.HYBRID,
        )
        assert errors == [
            "VISIT_CHECKIN/HYBRID: physical-presence missions must prefer QR_SCAN "
            "over GPS_CHECKIN"
        ]

    def test_unconfirmed_screenshot_primary(self) -> None:
        def mutate(missions: dict) -> None:
            missions["UGC_PHOTO_UPLOAD"]["ONLINE"]["requires_business_confirmation"] = False

        errors = _matrix_with(mutate).validate_proof_method_config(
            "UGC_PHOTO_UPLOAD", BusinessType.ONLINE,
        )
        assert errors == [
            "UGC_PHOTO_UPLOAD/ONLINE: SCREENSHOT_AI primary proof requires business confirmation"
        ]

    def test_unconfirmed_screenshot_fallback_on_money_mission(self) -> None:
        def mutate(missions: dict) -> None:
            entry = missions["REPEAT_PURCHASE_VISIT"]["ONLINE"]
            entry["fallback"] = "SCREENSHOT_AI"
            del entry["forbidden"]["SCREENSHOT_AI"]

        errors = _matrix_with(mutate).validate_proof_method_config(
            "REPEAT_PURCHASE_VISIT", BusinessType.ONLINE,
        )
        assert len(errors) == 1
        assert "requires business confirmation" in errors[0]
