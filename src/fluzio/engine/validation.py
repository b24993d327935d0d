"""Mission validation engine: the accept/reject orchestrator.

Two independent pipelines, combined by validate_mission_completely:

Business side (activation):
  1. Mission offered for this business type?      (short-circuits)
  2. Proof method allowed?
  3. Custom participant cap above the catalog cap? (warning)
  4. Reward within bounds?
  5. High-value mission on a young business?      (warning)
  6. Estimated budget too high?                   (warning)

User side (participation):
  1. Derive level, level config, mission category.
  2. Trust-score floor.
  3. Category gate. REFERRAL/UGC/REVIEW short-circuit when closed.
  4. Mission offered for this business type?      (short-circuits)
  5. Proof method allowed?
  6. Participation caps (MISSION_FULL / ALMOST_FULL).
  7. Per-user allowance and cooldown.
  8. Rolling-window ceilings from caller-supplied activity counts.

Errors accumulate except at the short-circuit points. Warnings never
affect validity. Every check is pure: no storage access, no clock reads.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fluzio.levels.limits import UserLevelPolicy
from fluzio.models.level import UserLevel, UserLevelConfig
from fluzio.models.mission import BusinessType, MissionCategory, ProofMethod
from fluzio.models.participation import ActivityCounts
from fluzio.models.validation import (
    CreateCheck,
    ErrorCode,
    StartCheck,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    WarningCode,
)
from fluzio.participation.caps import ParticipationTracker
from fluzio.policy.resolver import PolicyResolver
from fluzio.proof.matrix import ProofMethodMatrix

logger = logging.getLogger(__name__)


# category -> (capability flag, error code, label)
_CATEGORY_GATES: dict[MissionCategory, tuple[str, ErrorCode, str]] = {
    MissionCategory.REFERRAL: (
        "can_access_referral_missions", ErrorCode.LEVEL_TOO_LOW_REFERRAL, "Referral",
    ),
    MissionCategory.UGC: (
        "can_access_ugc_missions", ErrorCode.LEVEL_TOO_LOW_UGC, "UGC",
    ),
    MissionCategory.REVIEW: (
        "can_access_review_missions", ErrorCode.LEVEL_TOO_LOW_REVIEW, "Review",
    ),
}


class MissionValidationEngine:
    """Runs the activation and participation pipelines."""

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver
        self._matrix = ProofMethodMatrix(resolver)
        self._levels = UserLevelPolicy(resolver)
        self._tracker = ParticipationTracker(resolver)

    # ------------------------------------------------------------------
    # Business side
    # ------------------------------------------------------------------

    def validate_mission_activation(
        self,
        mission_id: str,
        business_type: BusinessType,
        business_level: int,
        proof_method: ProofMethod,
        reward_points: int,
        max_participants: Optional[int] = None,
    ) -> ValidationResult:
        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        # 1. Resolve the (mission, business type) pair
        unavailable = self._unavailable_error(mission_id, business_type, activation=True)
        if unavailable is not None:
            logger.debug("Activation of %s short-circuited: not available", mission_id)
            return ValidationResult(errors=[unavailable])

        # 2. Proof method
        proof_error = self._proof_error(mission_id, business_type, proof_method)
        if proof_error is not None:
            errors.append(proof_error)
            accepted = self._matrix.accepted_methods(mission_id, business_type)
            warnings.append(ValidationWarning(
                code=WarningCode.SUGGESTED_PROOF_METHODS,
                message=f"Recommended proof methods: {', '.join(m.value for m in accepted)}",
            ))

        # 3. Custom participant cap
        caps = self._tracker.get_caps(mission_id)
        catalog_cap = caps.max_total_participants if caps is not None else None
        if max_participants and catalog_cap is not None and max_participants > catalog_cap:
            warnings.append(ValidationWarning(
                code=WarningCode.PARTICIPANT_CAP_TOO_HIGH,
                message=(
                    f"You set max participants to {max_participants}, but we recommend "
                    f"{catalog_cap} for this mission type to ensure quality."
                ),
            ))

        # 4. Reward bounds
        min_reward, max_reward = self._resolver.reward_bounds()
        if reward_points < min_reward:
            errors.append(ValidationError(
                code=ErrorCode.REWARD_TOO_LOW,
                message=f"Reward must be at least {min_reward} points to incentivize participation.",
                field="rewardPoints",
                required_value=min_reward,
                current_value=reward_points,
            ))
        if reward_points > max_reward:
            errors.append(ValidationError(
                code=ErrorCode.REWARD_TOO_HIGH,
                message=(
                    f"Reward cannot exceed {max_reward} points. "
                    f"For higher rewards, split into multiple missions."
                ),
                field="rewardPoints",
                required_value=max_reward,
                current_value=reward_points,
            ))

        # 5. High-value missions on young businesses
        if (
            mission_id in self._resolver.high_value_activation_missions()
            and business_level < self._resolver.min_business_level_for_high_value()
        ):
            warnings.append(ValidationWarning(
                code=WarningCode.UPGRADE_RECOMMENDED,
                message=(
                    f"High-value missions perform better for Level "
                    f"{self._resolver.min_business_level_for_high_value()}+ businesses "
                    f"with established reputation."
                ),
            ))

        # 6. Budget sanity
        participants = (
            max_participants or catalog_cap or self._resolver.default_budget_participants()
        )
        estimated_cost = participants * reward_points
        if estimated_cost > self._resolver.high_budget_threshold():
            warnings.append(ValidationWarning(
                code=WarningCode.HIGH_BUDGET,
                message=(
                    f"This mission will cost approximately {estimated_cost:,} points. "
                    f"Consider lowering reward or participant cap."
                ),
            ))

        result = ValidationResult(errors=errors, warnings=warnings)
        logger.debug(
            "Activation %s/%s: valid=%s errors=%s",
            mission_id, business_type.value, result.is_valid,
            [c.value for c in result.error_codes],
        )
        return result

    # ------------------------------------------------------------------
    # User side
    # ------------------------------------------------------------------

    def validate_mission_participation(
        self,
        mission_id: str,
        user_id: str,
        user_total_points: int,
        user_trust_score: int,
        business_type: BusinessType,
        proof_method: ProofMethod,
        user_completion_count: int,
        last_completion_date: Optional[datetime],
        current_total_participants: int,
        today_participants: int,
        *,
        now: datetime,
        activity: Optional[ActivityCounts],
    ) -> ValidationResult:
        """Validate one user's attempt at one mission.

        ``activity`` carries the rolling-window counts for the level
        ceilings. Passing None explicitly skips those ceilings; callers on
        the submission-commit path must always supply it.
        """
        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        # 1. Derive level and category
        level = self._levels.calculate_user_level(user_total_points)
        config = self._levels.get_user_level_config(level)
        category = self._levels.classify_mission_type(mission_id)

        # 2. Trust floor
        if user_trust_score < config.minimum_trust_score:
            errors.append(ValidationError(
                code=ErrorCode.TRUST_SCORE_TOO_LOW,
                message=(
                    f"Your trust score is {user_trust_score}. You need "
                    f"{config.minimum_trust_score}+ to participate in this mission. "
                    f"Complete more missions successfully to increase your trust score."
                ),
                field="trustScore",
                required_value=config.minimum_trust_score,
                current_value=user_trust_score,
            ))

        # 3. Category gate
        gate_error = self._category_gate_error(category, config, user_total_points)
        if gate_error is not None:
            errors.append(gate_error)
            logger.debug(
                "Participation of %s in %s short-circuited: %s",
                user_id, mission_id, gate_error.code.value,
            )
            return ValidationResult(errors=errors, warnings=warnings)

        if (
            category == MissionCategory.HIGH_VALUE
            and not config.can_access_high_value_missions
            and config.requires_manual_approval
        ):
            warnings.append(ValidationWarning(
                code=WarningCode.REQUIRES_MANUAL_APPROVAL,
                message=(
                    "High-value missions require business approval for your level. "
                    "Your submission will be reviewed within 24-48 hours."
                ),
            ))

        # 4. Resolve the (mission, business type) pair
        unavailable = self._unavailable_error(mission_id, business_type, activation=False)
        if unavailable is not None:
            errors.append(unavailable)
            return ValidationResult(errors=errors, warnings=warnings)

        # 5. Proof method
        proof_error = self._proof_error(mission_id, business_type, proof_method)
        if proof_error is not None:
            errors.append(proof_error)

        # 6. Participation caps
        cap_status = self._tracker.has_mission_reached_cap(
            mission_id, current_total_participants, today_participants,
        )
        if not cap_status.can_accept_more:
            errors.append(ValidationError(
                code=ErrorCode.MISSION_FULL,
                message=cap_status.reason or "This mission has reached its participant limit.",
                field="participants",
                current_value=current_total_participants,
            ))
        elif (
            cap_status.space_remaining is not None
            and cap_status.space_remaining <= self._resolver.almost_full_threshold()
        ):
            warnings.append(ValidationWarning(
                code=WarningCode.ALMOST_FULL,
                message=(
                    f"Only {cap_status.space_remaining} spots remaining! "
                    f"Complete this mission soon before it fills up."
                ),
            ))

        # 7. Per-user allowance and cooldown
        eligibility = self._tracker.validate_user_can_participate(
            mission_id, user_completion_count, last_completion_date, now,
        )
        if not eligibility.can_participate:
            cooldown_ends = eligibility.cooldown_ends
            errors.append(ValidationError(
                code=ErrorCode.USER_LIMIT_REACHED,
                message=eligibility.reason or "You cannot participate in this mission right now.",
                field="cooldownEnds" if cooldown_ends is not None else "userCompletionCount",
                required_value=cooldown_ends.isoformat() if cooldown_ends is not None else None,
                current_value=user_completion_count,
            ))

        # 8. Rolling-window ceilings
        if activity is None:
            logger.debug(
                "Rolling-window limits skipped for %s on %s: no activity counts supplied",
                user_id, mission_id,
            )
        else:
            errors.extend(self._levels.check_activity_limits(level, category, activity, now))

        result = ValidationResult(errors=errors, warnings=warnings)
        logger.debug(
            "Participation %s in %s: valid=%s errors=%s",
            user_id, mission_id, result.is_valid,
            [c.value for c in result.error_codes],
        )
        return result

    # ------------------------------------------------------------------
    # Combined flow
    # ------------------------------------------------------------------

    def validate_mission_completely(
        self,
        mission_id: str,
        business_type: BusinessType,
        business_level: int,
        proof_method: ProofMethod,
        reward_points: int,
        user_id: str,
        user_total_points: int,
        user_trust_score: int,
        user_completion_count: int,
        last_completion_date: Optional[datetime],
        current_total_participants: int,
        today_participants: int,
        max_participants: Optional[int] = None,
        *,
        now: datetime,
        activity: Optional[ActivityCounts],
    ) -> ValidationResult:
        """Activation first. A misconfigured mission is returned verbatim and
        never evaluated against a user. Otherwise the participation result
        is returned with the activation warnings placed first."""
        activation = self.validate_mission_activation(
            mission_id, business_type, business_level, proof_method,
            reward_points, max_participants,
        )
        if not activation.is_valid:
            return activation

        participation = self.validate_mission_participation(
            mission_id, user_id, user_total_points, user_trust_score,
            business_type, proof_method, user_completion_count,
            last_completion_date, current_total_participants, today_participants,
            now=now, activity=activity,
        )
        return participation.with_leading_warnings(activation.warnings)

    # ------------------------------------------------------------------
    # Quick checks
    # ------------------------------------------------------------------

    def can_user_start_mission(
        self, mission_id: str, user_level: UserLevel, trust_score: int,
    ) -> StartCheck:
        config = self._levels.get_user_level_config(user_level)
        if trust_score < config.minimum_trust_score:
            return StartCheck(
                can_start=False,
                reason=(
                    f"Trust score too low. Need {config.minimum_trust_score}, "
                    f"have {trust_score}."
                ),
            )

        category = self._levels.classify_mission_type(mission_id)
        gate = _CATEGORY_GATES.get(category)
        if gate is not None:
            capability, _, label = gate
            if not getattr(config, capability):
                unlock = self._levels.unlock_level(capability)
                return StartCheck(
                    can_start=False,
                    reason=f"{label} missions unlock at {unlock.name} level.",
                )
        return StartCheck(can_start=True)

    def can_business_create_mission(
        self,
        mission_id: str,
        business_type: BusinessType,
        proof_method: ProofMethod,
    ) -> CreateCheck:
        if self._matrix.get_proof_method_config(mission_id, business_type) is None:
            return CreateCheck(
                can_create=False,
                reason=(
                    f"This mission type is not available for "
                    f"{business_type.value.lower()} businesses."
                ),
            )
        if not self._matrix.is_proof_method_allowed(mission_id, business_type, proof_method):
            reason = self._matrix.get_forbidden_reason(mission_id, business_type, proof_method)
            return CreateCheck(
                can_create=False,
                reason=reason or "This proof method is not allowed for this mission.",
            )
        return CreateCheck(can_create=True)

    # ------------------------------------------------------------------
    # Shared checks
    # ------------------------------------------------------------------

    def _unavailable_error(
        self,
        mission_id: str,
        business_type: BusinessType,
        activation: bool,
    ) -> Optional[ValidationError]:
        if self._resolver.mission_template(mission_id) is None:
            return ValidationError(
                code=ErrorCode.MISSION_NOT_AVAILABLE,
                message=f"Mission {mission_id} not found in catalog.",
                field="missionId",
                current_value=mission_id,
            )
        if self._matrix.get_proof_method_config(mission_id, business_type) is None:
            message = (
                f"This mission is not available for {business_type.value.lower()} businesses."
            )
            if activation:
                message += " Please choose a different mission type."
            return ValidationError(
                code=ErrorCode.MISSION_NOT_AVAILABLE,
                message=message,
                field="businessType",
                current_value=business_type.value,
            )
        return None

    def _proof_error(
        self,
        mission_id: str,
        business_type: BusinessType,
        proof_method: ProofMethod,
    ) -> Optional[ValidationError]:
        if self._matrix.is_proof_method_allowed(mission_id, business_type, proof_method):
            return None
        reason = self._matrix.get_forbidden_reason(mission_id, business_type, proof_method)
        return ValidationError(
            code=ErrorCode.INVALID_PROOF_METHOD,
            message=(
                reason
                or f"{proof_method.value} is not allowed for this mission and business type."
            ),
            field="proofMethod",
            current_value=proof_method.value,
        )

    def _category_gate_error(
        self,
        category: MissionCategory,
        config: UserLevelConfig,
        user_total_points: int,
    ) -> Optional[ValidationError]:
        gate = _CATEGORY_GATES.get(category)
        if gate is None:
            return None
        capability, code, label = gate
        if getattr(config, capability):
            return None
        unlock = self._levels.unlock_level(capability)
        needed = max(0, unlock.points_required - user_total_points)
        return ValidationError(
            code=code,
            message=(
                f"{label} missions unlock at {unlock.name} level "
                f"(Level {int(unlock.level)}). You are currently {config.name}. "
                f"Earn {needed} more points to unlock."
            ),
            field="userLevel",
            required_value=int(unlock.level),
            current_value=int(config.level),
        )
