"""User levels and limits: map point totals to levels and expose the
ceilings, capability gates and verification posture that go with them.

Level is a pure step function of cumulative points (points >= threshold,
ties go to the higher level). Nothing here is stored or cached.

Verification posture combines three independent signals:
1. The level's base proof strictness.
2. A hard override to HIGH + manual review when the reward is high.
3. A further hard override to HIGH + manual review + fraud team review
   when the user's trust score is low.
Overrides only ever tighten the posture.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fluzio.models.level import (
    NextLevelProgress,
    ProofStrictness,
    UserLevel,
    UserLevelConfig,
    VerificationPosture,
)
from fluzio.models.mission import MissionCategory
from fluzio.models.participation import ActivityCounts, as_utc
from fluzio.models.validation import ErrorCode, ValidationError
from fluzio.policy.resolver import PolicyResolver


class UserLevelPolicy:
    """Level table lookups, gates and verification posture."""

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def calculate_user_level(self, total_points: int) -> UserLevel:
        level = UserLevel.NOVICE
        for config in self._resolver.level_configs():
            if total_points >= config.points_required:
                level = config.level
        return level

    def get_user_level_config(self, level: UserLevel) -> UserLevelConfig:
        return self._resolver.level_config(level)

    def next_level(self, level: UserLevel) -> Optional[UserLevel]:
        """The next level in table order, or None at the top."""
        ordered = [c.level for c in self._resolver.level_configs()]
        position = ordered.index(level)
        if position + 1 >= len(ordered):
            return None
        return ordered[position + 1]

    def get_next_level_requirements(self, level: UserLevel, points: int) -> NextLevelProgress:
        nxt = self.next_level(level)
        if nxt is None:
            return NextLevelProgress(next_level=None, points_needed=0, percent_complete=100.0)

        current = self.get_user_level_config(level)
        target = self.get_user_level_config(nxt)
        span = target.points_required - current.points_required
        earned = points - current.points_required
        percent = max(0.0, min(100.0, earned / span * 100.0))
        return NextLevelProgress(
            next_level=nxt,
            points_needed=max(0, target.points_required - points),
            percent_complete=percent,
        )

    def unlock_level(self, capability: str) -> UserLevelConfig:
        """Lowest level at which a capability flag is on."""
        for config in self._resolver.level_configs():
            if getattr(config, capability):
                return config
        raise ValueError(f"No level unlocks {capability}")

    # ------------------------------------------------------------------
    # Mission classification
    # ------------------------------------------------------------------

    def classify_mission_type(self, mission_id: str) -> MissionCategory:
        """Unknown ids fall back to STANDARD, so a newly added mission only
        loosens the category gate instead of breaking validation."""
        return self._resolver.mission_categories().get(mission_id, MissionCategory.STANDARD)

    # ------------------------------------------------------------------
    # Verification posture
    # ------------------------------------------------------------------

    def get_proof_verification_config(
        self,
        level: UserLevel,
        trust_score: int,
        mission_reward_value: int,
    ) -> VerificationPosture:
        config = self.get_user_level_config(level)
        strictness = config.proof_strictness
        manual = config.requires_manual_approval
        threshold, checks = self._resolver.verification_profile(strictness)

        high_value = mission_reward_value >= self._resolver.high_value_reward_threshold()
        low_trust = trust_score < self._resolver.low_trust_threshold()

        if high_value or low_trust:
            high_threshold, high_checks = self._resolver.verification_profile(
                ProofStrictness.HIGH,
            )
            strictness = ProofStrictness.HIGH
            manual = True
            threshold = max(threshold, high_threshold)
            checks = checks + [c for c in high_checks if c not in checks]

        if high_value:
            _append_once(checks, self._resolver.high_value_check())
        if low_trust:
            _append_once(checks, self._resolver.low_trust_check())

        return VerificationPosture(
            strictness=strictness,
            requires_manual_review=manual,
            ai_confidence_threshold=threshold,
            requires_business_approval=manual or high_value,
            allow_auto_approval=(
                not manual and trust_score >= self._resolver.auto_approval_min_trust()
            ),
            additional_checks=checks,
        )

    # ------------------------------------------------------------------
    # Cooldowns and rewards
    # ------------------------------------------------------------------

    def can_bypass_cooldown(self, level: UserLevel, cooldown_minutes: int) -> bool:
        """Only levels with the bypass perk, and only for short cooldowns."""
        config = self.get_user_level_config(level)
        if not config.can_bypass_basic_cooldowns:
            return False
        return cooldown_minutes < self._resolver.cooldown_bypass_max_minutes()

    def calculate_effective_reward(self, base_reward: int, level: UserLevel) -> int:
        """Base reward times the level multiplier, rounded half up."""
        config = self.get_user_level_config(level)
        effective = Decimal(base_reward) * Decimal(str(config.reward_multiplier))
        return int(effective.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    # ------------------------------------------------------------------
    # Rolling-window ceilings
    # ------------------------------------------------------------------

    def check_activity_limits(
        self,
        level: UserLevel,
        category: MissionCategory,
        activity: ActivityCounts,
        now: datetime,
    ) -> list[ValidationError]:
        """Compare caller-supplied rolling-window counts against the level's
        ceilings. Each exhausted ceiling yields one USER_LIMIT_REACHED.
        Naive instants are read as UTC."""
        config = self.get_user_level_config(level)
        errors: list[ValidationError] = []

        def ceiling(field: str, limit: int, count: int, message: str) -> None:
            if count >= limit:
                errors.append(ValidationError(
                    code=ErrorCode.USER_LIMIT_REACHED,
                    message=message,
                    field=field,
                    required_value=limit,
                    current_value=count,
                ))

        ceiling(
            "missionsToday",
            config.max_active_missions_per_day,
            activity.missions_today,
            f"You have completed {activity.missions_today} missions today. "
            f"Your daily limit is {config.max_active_missions_per_day}. Try again tomorrow!",
        )

        if category == MissionCategory.REVIEW:
            ceiling(
                "reviewsToday",
                config.max_review_missions_per_day,
                activity.reviews_today,
                f"Daily review limit reached ({config.max_review_missions_per_day}). "
                f"Try again tomorrow.",
            )
        elif category == MissionCategory.CHECK_IN:
            ceiling(
                "checkInsToday",
                config.max_check_in_missions_per_day,
                activity.check_ins_today,
                f"Daily check-in limit reached ({config.max_check_in_missions_per_day}). "
                f"Try again tomorrow.",
            )
        elif category == MissionCategory.HIGH_VALUE:
            ceiling(
                "highValueThisWeek",
                config.max_high_value_missions_per_week,
                activity.high_value_this_week,
                f"You have completed {activity.high_value_this_week} high-value missions "
                f"this week. Your weekly limit is {config.max_high_value_missions_per_week}. "
                f"Resets Monday.",
            )
        elif category == MissionCategory.UGC:
            ceiling(
                "ugcThisWeek",
                config.max_ugc_submissions_per_week,
                activity.ugc_this_week,
                f"Weekly UGC submission limit reached ({config.max_ugc_submissions_per_week}). "
                f"Resets Monday.",
            )
        elif category == MissionCategory.REFERRAL:
            ceiling(
                "referralsThisMonth",
                config.max_referral_attempts_per_month,
                activity.referrals_this_month,
                f"Monthly referral limit reached ({config.max_referral_attempts_per_month}). "
                f"Resets on the 1st.",
            )

        cooldown = config.min_cooldown_minutes
        last = activity.last_mission_completed_at
        if (
            last is not None
            and cooldown > 0
            and not self.can_bypass_cooldown(level, cooldown)
        ):
            now, last = as_utc(now), as_utc(last)
            ready_at = last + timedelta(minutes=cooldown)
            if now < ready_at:
                remaining = math.ceil((ready_at - now).total_seconds() / 60)
                errors.append(ValidationError(
                    code=ErrorCode.USER_LIMIT_REACHED,
                    message=(
                        f"Please wait {remaining} more minute(s) before starting "
                        f"another mission."
                    ),
                    field="lastMissionCompletedAt",
                    required_value=ready_at.isoformat(),
                    current_value=last.isoformat(),
                ))

        return errors


def _append_once(items: list[str], item: str) -> None:
    if item not in items:
        items.append(item)
