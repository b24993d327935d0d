"""Participation caps and per-user cooldowns.

Pure decision functions over counts supplied by the caller. The counting
itself belongs to the persistence layer. Time is always an explicit
``now`` argument.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from fluzio.models.mission import ParticipationCaps
from fluzio.models.participation import (
    BudgetEstimate,
    BusinessSize,
    CapStatus,
    ParticipationEligibility,
    RecommendedCaps,
    as_utc,
)
from fluzio.policy.resolver import PolicyResolver


DEFAULT_DAILY_PARTICIPANTS = 50


class ParticipationTracker:
    """Cap, cooldown and budget decisions per mission."""

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def get_caps(self, mission_id: str) -> Optional[ParticipationCaps]:
        template = self._resolver.mission_template(mission_id)
        if template is None:
            return None
        return template.participation

    def has_mission_reached_cap(
        self,
        mission_id: str,
        current_total: int,
        today: int,
    ) -> CapStatus:
        """Compare live counts against the total and daily caps.

        space_remaining is the tighter of the two remainders, or None when
        both caps are unbounded.
        """
        caps = self.get_caps(mission_id)
        if caps is None:
            return CapStatus(
                can_accept_more=False,
                reason=f"Mission {mission_id} not found in catalog.",
                space_remaining=0,
            )

        total_cap = caps.max_total_participants
        daily_cap = caps.max_participants_per_day

        if total_cap is not None and current_total >= total_cap:
            return CapStatus(
                can_accept_more=False,
                reason=f"Mission has reached maximum capacity ({total_cap} participants).",
                space_remaining=0,
            )
        if daily_cap is not None and today >= daily_cap:
            return CapStatus(
                can_accept_more=False,
                reason=f"Daily participation limit reached ({daily_cap}). Try again tomorrow.",
                space_remaining=0,
            )

        remainders = [
            cap - used
            for cap, used in ((total_cap, current_total), (daily_cap, today))
            if cap is not None
        ]
        return CapStatus(
            can_accept_more=True,
            space_remaining=min(remainders) if remainders else None,
        )

    def validate_user_can_participate(
        self,
        mission_id: str,
        user_completion_count: int,
        last_completion_date: Optional[datetime],
        now: datetime,
    ) -> ParticipationEligibility:
        """Per-user allowance, then cooldown window, then one-time rule.

        The cooldown is the longer of the catalog's per-user cooldown hours
        and the participation cooldown days. Naive instants are read as UTC.
        """
        template = self._resolver.mission_template(mission_id)
        if template is None:
            return ParticipationEligibility(
                can_participate=False,
                reason=f"Mission {mission_id} not found in catalog.",
                participations_remaining=0,
            )
        caps = template.participation

        per_user = caps.max_participations_per_user
        if per_user is not None and user_completion_count >= per_user:
            return ParticipationEligibility(
                can_participate=False,
                reason=f"You have reached the maximum participation limit ({per_user} times).",
                participations_remaining=0,
            )

        window = max(
            timedelta(days=caps.cooldown_days),
            timedelta(hours=template.cooldown.per_user_hours),
        )
        if last_completion_date is not None and window > timedelta(0):
            now = as_utc(now)
            cooldown_ends = as_utc(last_completion_date) + window
            if now < cooldown_ends:
                days_left = math.ceil((cooldown_ends - now).total_seconds() / 86400)
                return ParticipationEligibility(
                    can_participate=False,
                    reason=f"You must wait {days_left} more day(s) before participating again.",
                    cooldown_ends=cooldown_ends,
                )

        if caps.one_time_only and user_completion_count > 0:
            return ParticipationEligibility(
                can_participate=False,
                reason="This mission can only be completed once.",
                participations_remaining=0,
            )

        return ParticipationEligibility(
            can_participate=True,
            participations_remaining=(
                per_user - user_completion_count if per_user is not None else None
            ),
        )

    # ------------------------------------------------------------------
    # Budgeting
    # ------------------------------------------------------------------

    def calculate_estimated_budget(
        self,
        mission_id: str,
        reward_points: int,
        custom_max_participants: Optional[int] = None,
    ) -> BudgetEstimate:
        caps = self.get_caps(mission_id)
        if caps is None:
            raise ValueError(f"Unknown mission: {mission_id}")
        participants = (
            custom_max_participants
            or caps.max_total_participants
            or self._resolver.default_budget_participants()
        )
        per_day = caps.max_participants_per_day or DEFAULT_DAILY_PARTICIPANTS
        daily = per_day * reward_points
        return BudgetEstimate(
            estimated_cost=participants * reward_points,
            daily_cost=daily,
            weekly_cost=daily * 7,
            monthly_cost=daily * 30,
        )

    def get_recommended_caps(self, size: BusinessSize, monthly_budget: int) -> RecommendedCaps:
        """Caps for a business size, with the monthly budget spread evenly
        across the total participant cap."""
        total, per_day = self._resolver.recommended_caps(size)
        return RecommendedCaps(
            max_total_participants=total,
            max_participants_per_day=per_day,
            recommended_reward=monthly_budget // total,
        )
