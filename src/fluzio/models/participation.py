"""Participation models: live counts in, cap and eligibility decisions out.

Counting is persistence-layer work. Everything here is passed in by value
as of a given instant; nothing in the engine queries storage.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


def as_utc(instant: datetime) -> datetime:
    """Naive instants from storage are taken to be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


@dataclass(frozen=True)
class ActivityCounts:
    """A user's completions per rolling window, as of ``as_of``.

    Windows: today (calendar day in the user's locale), this week,
    this month. Counts include completions of any mission, bucketed by
    mission category where a category has its own ceiling.
    """
    as_of: datetime
    missions_today: int = 0
    reviews_today: int = 0
    check_ins_today: int = 0
    high_value_this_week: int = 0
    ugc_this_week: int = 0
    referrals_this_month: int = 0
    last_mission_completed_at: Optional[datetime] = None

    def is_current(self, now: datetime) -> bool:
        """True when the counts were taken earlier on the calendar day of
        ``now`` (in the timezone of ``now``)."""
        now = as_utc(now)
        as_of = as_utc(self.as_of).astimezone(now.tzinfo)
        return as_of <= now and as_of.date() == now.date()


@dataclass(frozen=True)
class ParticipationSnapshot:
    """Everything the participation pipeline needs, read in one go."""
    user_total_points: int
    user_trust_score: int
    user_completion_count: int
    last_completion_date: Optional[datetime]
    current_total_participants: int
    today_participants: int
    activity: Optional[ActivityCounts] = None


@dataclass(frozen=True)
class CapStatus:
    can_accept_more: bool
    reason: Optional[str] = None
    space_remaining: Optional[int] = None


@dataclass(frozen=True)
class ParticipationEligibility:
    can_participate: bool
    reason: Optional[str] = None
    cooldown_ends: Optional[datetime] = None
    participations_remaining: Optional[int] = None


@dataclass(frozen=True)
class BudgetEstimate:
    estimated_cost: int
    daily_cost: int
    weekly_cost: int
    monthly_cost: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimated_cost": self.estimated_cost,
            "daily_cost": self.daily_cost,
            "weekly_cost": self.weekly_cost,
            "monthly_cost": self.monthly_cost,
        }


class BusinessSize(str, enum.Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"


@dataclass(frozen=True)
class RecommendedCaps:
    max_total_participants: int
    max_participants_per_day: int
    recommended_reward: int
