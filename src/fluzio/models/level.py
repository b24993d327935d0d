"""User level data models.

A user's level is never stored. It is recomputed from the cumulative
point total on every call, so the UI and the engine cannot disagree.

Design invariants (checked by policy.invariants):
- Point thresholds start at 0 and strictly increase with level.
- Capability flags never turn off as level increases.
- reward_multiplier >= 1.0 and never decreases as level increases.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class UserLevel(enum.IntEnum):
    NOVICE = 1
    EXPLORER = 2
    CONTRIBUTOR = 3
    TRUSTED = 4
    AMBASSADOR = 5
    LEGEND = 6


class ProofStrictness(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Higher rank means stricter."""
        return {"LOW": 0, "MEDIUM": 1, "HIGH": 2}[self.value]


@dataclass(frozen=True)
class UserLevelConfig:
    """Ceilings, gates and perks for one level."""
    level: UserLevel
    name: str
    points_required: int

    # Per-period ceilings
    max_active_missions_per_day: int
    max_review_missions_per_day: int
    max_check_in_missions_per_day: int
    max_high_value_missions_per_week: int
    max_ugc_submissions_per_week: int
    max_referral_attempts_per_month: int

    # Trust and proof
    minimum_trust_score: int
    proof_strictness: ProofStrictness
    requires_manual_approval: bool

    # Capabilities
    can_access_referral_missions: bool
    can_access_high_value_missions: bool
    can_access_ugc_missions: bool
    can_access_review_missions: bool

    # Cooldowns and perks
    min_cooldown_minutes: int
    can_bypass_basic_cooldowns: bool
    reward_multiplier: float
    priority_review: bool

    CAPABILITY_FLAGS = (
        "can_access_referral_missions",
        "can_access_high_value_missions",
        "can_access_ugc_missions",
        "can_access_review_missions",
    )

    def capabilities(self) -> dict[str, bool]:
        return {flag: getattr(self, flag) for flag in self.CAPABILITY_FLAGS}


@dataclass(frozen=True)
class NextLevelProgress:
    next_level: Optional[UserLevel]
    points_needed: int
    percent_complete: float


@dataclass(frozen=True)
class VerificationPosture:
    """How hard a submission is scrutinized before reward release."""
    strictness: ProofStrictness
    requires_manual_review: bool
    ai_confidence_threshold: int
    requires_business_approval: bool
    allow_auto_approval: bool
    additional_checks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strictness": self.strictness.value,
            "requires_manual_review": self.requires_manual_review,
            "ai_confidence_threshold": self.ai_confidence_threshold,
            "requires_business_approval": self.requires_business_approval,
            "allow_auto_approval": self.allow_auto_approval,
            "additional_checks": list(self.additional_checks),
        }
