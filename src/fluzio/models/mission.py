"""Mission template data models: enums, anti-cheat rules, cooldowns, caps.

A mission template is a locked catalog entry:
- What the business gets out of it (BusinessNeed).
- Which business types may offer it (PHYSICAL, ONLINE, HYBRID).
- How completion is proven (ProofMethod).
- Which anti-cheat rules apply. Rules compose conjunctively.

Templates are built once from config/mission_catalog.json and never
mutated. There is no runtime create, update, or delete.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union


class BusinessType(str, enum.Enum):
    """How a business meets its customers."""
    PHYSICAL = "PHYSICAL"
    ONLINE = "ONLINE"
    HYBRID = "HYBRID"


class BusinessNeed(str, enum.Enum):
    """The business outcome a mission serves."""
    REPUTATION = "REPUTATION"
    TRAFFIC = "TRAFFIC"
    CONVERSION = "CONVERSION"
    REFERRAL = "REFERRAL"
    CONTENT = "CONTENT"
    LOYALTY = "LOYALTY"


class ProofMethod(str, enum.Enum):
    """How a participant proves a mission was completed."""
    QR_SCAN = "QR_SCAN"
    GPS_CHECKIN = "GPS_CHECKIN"
    WEBHOOK = "WEBHOOK"
    SCREENSHOT_AI = "SCREENSHOT_AI"
    FORM_SUBMISSION = "FORM_SUBMISSION"
    REFERRAL_LINK = "REFERRAL_LINK"


class SubscriptionTier(str, enum.Enum):
    """Business subscription tiers, lowest first."""
    STARTER = "STARTER"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    @property
    def rank(self) -> int:
        return list(SubscriptionTier).index(self)


class MissionCategory(str, enum.Enum):
    """User-side classification that drives level gating."""
    REVIEW = "REVIEW"
    CHECK_IN = "CHECK_IN"
    HIGH_VALUE = "HIGH_VALUE"
    UGC = "UGC"
    REFERRAL = "REFERRAL"
    STANDARD = "STANDARD"


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RateLimitScope(str, enum.Enum):
    PER_USER = "PER_USER"
    PER_MISSION = "PER_MISSION"
    PER_BUSINESS = "PER_BUSINESS"


class SocialPlatform(str, enum.Enum):
    INSTAGRAM = "INSTAGRAM"
    FACEBOOK = "FACEBOOK"


class AntiCheatKind(str, enum.Enum):
    """Discriminator for the anti-cheat rule union."""
    RATE_LIMIT = "RATE_LIMIT"
    UNIQUE_DEVICE = "UNIQUE_DEVICE"
    LOCATION_LOCK = "LOCATION_LOCK"
    TIME_WINDOW = "TIME_WINDOW"
    PURCHASE_VERIFY = "PURCHASE_VERIFY"
    MIN_ENGAGEMENT = "MIN_ENGAGEMENT"
    SOCIAL_VERIFY = "SOCIAL_VERIFY"


# ------------------------------------------------------------------
# Anti-cheat rule variants
# ------------------------------------------------------------------

@dataclass(frozen=True)
class RateLimitRule:
    """At most max_submissions within window_hours, counted per scope."""
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.RATE_LIMIT
    max_submissions: int
    window_hours: int
    scope: RateLimitScope


@dataclass(frozen=True)
class UniqueDeviceRule:
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.UNIQUE_DEVICE
    allow_multiple_accounts: bool


@dataclass(frozen=True)
class LocationLockRule:
    """Participant must be within radius_meters of the business."""
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.LOCATION_LOCK
    radius_meters: int
    require_gps: bool
    allow_manual_override: bool


@dataclass(frozen=True)
class TimeWindowRule:
    """Submissions accepted only on allowed_days (0 = Sunday) between
    start_time and end_time ("HH:MM") in the given IANA timezone."""
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.TIME_WINDOW
    allowed_days: tuple[int, ...]
    start_time: str
    end_time: str
    timezone: str


@dataclass(frozen=True)
class PurchaseVerifyRule:
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.PURCHASE_VERIFY
    require_receipt: bool
    require_order_number: bool
    min_amount: Optional[float] = None


@dataclass(frozen=True)
class MinEngagementRule:
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.MIN_ENGAGEMENT
    min_time_seconds: Optional[int] = None
    min_actions: Optional[int] = None
    required_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class SocialVerifyRule:
    kind: ClassVar[AntiCheatKind] = AntiCheatKind.SOCIAL_VERIFY
    platform: SocialPlatform
    require_public_post: bool
    min_followers: Optional[int] = None
    require_hashtags: tuple[str, ...] = ()
    require_mention: Optional[str] = None


AntiCheatRule = Union[
    RateLimitRule,
    UniqueDeviceRule,
    LocationLockRule,
    TimeWindowRule,
    PurchaseVerifyRule,
    MinEngagementRule,
    SocialVerifyRule,
]


# ------------------------------------------------------------------
# Template
# ------------------------------------------------------------------

@dataclass(frozen=True)
class CooldownPolicy:
    """Hours before the same user (or business) can repeat the mission."""
    per_user_hours: int
    per_business_hours: int


@dataclass(frozen=True)
class ParticipationCaps:
    """Global and per-user participation limits for one mission.

    None means unbounded for every max_* field.
    """
    max_total_participants: Optional[int]
    max_participants_per_day: Optional[int]
    recommended_budget: int
    max_participations_per_user: Optional[int]
    cooldown_days: int
    one_time_only: bool
    requires_unique_proof: bool
    allow_simultaneous_submissions: bool
    rationale: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_total_participants": self.max_total_participants,
            "max_participants_per_day": self.max_participants_per_day,
            "max_participations_per_user": self.max_participations_per_user,
            "recommended_budget": self.recommended_budget,
            "cooldown_days": self.cooldown_days,
            "one_time_only": self.one_time_only,
            "requires_unique_proof": self.requires_unique_proof,
            "allow_simultaneous_submissions": self.allow_simultaneous_submissions,
        }


@dataclass(frozen=True)
class MissionTemplate:
    """A locked catalog entry."""
    id: str
    name: str
    description: str
    business_need: BusinessNeed
    allowed_business_types: frozenset[BusinessType]
    proof_method: ProofMethod
    default_reward: int
    anti_cheat_rules: tuple[AntiCheatRule, ...]
    cooldown: CooldownPolicy
    participation: ParticipationCaps
    reward_lock_delay_days: Optional[int] = None
    requires_business_confirmation: bool = False
    min_subscription_tier: Optional[SubscriptionTier] = None

    def allows(self, business_type: BusinessType) -> bool:
        return business_type in self.allowed_business_types

    def rules_of(self, kind: AntiCheatKind) -> list[AntiCheatRule]:
        """Return the rules of one kind, in declaration order."""
        return [r for r in self.anti_cheat_rules if r.kind == kind]


@dataclass(frozen=True)
class CatalogCheck:
    """Outcome of a catalog-level check."""
    valid: bool
    error: Optional[str] = None
