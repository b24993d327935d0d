"""Core data models for the Fluzio mission engine."""

from fluzio.models.mission import (
    AntiCheatKind,
    AntiCheatRule,
    BusinessNeed,
    BusinessType,
    CatalogCheck,
    CooldownPolicy,
    LocationLockRule,
    MinEngagementRule,
    MissionCategory,
    MissionTemplate,
    ParticipationCaps,
    ProofMethod,
    PurchaseVerifyRule,
    RateLimitRule,
    RateLimitScope,
    RiskLevel,
    SocialPlatform,
    SocialVerifyRule,
    SubscriptionTier,
    TimeWindowRule,
    UniqueDeviceRule,
)
from fluzio.models.level import (
    NextLevelProgress,
    ProofStrictness,
    UserLevel,
    UserLevelConfig,
    VerificationPosture,
)
from fluzio.models.participation import (
    ActivityCounts,
    BudgetEstimate,
    BusinessSize,
    CapStatus,
    ParticipationEligibility,
    ParticipationSnapshot,
    RecommendedCaps,
)
from fluzio.models.proof import (
    AvailabilityCode,
    AvailabilityError,
    HybridRequirements,
    MissionAvailability,
    ProofMethodAdjustment,
    ProofMethodConfig,
)
from fluzio.models.validation import (
    CreateCheck,
    ErrorCode,
    StartCheck,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    WarningCode,
)
