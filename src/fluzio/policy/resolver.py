"""Policy resolver: loads the mission engine's JSON config documents and
exposes every table and threshold as a typed method call.

Documents (all under config/):
- mission_catalog.json       locked mission templates + participation caps
- proof_matrix.json          proof methods per mission x business type
- business_availability.json business-type availability + proof adjustments
- user_levels.json           level table
- validation_policy.json     engine thresholds, categories, standing rules

No magic. No defaults. If a value is missing from the config, it fails loud.
Every document carries a semantic version that must be compatible with
MIN_COMPATIBLE_VERSION (same major, not older).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from fluzio.models.level import ProofStrictness, UserLevel, UserLevelConfig
from fluzio.models.mission import (
    AntiCheatKind,
    AntiCheatRule,
    BusinessNeed,
    BusinessType,
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
    SocialPlatform,
    SocialVerifyRule,
    SubscriptionTier,
    TimeWindowRule,
    UniqueDeviceRule,
)
from fluzio.models.participation import BusinessSize
from fluzio.models.proof import (
    HybridRequirements,
    MissionAvailability,
    ProofMethodAdjustment,
    ProofMethodConfig,
)

logger = logging.getLogger(__name__)

MIN_COMPATIBLE_VERSION = "1.0.0"

CATALOG_FILENAME = "mission_catalog.json"
MATRIX_FILENAME = "proof_matrix.json"
AVAILABILITY_FILENAME = "business_availability.json"
LEVELS_FILENAME = "user_levels.json"
POLICY_FILENAME = "validation_policy.json"


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse "MAJOR.MINOR.PATCH" into a comparable tuple."""
    parts = version.split(".")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid semantic version: '{version}'")
    return int(parts[0]), int(parts[1]), int(parts[2])


def is_compatible_version(version: str, minimum: str = MIN_COMPATIBLE_VERSION) -> bool:
    found = parse_version(version)
    required = parse_version(minimum)
    return found[0] == required[0] and found >= required


class PolicyResolver:
    """Loads and resolves all mission engine policy.

    Usage:
        resolver = PolicyResolver.from_config_dir(Path("config"))
        template = resolver.mission_template("FIRST_PURCHASE")
        config = resolver.proof_config("FIRST_PURCHASE", BusinessType.ONLINE)
        novice = resolver.level_config(UserLevel.NOVICE)
    """

    def __init__(
        self,
        catalog: dict[str, Any],
        matrix: dict[str, Any],
        availability: dict[str, Any],
        levels: dict[str, Any],
        policy: dict[str, Any],
    ) -> None:
        self._documents = {
            CATALOG_FILENAME: catalog,
            MATRIX_FILENAME: matrix,
            AVAILABILITY_FILENAME: availability,
            LEVELS_FILENAME: levels,
            POLICY_FILENAME: policy,
        }
        self._policy = policy
        self._validate_versions()

        self._templates = _parse_section(CATALOG_FILENAME, _parse_catalog, catalog)
        self._matrix = _parse_section(MATRIX_FILENAME, _parse_matrix, matrix)
        self._availability = _parse_section(
            AVAILABILITY_FILENAME, _parse_availability, availability,
        )
        self._hybrid = _parse_section(
            AVAILABILITY_FILENAME, _parse_hybrid_requirements, availability,
        )
        self._levels = _parse_section(LEVELS_FILENAME, _parse_levels, levels)
        self._categories = _parse_section(POLICY_FILENAME, _parse_categories, policy)

        logger.info(
            "Loaded mission policy: %d missions, %d levels (%s)",
            len(self._templates),
            len(self._levels),
            ", ".join(f"{k}={v}" for k, v in self.versions().items()),
        )

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load from the canonical config directory."""
        return cls(
            catalog=_load_json(config_dir / CATALOG_FILENAME),
            matrix=_load_json(config_dir / MATRIX_FILENAME),
            availability=_load_json(config_dir / AVAILABILITY_FILENAME),
            levels=_load_json(config_dir / LEVELS_FILENAME),
            policy=_load_json(config_dir / POLICY_FILENAME),
        )

    def _validate_versions(self) -> None:
        for name, document in self._documents.items():
            if "version" not in document:
                raise ValueError(f"{name} missing version")
            version = document["version"]
            if not is_compatible_version(version):
                raise ValueError(
                    f"{name} version {version} is not compatible with "
                    f"minimum {MIN_COMPATIBLE_VERSION}"
                )

    def versions(self) -> dict[str, str]:
        return {name: doc["version"] for name, doc in self._documents.items()}

    # ------------------------------------------------------------------
    # Mission catalog
    # ------------------------------------------------------------------

    def mission_templates(self) -> list[MissionTemplate]:
        """All templates in catalog order."""
        return list(self._templates.values())

    def mission_template(self, mission_id: str) -> Optional[MissionTemplate]:
        return self._templates.get(mission_id)

    # ------------------------------------------------------------------
    # Proof method matrix
    # ------------------------------------------------------------------

    def matrix_mission_ids(self) -> list[str]:
        return list(self._matrix)

    def proof_configs(
        self, mission_id: str,
    ) -> Optional[dict[BusinessType, Optional[ProofMethodConfig]]]:
        """Per-business-type configs for a mission, or None if unknown."""
        return self._matrix.get(mission_id)

    def proof_config(
        self, mission_id: str, business_type: BusinessType,
    ) -> Optional[ProofMethodConfig]:
        configs = self._matrix.get(mission_id)
        if configs is None:
            return None
        return configs.get(business_type)

    def money_missions(self) -> frozenset[str]:
        return frozenset(self._policy["proof_rules"]["money_missions"])

    def physical_presence_missions(self) -> frozenset[str]:
        return frozenset(self._policy["proof_rules"]["physical_presence_missions"])

    def online_transactional_missions(self) -> frozenset[str]:
        return frozenset(self._policy["proof_rules"]["online_transactional_missions"])

    # ------------------------------------------------------------------
    # Business-type availability
    # ------------------------------------------------------------------

    def availability_mission_ids(self) -> list[str]:
        return list(self._availability)

    def availability(self, mission_id: str) -> Optional[MissionAvailability]:
        return self._availability.get(mission_id)

    def default_alternative(self) -> str:
        return self._documents[AVAILABILITY_FILENAME]["default_alternative"]

    def hybrid_requirements(self) -> HybridRequirements:
        return self._hybrid

    # ------------------------------------------------------------------
    # Level table
    # ------------------------------------------------------------------

    def level_configs(self) -> list[UserLevelConfig]:
        """All level configs, lowest level first."""
        return [self._levels[level] for level in sorted(self._levels)]

    def level_config(self, level: UserLevel) -> UserLevelConfig:
        config = self._levels.get(level)
        if config is None:
            raise ValueError(f"Unknown user level: {level}")
        return config

    def mission_categories(self) -> dict[str, MissionCategory]:
        return dict(self._categories)

    def verification_profile(self, strictness: ProofStrictness) -> tuple[int, list[str]]:
        """(ai_confidence_threshold, checks) for a strictness tier."""
        profile = self._policy["verification"]["strictness"][strictness.value]
        return int(profile["ai_confidence_threshold"]), list(profile["checks"])

    def high_value_reward_threshold(self) -> int:
        return int(self._policy["verification"]["high_value_reward_threshold"])

    def high_value_check(self) -> str:
        return self._policy["verification"]["high_value_check"]

    def low_trust_threshold(self) -> int:
        return int(self._policy["verification"]["low_trust_threshold"])

    def low_trust_check(self) -> str:
        return self._policy["verification"]["low_trust_check"]

    def auto_approval_min_trust(self) -> int:
        return int(self._policy["verification"]["auto_approval_min_trust"])

    def cooldown_bypass_max_minutes(self) -> int:
        return int(self._policy["cooldown_bypass_max_minutes"])

    def max_content_reward(self) -> int:
        return int(self._policy["catalog_rules"]["max_content_reward"])

    # ------------------------------------------------------------------
    # Activation / participation thresholds
    # ------------------------------------------------------------------

    def reward_bounds(self) -> tuple[int, int]:
        """(min_reward_points, max_reward_points), both inclusive."""
        activation = self._policy["activation"]
        return int(activation["min_reward_points"]), int(activation["max_reward_points"])

    def high_budget_threshold(self) -> int:
        return int(self._policy["activation"]["high_budget_threshold"])

    def default_budget_participants(self) -> int:
        return int(self._policy["activation"]["default_budget_participants"])

    def high_value_activation_missions(self) -> frozenset[str]:
        return frozenset(self._policy["activation"]["high_value_missions"])

    def min_business_level_for_high_value(self) -> int:
        return int(self._policy["activation"]["min_business_level_for_high_value"])

    def almost_full_threshold(self) -> int:
        return int(self._policy["participation"]["almost_full_threshold"])

    def recommended_caps(self, size: BusinessSize) -> tuple[int, int]:
        """(max_total_participants, max_participants_per_day) for a size."""
        caps = self._policy["recommended_caps"].get(size.value)
        if caps is None:
            raise ValueError(f"Unknown business size: {size.value}")
        return int(caps["max_total_participants"]), int(caps["max_participants_per_day"])


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------

def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _parse_section(
    name: str,
    parser: Callable[[dict[str, Any]], Any],
    document: dict[str, Any],
) -> Any:
    """Run a parser, reporting missing fields against the document name."""
    try:
        return parser(document)
    except KeyError as exc:
        raise ValueError(f"{name}: missing required field {exc}") from exc
    except ValueError as exc:
        raise ValueError(f"{name}: {exc}") from exc


def _parse_rule(raw: dict[str, Any]) -> AntiCheatRule:
    kind = AntiCheatKind(raw["type"])
    if kind == AntiCheatKind.RATE_LIMIT:
        return RateLimitRule(
            max_submissions=int(raw["max_submissions"]),
            window_hours=int(raw["window_hours"]),
            scope=RateLimitScope(raw["scope"]),
        )
    if kind == AntiCheatKind.UNIQUE_DEVICE:
        return UniqueDeviceRule(allow_multiple_accounts=bool(raw["allow_multiple_accounts"]))
    if kind == AntiCheatKind.LOCATION_LOCK:
        return LocationLockRule(
            radius_meters=int(raw["radius_meters"]),
            require_gps=bool(raw["require_gps"]),
            allow_manual_override=bool(raw["allow_manual_override"]),
        )
    if kind == AntiCheatKind.TIME_WINDOW:
        days = tuple(int(d) for d in raw["allowed_days"])
        if any(d < 0 or d > 6 for d in days):
            raise ValueError(f"TIME_WINDOW allowed_days out of range: {days}")
        return TimeWindowRule(
            allowed_days=days,
            start_time=raw["start_time"],
            end_time=raw["end_time"],
            timezone=raw["timezone"],
        )
    if kind == AntiCheatKind.PURCHASE_VERIFY:
        return PurchaseVerifyRule(
            require_receipt=bool(raw["require_receipt"]),
            require_order_number=bool(raw["require_order_number"]),
            min_amount=raw.get("min_amount"),
        )
    if kind == AntiCheatKind.MIN_ENGAGEMENT:
        return MinEngagementRule(
            min_time_seconds=raw.get("min_time_seconds"),
            min_actions=raw.get("min_actions"),
            required_actions=tuple(raw.get("required_actions", ())),
        )
    return SocialVerifyRule(
        platform=SocialPlatform(raw["platform"]),
        require_public_post=bool(raw["require_public_post"]),
        min_followers=raw.get("min_followers"),
        require_hashtags=tuple(raw.get("require_hashtags", ())),
        require_mention=raw.get("require_mention"),
    )


def _parse_caps(raw: dict[str, Any]) -> ParticipationCaps:
    return ParticipationCaps(
        max_total_participants=raw["max_total_participants"],
        max_participants_per_day=raw["max_participants_per_day"],
        recommended_budget=int(raw["recommended_budget"]),
        max_participations_per_user=raw["max_participations_per_user"],
        cooldown_days=int(raw["cooldown_days"]),
        one_time_only=bool(raw["one_time_only"]),
        requires_unique_proof=bool(raw["requires_unique_proof"]),
        allow_simultaneous_submissions=bool(raw["allow_simultaneous_submissions"]),
        rationale=raw.get("rationale", ""),
    )


def _parse_catalog(document: dict[str, Any]) -> dict[str, MissionTemplate]:
    templates: dict[str, MissionTemplate] = {}
    for raw in document["missions"]:
        mission_id = raw["id"]
        if mission_id in templates:
            raise ValueError(f"Duplicate mission id: {mission_id}")
        tier = raw.get("min_subscription_tier")
        templates[mission_id] = MissionTemplate(
            id=mission_id,
            name=raw["name"],
            description=raw["description"],
            business_need=BusinessNeed(raw["business_need"]),
            allowed_business_types=frozenset(
                BusinessType(t) for t in raw["allowed_business_types"]
            ),
            proof_method=ProofMethod(raw["proof_method"]),
            default_reward=int(raw["default_reward"]),
            anti_cheat_rules=tuple(_parse_rule(r) for r in raw["anti_cheat_rules"]),
            cooldown=CooldownPolicy(
                per_user_hours=int(raw["cooldown"]["per_user_hours"]),
                per_business_hours=int(raw["cooldown"]["per_business_hours"]),
            ),
            participation=_parse_caps(raw["participation"]),
            reward_lock_delay_days=raw["reward_lock_delay_days"],
            requires_business_confirmation=bool(raw["requires_business_confirmation"]),
            min_subscription_tier=SubscriptionTier(tier) if tier else None,
        )
    return templates


def _parse_proof_config(raw: dict[str, Any]) -> ProofMethodConfig:
    fallback = raw.get("fallback")
    return ProofMethodConfig(
        primary=ProofMethod(raw["primary"]),
        fallback=ProofMethod(fallback) if fallback else None,
        forbidden={ProofMethod(m): reason for m, reason in raw["forbidden"].items()},
        requires_business_confirmation=bool(raw["requires_business_confirmation"]),
        reason_for_primary=raw.get("reason_for_primary", ""),
        reason_for_fallback=raw.get("reason_for_fallback"),
    )


def _parse_matrix(
    document: dict[str, Any],
) -> dict[str, dict[BusinessType, Optional[ProofMethodConfig]]]:
    matrix: dict[str, dict[BusinessType, Optional[ProofMethodConfig]]] = {}
    for mission_id, entry in document["missions"].items():
        per_type: dict[BusinessType, Optional[ProofMethodConfig]] = {}
        for business_type in BusinessType:
            raw = entry[business_type.value]
            per_type[business_type] = _parse_proof_config(raw) if raw is not None else None
        matrix[mission_id] = per_type
    return matrix


def _parse_availability(document: dict[str, Any]) -> dict[str, MissionAvailability]:
    result: dict[str, MissionAvailability] = {}
    for mission_id, raw in document["missions"].items():
        adjustments = {
            BusinessType(t): ProofMethodAdjustment(
                required_proof_method=ProofMethod(adj["required_proof_method"]),
                additional_requirements=tuple(adj.get("additional_requirements", ())),
                disallowed_proof_methods=frozenset(
                    ProofMethod(m) for m in adj.get("disallowed_proof_methods", ())
                ),
                explanation=adj.get("explanation", ""),
            )
            for t, adj in raw["proof_adjustments"].items()
        }
        result[mission_id] = MissionAvailability(
            mission_id=mission_id,
            name=raw["name"],
            allowed_business_types=frozenset(
                BusinessType(t) for t in raw["allowed_business_types"]
            ),
            forbidden_business_types=frozenset(
                BusinessType(t) for t in raw["forbidden_business_types"]
            ),
            availability_reason=raw["availability_reason"],
            proof_adjustments=adjustments,
            alternatives={BusinessType(t): text for t, text in raw["alternatives"].items()},
        )
    return result


def _parse_hybrid_requirements(document: dict[str, Any]) -> HybridRequirements:
    raw = document["hybrid_requirements"]
    return HybridRequirements(
        requires_offline_conversion=bool(raw["requires_offline_conversion"]),
        requires_online_conversion=bool(raw["requires_online_conversion"]),
        offline_conversion_missions=frozenset(raw["offline_conversion_missions"]),
        online_conversion_missions=frozenset(raw["online_conversion_missions"]),
        offline_message=raw["offline_message"],
        offline_suggested_fix=raw["offline_suggested_fix"],
        online_message=raw["online_message"],
        online_suggested_fix=raw["online_suggested_fix"],
    )


def _parse_levels(document: dict[str, Any]) -> dict[UserLevel, UserLevelConfig]:
    levels: dict[UserLevel, UserLevelConfig] = {}
    for raw in document["levels"]:
        level = UserLevel(int(raw["level"]))
        levels[level] = UserLevelConfig(
            level=level,
            name=raw["name"],
            points_required=int(raw["points_required"]),
            max_active_missions_per_day=int(raw["max_active_missions_per_day"]),
            max_review_missions_per_day=int(raw["max_review_missions_per_day"]),
            max_check_in_missions_per_day=int(raw["max_check_in_missions_per_day"]),
            max_high_value_missions_per_week=int(raw["max_high_value_missions_per_week"]),
            max_ugc_submissions_per_week=int(raw["max_ugc_submissions_per_week"]),
            max_referral_attempts_per_month=int(raw["max_referral_attempts_per_month"]),
            minimum_trust_score=int(raw["minimum_trust_score"]),
            proof_strictness=ProofStrictness(raw["proof_strictness"]),
            requires_manual_approval=bool(raw["requires_manual_approval"]),
            can_access_referral_missions=bool(raw["can_access_referral_missions"]),
            can_access_high_value_missions=bool(raw["can_access_high_value_missions"]),
            can_access_ugc_missions=bool(raw["can_access_ugc_missions"]),
            can_access_review_missions=bool(raw["can_access_review_missions"]),
            min_cooldown_minutes=int(raw["min_cooldown_minutes"]),
            can_bypass_basic_cooldowns=bool(raw["can_bypass_basic_cooldowns"]),
            reward_multiplier=float(raw["reward_multiplier"]),
            priority_review=bool(raw["priority_review"]),
        )
    missing = [level.name for level in UserLevel if level not in levels]
    if missing:
        raise ValueError(f"Level table missing levels: {', '.join(missing)}")
    return levels


def _parse_categories(document: dict[str, Any]) -> dict[str, MissionCategory]:
    return {
        mission_id: MissionCategory(category)
        for mission_id, category in document["mission_categories"].items()
    }
