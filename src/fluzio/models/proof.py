"""Proof-method and availability models, keyed by mission and business type."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from fluzio.models.mission import BusinessType, ProofMethod


DEFAULT_FORBIDDEN_REASON = "This proof method is not allowed for this mission."


@dataclass(frozen=True)
class ProofMethodConfig:
    """Accepted proof for one (mission, business type) pair.

    Invariant (checked at load by policy.invariants):
    neither primary nor fallback appears in forbidden.
    """
    primary: ProofMethod
    fallback: Optional[ProofMethod]
    forbidden: dict[ProofMethod, Optional[str]]
    requires_business_confirmation: bool
    reason_for_primary: str = ""
    reason_for_fallback: Optional[str] = None

    @property
    def accepted(self) -> list[ProofMethod]:
        """Primary then fallback, minus anything forbidden."""
        methods = [self.primary]
        if self.fallback is not None:
            methods.append(self.fallback)
        return [m for m in methods if m not in self.forbidden]

    def forbidden_reason(self, method: ProofMethod) -> Optional[str]:
        if method not in self.forbidden:
            return None
        return self.forbidden[method] or DEFAULT_FORBIDDEN_REASON

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary.value,
            "fallback": self.fallback.value if self.fallback else None,
            "forbidden": {m.value: self.forbidden_reason(m) for m in self.forbidden},
            "requires_business_confirmation": self.requires_business_confirmation,
            "reason_for_primary": self.reason_for_primary,
            "reason_for_fallback": self.reason_for_fallback,
        }


@dataclass(frozen=True)
class ProofMethodAdjustment:
    """Business-type specific layer on top of the matrix."""
    required_proof_method: ProofMethod
    additional_requirements: tuple[str, ...] = ()
    disallowed_proof_methods: frozenset[ProofMethod] = frozenset()
    explanation: str = ""


@dataclass(frozen=True)
class MissionAvailability:
    mission_id: str
    name: str
    allowed_business_types: frozenset[BusinessType]
    forbidden_business_types: frozenset[BusinessType]
    availability_reason: str
    proof_adjustments: dict[BusinessType, ProofMethodAdjustment]
    alternatives: dict[BusinessType, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HybridRequirements:
    """Hybrid businesses must cover both channels with a conversion mission."""
    requires_offline_conversion: bool
    requires_online_conversion: bool
    offline_conversion_missions: frozenset[str]
    online_conversion_missions: frozenset[str]
    offline_message: str
    offline_suggested_fix: str
    online_message: str
    online_suggested_fix: str


class AvailabilityCode(str, enum.Enum):
    MISSION_NOT_FOUND = "MISSION_NOT_FOUND"
    MISSION_FORBIDDEN_FOR_BUSINESS_TYPE = "MISSION_FORBIDDEN_FOR_BUSINESS_TYPE"
    MISSION_NOT_ALLOWED_FOR_BUSINESS_TYPE = "MISSION_NOT_ALLOWED_FOR_BUSINESS_TYPE"
    HYBRID_MISSING_OFFLINE_CONVERSION = "HYBRID_MISSING_OFFLINE_CONVERSION"
    HYBRID_MISSING_ONLINE_CONVERSION = "HYBRID_MISSING_ONLINE_CONVERSION"


@dataclass(frozen=True)
class AvailabilityError:
    code: AvailabilityCode
    message: str
    mission_id: Optional[str]
    business_type: BusinessType
    suggested_fix: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "mission_id": self.mission_id,
            "business_type": self.business_type.value,
            "suggested_fix": self.suggested_fix,
        }
