"""Validation result models.

Two severities only:
- Errors block the operation.
- Warnings are informational and never affect is_valid.

Codes are a closed set. UI copy keys off ``code``; ``message`` is an
English default and must not be parsed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union


class ErrorCode(str, enum.Enum):
    MISSION_NOT_AVAILABLE = "MISSION_NOT_AVAILABLE"
    INVALID_PROOF_METHOD = "INVALID_PROOF_METHOD"
    REWARD_TOO_LOW = "REWARD_TOO_LOW"
    REWARD_TOO_HIGH = "REWARD_TOO_HIGH"
    TRUST_SCORE_TOO_LOW = "TRUST_SCORE_TOO_LOW"
    LEVEL_TOO_LOW_REFERRAL = "LEVEL_TOO_LOW_REFERRAL"
    LEVEL_TOO_LOW_UGC = "LEVEL_TOO_LOW_UGC"
    LEVEL_TOO_LOW_REVIEW = "LEVEL_TOO_LOW_REVIEW"
    MISSION_FULL = "MISSION_FULL"
    USER_LIMIT_REACHED = "USER_LIMIT_REACHED"


class WarningCode(str, enum.Enum):
    PARTICIPANT_CAP_TOO_HIGH = "PARTICIPANT_CAP_TOO_HIGH"
    UPGRADE_RECOMMENDED = "UPGRADE_RECOMMENDED"
    HIGH_BUDGET = "HIGH_BUDGET"
    ALMOST_FULL = "ALMOST_FULL"
    REQUIRES_MANUAL_APPROVAL = "REQUIRES_MANUAL_APPROVAL"
    SUGGESTED_PROOF_METHODS = "SUGGESTED_PROOF_METHODS"


Scalar = Union[int, float, str, None]


@dataclass(frozen=True)
class ValidationError:
    """A blocking problem, with enough context for a UI to build copy."""
    code: ErrorCode
    message: str
    field: Optional[str] = None
    required_value: Scalar = None
    current_value: Scalar = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.field is not None:
            data["field"] = self.field
        if self.required_value is not None:
            data["required_value"] = self.required_value
        if self.current_value is not None:
            data["current_value"] = self.current_value
        return data


@dataclass(frozen=True)
class ValidationWarning:
    code: WarningCode
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    """Engine output. Constructed per call, never persisted.

    is_valid is derived from errors, so is_valid == (len(errors) == 0)
    holds by construction.
    """
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_codes(self) -> list[ErrorCode]:
        return [e.code for e in self.errors]

    @property
    def warning_codes(self) -> list[WarningCode]:
        return [w.code for w in self.warnings]

    def with_leading_warnings(self, warnings: list[ValidationWarning]) -> ValidationResult:
        """Return a copy with ``warnings`` placed before this result's own."""
        return ValidationResult(
            errors=list(self.errors),
            warnings=list(warnings) + list(self.warnings),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class StartCheck:
    """Quick user-side answer for enabling a "start mission" control."""
    can_start: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class CreateCheck:
    """Quick business-side answer for enabling a "create mission" control."""
    can_create: bool
    reason: Optional[str] = None
