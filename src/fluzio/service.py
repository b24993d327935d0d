"""Fluzio mission service: facade over the validation engine.

This is the primary interface for programmatic access. It wires every
component to one PolicyResolver and adds the two flows the engine leaves
to its caller:
- Mission activation, including the hybrid portfolio rule and the
  conversion-mission catalog rule over a business's active set.
- Submission gating: live counts are re-read through an injected reader
  immediately before commit, then the complete validation runs and the
  reward, unlock instant and verification posture are resolved.

The service refuses to start on config that violates a cross-document
invariant. Domain rejections come back as ServiceResult, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from fluzio import __version__
from fluzio.catalog.registry import MissionCatalog
from fluzio.engine.validation import MissionValidationEngine
from fluzio.levels.limits import UserLevelPolicy
from fluzio.models.mission import BusinessType, ProofMethod
from fluzio.models.participation import ParticipationSnapshot
from fluzio.models.validation import ValidationResult
from fluzio.policy.invariants import check_invariants
from fluzio.policy.resolver import PolicyResolver
from fluzio.proof.availability import BusinessAvailability

logger = logging.getLogger(__name__)


class ConfigInvariantError(ValueError):
    """Loaded policy violates one or more cross-document invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(
            f"{len(violations)} config invariant violation(s): " + "; ".join(violations)
        )


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SubmissionRequest:
    """One user's submission for one business's mission."""
    mission_id: str
    user_id: str
    business_type: BusinessType
    business_level: int
    proof_method: ProofMethod
    reward_points: int
    max_participants: Optional[int] = None


# (user_id, mission_id) -> live counts, read from the store of record
SnapshotReader = Callable[[str, str], ParticipationSnapshot]


class MissionService:
    """Unified mission engine facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = MissionService(resolver)

        result = service.activate_mission(
            "REDEEM_OFFER", BusinessType.PHYSICAL, 2, ProofMethod.QR_SCAN, 100,
        )
        result = service.gate_submission(request, store.read_snapshot, now)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        violations = check_invariants(resolver)
        if violations:
            for violation in violations:
                logger.error("Config invariant violated: %s", violation)
            raise ConfigInvariantError(violations)

        self._resolver = resolver
        self._engine = MissionValidationEngine(resolver)
        self._catalog = MissionCatalog(resolver)
        self._availability = BusinessAvailability(resolver)
        self._levels = UserLevelPolicy(resolver)

    @property
    def engine(self) -> MissionValidationEngine:
        return self._engine

    @property
    def catalog(self) -> MissionCatalog:
        return self._catalog

    @property
    def availability(self) -> BusinessAvailability:
        return self._availability

    @property
    def levels(self) -> UserLevelPolicy:
        return self._levels

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def activate_mission(
        self,
        mission_id: str,
        business_type: BusinessType,
        business_level: int,
        proof_method: ProofMethod,
        reward_points: int,
        max_participants: Optional[int] = None,
        active_mission_ids: Optional[list[str]] = None,
    ) -> ServiceResult:
        """Validate a business activating a mission.

        When the business's currently active missions are supplied, the
        resulting portfolio must also keep a conversion mission active and,
        for hybrid businesses, one offline and one online conversion.
        """
        result = self._engine.validate_mission_activation(
            mission_id, business_type, business_level, proof_method,
            reward_points, max_participants,
        )
        errors = _error_lines(result)

        if result.is_valid and active_mission_ids is not None:
            portfolio = [*active_mission_ids, mission_id]
            for error in self._availability.validate_mission_activation_complete(
                mission_id, business_type, active_mission_ids,
            ):
                errors.append(f"{error.code.value}: {error.message}")
            check = self._catalog.validate_catalog_invariant(portfolio, business_type)
            if not check.valid:
                errors.append(f"CATALOG_INVARIANT: {check.error}")

        data = {
            "mission_id": mission_id,
            "business_type": business_type.value,
            "validation": result.to_dict(),
        }
        if errors:
            logger.info("Activation of %s refused: %s", mission_id, "; ".join(errors))
            return ServiceResult(success=False, errors=errors, data=data)

        logger.info("Activation of %s for %s accepted", mission_id, business_type.value)
        return ServiceResult(success=True, data=data)

    # ------------------------------------------------------------------
    # Submission gate
    # ------------------------------------------------------------------

    def gate_submission(
        self,
        request: SubmissionRequest,
        read_snapshot: SnapshotReader,
        now: datetime,
    ) -> ServiceResult:
        """Final accept/reject before a submission is committed.

        The snapshot must carry rolling-window activity counts taken earlier
        on the current day; a snapshot without them, or with counts from
        another day, is refused rather than validated.
        """
        snapshot = read_snapshot(request.user_id, request.mission_id)
        if snapshot.activity is None:
            logger.info(
                "Submission of %s by %s refused: no activity counts in snapshot",
                request.mission_id, request.user_id,
            )
            return ServiceResult(
                success=False,
                errors=["Activity counts are required to gate a submission."],
            )
        if not snapshot.activity.is_current(now):
            logger.info(
                "Submission of %s by %s refused: activity counts as of %s are not current",
                request.mission_id, request.user_id, snapshot.activity.as_of.isoformat(),
            )
            return ServiceResult(
                success=False,
                errors=[
                    f"Activity counts as of {snapshot.activity.as_of.isoformat()} "
                    f"do not describe the current day."
                ],
            )

        result = self._engine.validate_mission_completely(
            request.mission_id,
            request.business_type,
            request.business_level,
            request.proof_method,
            request.reward_points,
            request.user_id,
            snapshot.user_total_points,
            snapshot.user_trust_score,
            snapshot.user_completion_count,
            snapshot.last_completion_date,
            snapshot.current_total_participants,
            snapshot.today_participants,
            request.max_participants,
            now=now,
            activity=snapshot.activity,
        )
        data: dict[str, Any] = {
            "mission_id": request.mission_id,
            "user_id": request.user_id,
            "validation": result.to_dict(),
        }
        if not result.is_valid:
            logger.info(
                "Submission of %s by %s rejected: %s",
                request.mission_id, request.user_id,
                ", ".join(c.value for c in result.error_codes),
            )
            return ServiceResult(success=False, errors=_error_lines(result), data=data)

        level = self._levels.calculate_user_level(snapshot.user_total_points)
        template = self._catalog.get_mission_by_id(request.mission_id)
        lock_days = template.reward_lock_delay_days or 0
        posture = self._levels.get_proof_verification_config(
            level, snapshot.user_trust_score, request.reward_points,
        )

        data.update({
            "user_level": level.name,
            "effective_reward": self._levels.calculate_effective_reward(
                request.reward_points, level,
            ),
            "reward_unlocks_at": (now + timedelta(days=lock_days)).isoformat(),
            "verification": posture.to_dict(),
            "priority_review": self._levels.get_user_level_config(level).priority_review,
            "requires_unique_proof": template.participation.requires_unique_proof,
            "allow_simultaneous_submissions": (
                template.participation.allow_simultaneous_submissions
            ),
        })
        logger.info(
            "Submission of %s by %s accepted (level=%s, reward=%d)",
            request.mission_id, request.user_id, level.name, data["effective_reward"],
        )
        return ServiceResult(success=True, data=data)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        """Return a summary of the loaded policy."""
        return {
            "version": __version__,
            "config_versions": self._resolver.versions(),
            "missions": {
                "total": len(self._catalog.all_missions()),
                "by_business_type": {
                    t.value: len(self._catalog.get_missions_by_business_type(t))
                    for t in BusinessType
                },
            },
            "levels": [
                {"level": int(c.level), "name": c.name, "points_required": c.points_required}
                for c in self._resolver.level_configs()
            ],
        }


def _error_lines(result: ValidationResult) -> list[str]:
    return [f"{e.code.value}: {e.message}" for e in result.errors]
