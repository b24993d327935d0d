"""Business-type availability: which business types may offer a mission at
all, plus proof adjustments layered on top of the matrix.

Hybrid businesses carry one extra portfolio rule: they must keep at least
one offline and one online conversion mission active.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fluzio.models.mission import BusinessNeed, BusinessType
from fluzio.models.proof import (
    AvailabilityCode,
    AvailabilityError,
    ProofMethodAdjustment,
)
from fluzio.policy.resolver import PolicyResolver

logger = logging.getLogger(__name__)


class BusinessAvailability:
    """Availability checks per mission and business type."""

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def validate_mission_availability(
        self, mission_id: str, business_type: BusinessType,
    ) -> Optional[AvailabilityError]:
        """Return None if the mission may be offered, else the reason it cannot."""
        availability = self._resolver.availability(mission_id)
        if availability is None:
            return AvailabilityError(
                code=AvailabilityCode.MISSION_NOT_FOUND,
                message=f'Mission "{mission_id}" not found in locked catalog.',
                mission_id=mission_id,
                business_type=business_type,
            )

        if business_type in availability.forbidden_business_types:
            return AvailabilityError(
                code=AvailabilityCode.MISSION_FORBIDDEN_FOR_BUSINESS_TYPE,
                message=(
                    f'Mission "{availability.name}" is not available for '
                    f"{business_type.value.lower()} businesses. "
                    f"{availability.availability_reason}"
                ),
                mission_id=mission_id,
                business_type=business_type,
                suggested_fix=self.suggest_alternative(mission_id, business_type),
            )

        if business_type not in availability.allowed_business_types:
            return AvailabilityError(
                code=AvailabilityCode.MISSION_NOT_ALLOWED_FOR_BUSINESS_TYPE,
                message=(
                    f'Mission "{availability.name}" is not available for '
                    f"{business_type.value.lower()} businesses."
                ),
                mission_id=mission_id,
                business_type=business_type,
                suggested_fix=self.suggest_alternative(mission_id, business_type),
            )

        return None

    def suggest_alternative(self, mission_id: str, business_type: BusinessType) -> str:
        availability = self._resolver.availability(mission_id)
        if availability is not None:
            text = availability.alternatives.get(business_type)
            if text:
                return text
        return self._resolver.default_alternative()

    def get_proof_method_adjustments(
        self, mission_id: str, business_type: BusinessType,
    ) -> Optional[ProofMethodAdjustment]:
        availability = self._resolver.availability(mission_id)
        if availability is None:
            return None
        return availability.proof_adjustments.get(business_type)

    def get_available_missions_for_business_type(
        self, business_type: BusinessType,
    ) -> list[str]:
        return [
            mission_id
            for mission_id in self._resolver.availability_mission_ids()
            if self.validate_mission_availability(mission_id, business_type) is None
        ]

    # ------------------------------------------------------------------
    # Hybrid portfolio
    # ------------------------------------------------------------------

    def validate_hybrid_portfolio(self, active_mission_ids: list[str]) -> list[AvailabilityError]:
        """A hybrid business needs an offline AND an online conversion mission."""
        requirements = self._resolver.hybrid_requirements()
        active = set(active_mission_ids)
        errors: list[AvailabilityError] = []

        if requirements.requires_offline_conversion and not (
            active & requirements.offline_conversion_missions
        ):
            errors.append(AvailabilityError(
                code=AvailabilityCode.HYBRID_MISSING_OFFLINE_CONVERSION,
                message=requirements.offline_message,
                mission_id=None,
                business_type=BusinessType.HYBRID,
                suggested_fix=requirements.offline_suggested_fix,
            ))

        if requirements.requires_online_conversion and not (
            active & requirements.online_conversion_missions
        ):
            errors.append(AvailabilityError(
                code=AvailabilityCode.HYBRID_MISSING_ONLINE_CONVERSION,
                message=requirements.online_message,
                mission_id=None,
                business_type=BusinessType.HYBRID,
                suggested_fix=requirements.online_suggested_fix,
            ))

        return errors

    def validate_mission_activation_complete(
        self,
        mission_id: str,
        business_type: BusinessType,
        active_mission_ids: list[str],
    ) -> list[AvailabilityError]:
        """Availability plus, for hybrids, the portfolio including this mission."""
        error = self.validate_mission_availability(mission_id, business_type)
        if error is not None:
            logger.debug("Activation blocked for %s: %s", mission_id, error.code.value)
            return [error]
        if business_type == BusinessType.HYBRID:
            return self.validate_hybrid_portfolio([*active_mission_ids, mission_id])
        return []

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def availability_summary(self) -> dict[str, Any]:
        """Counts of missions by business-type coverage and by business need."""
        by_need: dict[str, dict[str, int]] = {
            need.value: {t.value: 0 for t in BusinessType} for need in BusinessNeed
        }
        summary: dict[str, Any] = {
            "total_missions": 0,
            "all_types": 0,
            "physical_only": 0,
            "online_only": 0,
            "hybrid_only": 0,
            "by_business_need": by_need,
        }

        for mission_id in self._resolver.availability_mission_ids():
            availability = self._resolver.availability(mission_id)
            allowed = availability.allowed_business_types - availability.forbidden_business_types
            summary["total_missions"] += 1

            if len(allowed) == len(BusinessType):
                summary["all_types"] += 1
            elif BusinessType.PHYSICAL in allowed and BusinessType.ONLINE not in allowed:
                summary["physical_only"] += 1
            elif BusinessType.ONLINE in allowed and BusinessType.PHYSICAL not in allowed:
                summary["online_only"] += 1
            elif allowed == {BusinessType.HYBRID}:
                summary["hybrid_only"] += 1

            template = self._resolver.mission_template(mission_id)
            if template is not None:
                for business_type in allowed:
                    by_need[template.business_need.value][business_type.value] += 1

        return summary
