"""Mission catalog: the locked registry of mission templates.

The catalog is the sole source of truth for which missions exist. It is
deployed as a versioned unit; nothing here creates, updates or deletes
an entry. Unknown ids yield None, never an exception.

Usage:
    catalog = MissionCatalog(resolver)
    template = catalog.get_mission_by_id("VISIT_CHECKIN")
    online = catalog.get_missions_by_business_type(BusinessType.ONLINE)
"""

from __future__ import annotations

from typing import Optional

from fluzio.models.mission import (
    BusinessNeed,
    BusinessType,
    CatalogCheck,
    MissionTemplate,
    ProofMethod,
    RiskLevel,
)
from fluzio.policy.resolver import CATALOG_FILENAME, PolicyResolver


class MissionCatalog:
    """Read-only views over the locked mission catalog."""

    # Risk scoring weights
    _PROOF_RISK = {
        ProofMethod.SCREENSHOT_AI: 3,
        ProofMethod.FORM_SUBMISSION: 2,
    }
    _HIGH_RISK_SCORE = 8
    _MEDIUM_RISK_SCORE = 5

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    @property
    def version(self) -> str:
        return self._resolver.versions()[CATALOG_FILENAME]

    def all_missions(self) -> list[MissionTemplate]:
        return self._resolver.mission_templates()

    def get_mission_by_id(self, mission_id: str) -> Optional[MissionTemplate]:
        return self._resolver.mission_template(mission_id)

    def get_missions_by_business_type(self, business_type: BusinessType) -> list[MissionTemplate]:
        return [m for m in self.all_missions() if m.allows(business_type)]

    def get_missions_by_need(self, need: BusinessNeed) -> list[MissionTemplate]:
        return [m for m in self.all_missions() if m.business_need == need]

    def get_conversion_missions(self) -> list[MissionTemplate]:
        return self.get_missions_by_need(BusinessNeed.CONVERSION)

    def get_content_missions(self) -> list[MissionTemplate]:
        return self.get_missions_by_need(BusinessNeed.CONTENT)

    def get_reputation_missions(self) -> list[MissionTemplate]:
        return self.get_missions_by_need(BusinessNeed.REPUTATION)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def validate_catalog_invariant(
        self,
        active_mission_ids: list[str],
        business_type: BusinessType,
    ) -> CatalogCheck:
        """At least one active mission must be a CONVERSION mission the
        business type can offer.

        Re-run whenever a business's active-mission set changes.
        Unknown ids in the active set are ignored.
        """
        for mission_id in active_mission_ids:
            template = self.get_mission_by_id(mission_id)
            if (
                template is not None
                and template.business_need == BusinessNeed.CONVERSION
                and template.allows(business_type)
            ):
                return CatalogCheck(valid=True)

        names = [m.name for m in self.get_conversion_missions() if m.allows(business_type)]
        return CatalogCheck(
            valid=False,
            error=(
                f"At least one conversion mission ({_or_list(names)}) must be "
                f"active for {business_type.value} businesses."
            ),
        )

    def validate_mission_for_business_type(
        self, mission_id: str, business_type: BusinessType,
    ) -> CatalogCheck:
        template = self.get_mission_by_id(mission_id)
        if template is None:
            return CatalogCheck(valid=False, error=f"Mission {mission_id} not found in catalog.")
        if not template.allows(business_type):
            allowed = ", ".join(
                t.value for t in BusinessType if t in template.allowed_business_types
            )
            return CatalogCheck(
                valid=False,
                error=(
                    f"Mission {template.name} is not available for "
                    f"{business_type.value} businesses. Allowed types: {allowed}"
                ),
            )
        return CatalogCheck(valid=True)

    def get_mission_risk_level(self, mission_id: str) -> Optional[RiskLevel]:
        """Fraud exposure of a template, from reward size, proof strength,
        confirmation, reward lock and rule count. None for unknown ids."""
        template = self.get_mission_by_id(mission_id)
        if template is None:
            return None

        score = 0
        if template.default_reward > 500:
            score += 3
        elif template.default_reward > 200:
            score += 2
        else:
            score += 1

        score += self._PROOF_RISK.get(template.proof_method, 1)

        if not template.requires_business_confirmation:
            score += 2
        if template.reward_lock_delay_days is None:
            score += 1
        if len(template.anti_cheat_rules) < 2:
            score += 2

        if score >= self._HIGH_RISK_SCORE:
            return RiskLevel.HIGH
        if score >= self._MEDIUM_RISK_SCORE:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


def _or_list(items: list[str]) -> str:
    if not items:
        return "none available"
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])}, or {items[-1]}"
