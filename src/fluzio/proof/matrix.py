"""Proof method matrix: which proof is accepted for mission M offered by a
business of type T, and why a method is refused.

Standing rules, enforced here rather than left to convention in the data:
1. Money-moving missions never take SCREENSHOT_AI as primary. Receipt and
   confirmation images are trivially forged. A screenshot fallback on
   them requires business confirmation.
2. Physical-presence missions prefer QR_SCAN. GPS can be spoofed and
   shared, so GPS_CHECKIN is acceptable as a fallback only.
3. Online transactional missions never take SCREENSHOT_AI as primary.
4. SCREENSHOT_AI as primary always requires business confirmation.
   Ephemeral content (stories) has no fallback at all.
"""

from __future__ import annotations

from typing import Optional

from fluzio.models.mission import BusinessType, ProofMethod
from fluzio.models.proof import ProofMethodConfig
from fluzio.policy.resolver import PolicyResolver


class ProofMethodMatrix:
    """Lookup and standing-rule checks over the proof method matrix."""

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def get_proof_method_config(
        self, mission_id: str, business_type: BusinessType,
    ) -> Optional[ProofMethodConfig]:
        """None means the mission is not offered for that business type
        (distinct from offered-but-this-method-forbidden)."""
        return self._resolver.proof_config(mission_id, business_type)

    def is_proof_method_allowed(
        self,
        mission_id: str,
        business_type: BusinessType,
        proof_method: ProofMethod,
    ) -> bool:
        config = self.get_proof_method_config(mission_id, business_type)
        if config is None:
            return False
        # Forbidden wins even over an inconsistent primary/fallback entry
        if proof_method in config.forbidden:
            return False
        return proof_method == config.primary or proof_method == config.fallback

    def get_forbidden_reason(
        self,
        mission_id: str,
        business_type: BusinessType,
        proof_method: ProofMethod,
    ) -> Optional[str]:
        config = self.get_proof_method_config(mission_id, business_type)
        if config is None:
            return None
        return config.forbidden_reason(proof_method)

    def accepted_methods(
        self, mission_id: str, business_type: BusinessType,
    ) -> list[ProofMethod]:
        """Primary then fallback, as offered to a business."""
        config = self.get_proof_method_config(mission_id, business_type)
        if config is None:
            return []
        return config.accepted

    def validate_proof_method_config(
        self, mission_id: str, business_type: BusinessType,
    ) -> list[str]:
        """Check one matrix entry against the standing rules.

        Returns a list of violations (empty means valid). An entry that is
        not offered has nothing to violate.
        """
        config = self.get_proof_method_config(mission_id, business_type)
        if config is None:
            return []

        errors: list[str] = []
        label = f"{mission_id}/{business_type.value}"
        screenshot = ProofMethod.SCREENSHOT_AI

        for method in (config.primary, config.fallback):
            if method is not None and method in config.forbidden:
                errors.append(f"{label}: {method.value} is both accepted and forbidden")

        if mission_id in self._resolver.money_missions():
            if config.primary == screenshot:
                errors.append(
                    f"{label}: money-moving missions must not use "
                    f"SCREENSHOT_AI as primary proof"
                )
            if config.fallback == screenshot and not config.requires_business_confirmation:
                errors.append(
                    f"{label}: SCREENSHOT_AI fallback on a money-moving mission "
                    f"requires business confirmation"
                )

        if mission_id in self._resolver.physical_presence_missions():
            qr_available = ProofMethod.QR_SCAN not in config.forbidden
            if config.primary == ProofMethod.GPS_CHECKIN and qr_available:
                errors.append(
                    f"{label}: physical-presence missions must prefer QR_SCAN "
                    f"over GPS_CHECKIN"
                )

        if mission_id in self._resolver.online_transactional_missions():
            if config.primary == screenshot:
                errors.append(
                    f"{label}: online transactional missions must not use "
                    f"SCREENSHOT_AI as primary proof"
                )

        if config.primary == screenshot and not config.requires_business_confirmation:
            errors.append(
                f"{label}: SCREENSHOT_AI primary proof requires business confirmation"
            )

        return errors
