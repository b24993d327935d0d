"""Cross-document invariant checks over loaded mission policy.

Each document parses on its own; these checks cover what no single
document can guarantee. Returns a list of violations (empty means valid).
"""

from __future__ import annotations

from fluzio.models.mission import BusinessNeed, BusinessType
from fluzio.policy.resolver import PolicyResolver
from fluzio.proof.matrix import ProofMethodMatrix


def check_invariants(resolver: PolicyResolver) -> list[str]:
    errors: list[str] = []
    _check_mission_coverage(resolver, errors)
    _check_business_types(resolver, errors)
    _check_proof_rules(resolver, errors)
    _check_catalog_rules(resolver, errors)
    _check_levels(resolver, errors)
    return errors


def _check_mission_coverage(resolver: PolicyResolver, errors: list[str]) -> None:
    # --- Every catalog mission is known to every other document ---
    catalog_ids = {t.id for t in resolver.mission_templates()}
    sources = {
        "proof matrix": set(resolver.matrix_mission_ids()),
        "availability": set(resolver.availability_mission_ids()),
        "mission categories": set(resolver.mission_categories()),
    }
    for label, ids in sources.items():
        for mission_id in sorted(catalog_ids - ids):
            errors.append(f"{mission_id} missing from {label}")
        for mission_id in sorted(ids - catalog_ids):
            errors.append(f"{label} lists {mission_id}, which is not in the catalog")

    rule_lists = {
        "money_missions": resolver.money_missions(),
        "physical_presence_missions": resolver.physical_presence_missions(),
        "online_transactional_missions": resolver.online_transactional_missions(),
        "high_value_missions": resolver.high_value_activation_missions(),
    }
    for label, ids in rule_lists.items():
        for mission_id in sorted(ids - catalog_ids):
            errors.append(f"{label} lists unknown mission {mission_id}")


def _check_business_types(resolver: PolicyResolver, errors: list[str]) -> None:
    # --- Catalog, matrix and availability agree on who may offer what ---
    for template in resolver.mission_templates():
        configs = resolver.proof_configs(template.id)
        availability = resolver.availability(template.id)
        if configs is None or availability is None:
            continue

        offered = frozenset(t for t, c in configs.items() if c is not None)
        available = availability.allowed_business_types - availability.forbidden_business_types
        if offered != template.allowed_business_types:
            errors.append(
                f"{template.id}: proof matrix offers {_names(offered)} but catalog "
                f"allows {_names(template.allowed_business_types)}"
            )
        if available != template.allowed_business_types:
            errors.append(
                f"{template.id}: availability allows {_names(available)} but catalog "
                f"allows {_names(template.allowed_business_types)}"
            )

        for business_type, adjustment in availability.proof_adjustments.items():
            config = configs.get(business_type)
            if config is None:
                errors.append(
                    f"{template.id}/{business_type.value}: proof adjustment for a "
                    f"business type the mission is not offered to"
                )
                continue
            if adjustment.required_proof_method != config.primary:
                errors.append(
                    f"{template.id}/{business_type.value}: required proof "
                    f"{adjustment.required_proof_method.value} differs from matrix "
                    f"primary {config.primary.value}"
                )
            loose = adjustment.disallowed_proof_methods - set(config.forbidden)
            if loose:
                errors.append(
                    f"{template.id}/{business_type.value}: disallowed methods "
                    f"{_names(loose)} are not forbidden in the proof matrix"
                )

        accepted_somewhere = any(
            template.proof_method in c.accepted for c in configs.values() if c is not None
        )
        if not accepted_somewhere:
            errors.append(
                f"{template.id}: default proof method {template.proof_method.value} "
                f"is not accepted for any business type"
            )

    # --- Every business type can reach a conversion mission ---
    for business_type in BusinessType:
        reachable = [
            t.id for t in resolver.mission_templates()
            if t.business_need == BusinessNeed.CONVERSION
            and resolver.proof_config(t.id, business_type) is not None
        ]
        if not reachable:
            errors.append(f"No conversion mission available to {business_type.value} businesses")


def _check_proof_rules(resolver: PolicyResolver, errors: list[str]) -> None:
    # --- Standing proof rules, including forbidden/accepted disjointness ---
    matrix = ProofMethodMatrix(resolver)
    for mission_id in resolver.matrix_mission_ids():
        for business_type in BusinessType:
            errors.extend(matrix.validate_proof_method_config(mission_id, business_type))


def _check_catalog_rules(resolver: PolicyResolver, errors: list[str]) -> None:
    max_content = resolver.max_content_reward()
    for template in resolver.mission_templates():
        if template.business_need == BusinessNeed.CONTENT and template.default_reward > max_content:
            errors.append(
                f"{template.id}: content mission reward {template.default_reward} "
                f"exceeds {max_content}"
            )

    min_reward, max_reward = resolver.reward_bounds()
    if min_reward > max_reward:
        errors.append(f"min_reward_points {min_reward} exceeds max_reward_points {max_reward}")


def _check_levels(resolver: PolicyResolver, errors: list[str]) -> None:
    configs = resolver.level_configs()

    # --- Thresholds ---
    if configs[0].points_required != 0:
        errors.append(
            f"{configs[0].name} must start at 0 points, got {configs[0].points_required}"
        )
    for lower, higher in zip(configs, configs[1:]):
        if higher.points_required <= lower.points_required:
            errors.append(
                f"{higher.name} points_required must exceed {lower.name} "
                f"({higher.points_required} <= {lower.points_required})"
            )

        # --- Monotonic perks ---
        for flag, enabled in lower.capabilities().items():
            if enabled and not getattr(higher, flag):
                errors.append(f"{flag} granted at {lower.name} but revoked at {higher.name}")
        if higher.reward_multiplier < lower.reward_multiplier:
            errors.append(
                f"{higher.name} reward_multiplier {higher.reward_multiplier} is below "
                f"{lower.name} {lower.reward_multiplier}"
            )
        if higher.proof_strictness.rank > lower.proof_strictness.rank:
            errors.append(
                f"{higher.name} proof strictness {higher.proof_strictness.value} is "
                f"stricter than {lower.name} {lower.proof_strictness.value}"
            )


def _names(items) -> str:
    return ", ".join(sorted(i.value for i in items)) or "none"
