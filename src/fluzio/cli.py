"""Fluzio CLI: command-line interface for the mission engine.

Usage:
    python -m fluzio.cli status
    python -m fluzio.cli check-invariants
    python -m fluzio.cli list-missions --business-type ONLINE --need CONVERSION
    python -m fluzio.cli proof-config --mission VISIT_CHECKIN --business-type PHYSICAL
    python -m fluzio.cli level --points 750 --trust 60 --reward 250
    python -m fluzio.cli validate-activation --mission REDEEM_OFFER --business-type PHYSICAL \
        --proof QR_SCAN --reward 100
    python -m fluzio.cli validate-participation --mission GOOGLE_REVIEW_TEXT --user u-1 \
        --points 150 --trust 40 --business-type PHYSICAL --proof SCREENSHOT_AI
    python -m fluzio.cli estimate-budget --mission VISIT_CHECKIN --reward 50

Environment (a .env file at the repo root is honoured):
    FLUZIO_CONFIG_DIR   config directory (default: config/)
    FLUZIO_LOG_LEVEL    log level (default: WARNING)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from fluzio.levels.limits import UserLevelPolicy
from fluzio.models.mission import BusinessNeed, BusinessType, ProofMethod
from fluzio.models.participation import ActivityCounts
from fluzio.participation.caps import ParticipationTracker
from fluzio.policy.invariants import check_invariants
from fluzio.policy.resolver import PolicyResolver
from fluzio.proof.matrix import ProofMethodMatrix
from fluzio.service import MissionService


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG = ROOT / "config"


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _make_service(config_dir: Path) -> MissionService:
    return MissionService(PolicyResolver.from_config_dir(config_dir))


def cmd_status(args: argparse.Namespace) -> int:
    _print_json(_make_service(args.config).status())
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run cross-document config invariant checks."""
    resolver = PolicyResolver.from_config_dir(args.config)
    errors = check_invariants(resolver)
    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1
    print("Invariant check passed.")
    return 0


def cmd_list_missions(args: argparse.Namespace) -> int:
    catalog = _make_service(args.config).catalog
    missions = catalog.all_missions()
    if args.business_type:
        missions = [m for m in missions if m.allows(BusinessType(args.business_type))]
    if args.need:
        missions = [m for m in missions if m.business_need == BusinessNeed(args.need)]
    _print_json([
        {
            "id": m.id,
            "name": m.name,
            "business_need": m.business_need.value,
            "proof_method": m.proof_method.value,
            "default_reward": m.default_reward,
            "risk_level": catalog.get_mission_risk_level(m.id).value,
            "cooldown_hours": m.cooldown.per_user_hours,
            "participation": m.participation.to_dict(),
        }
        for m in missions
    ])
    return 0


def cmd_proof_config(args: argparse.Namespace) -> int:
    resolver = PolicyResolver.from_config_dir(args.config)
    business_type = BusinessType(args.business_type)
    config = ProofMethodMatrix(resolver).get_proof_method_config(args.mission, business_type)
    if config is None:
        print(
            f"Failed: {args.mission} is not offered to {business_type.value} businesses",
            file=sys.stderr,
        )
        return 1
    _print_json(config.to_dict())
    return 0


def cmd_level(args: argparse.Namespace) -> int:
    levels = UserLevelPolicy(PolicyResolver.from_config_dir(args.config))
    level = levels.calculate_user_level(args.points)
    progress = levels.get_next_level_requirements(level, args.points)
    data: dict[str, Any] = {
        "level": int(level),
        "name": levels.get_user_level_config(level).name,
        "next_level": progress.next_level.name if progress.next_level else None,
        "points_needed": progress.points_needed,
        "percent_complete": round(progress.percent_complete, 1),
        "priority_review": levels.get_user_level_config(level).priority_review,
    }
    if args.trust is not None and args.reward is not None:
        data["verification"] = levels.get_proof_verification_config(
            level, args.trust, args.reward,
        ).to_dict()
        data["effective_reward"] = levels.calculate_effective_reward(args.reward, level)
    _print_json(data)
    return 0


def cmd_validate_activation(args: argparse.Namespace) -> int:
    service = _make_service(args.config)
    result = service.activate_mission(
        mission_id=args.mission,
        business_type=BusinessType(args.business_type),
        business_level=args.business_level,
        proof_method=ProofMethod(args.proof),
        reward_points=args.reward,
        max_participants=args.max_participants,
        active_mission_ids=args.active,
    )
    _print_json({"success": result.success, "errors": result.errors, **result.data})
    return 0 if result.success else 1


def cmd_validate_participation(args: argparse.Namespace) -> int:
    service = _make_service(args.config)
    # The clock is read here, at the edge, and nowhere below.
    now = datetime.now(timezone.utc)
    activity = None
    if not args.no_activity:
        activity = ActivityCounts(
            as_of=now,
            missions_today=args.missions_today,
            reviews_today=args.reviews_today,
            check_ins_today=args.check_ins_today,
            high_value_this_week=args.high_value_this_week,
            ugc_this_week=args.ugc_this_week,
            referrals_this_month=args.referrals_this_month,
            last_mission_completed_at=_parse_instant(args.last_mission_completed_at),
        )
    result = service.engine.validate_mission_participation(
        args.mission,
        args.user,
        args.points,
        args.trust,
        BusinessType(args.business_type),
        ProofMethod(args.proof),
        args.completions,
        _parse_instant(args.last_completion),
        args.total_participants,
        args.today_participants,
        now=now,
        activity=activity,
    )
    _print_json(result.to_dict())
    return 0 if result.is_valid else 1


def cmd_estimate_budget(args: argparse.Namespace) -> int:
    tracker = ParticipationTracker(PolicyResolver.from_config_dir(args.config))
    try:
        estimate = tracker.calculate_estimated_budget(
            args.mission, args.reward, args.max_participants,
        )
    except ValueError as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1
    _print_json(estimate.to_dict())
    return 0


def _parse_instant(value: str | None) -> datetime | None:
    if value is None:
        return None
    instant = datetime.fromisoformat(value)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fluzio",
        description="Fluzio mission validation and anti-fraud engine CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.environ.get("FLUZIO_CONFIG_DIR", DEFAULT_CONFIG)),
        help="Path to config directory (default: config/ or $FLUZIO_CONFIG_DIR)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("FLUZIO_LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING or $FLUZIO_LOG_LEVEL)",
    )
    sub = parser.add_subparsers(dest="command")
    business_types = [t.value for t in BusinessType]
    proof_methods = [m.value for m in ProofMethod]

    # status
    sub.add_parser("status", help="Show loaded policy summary")

    # check-invariants
    sub.add_parser("check-invariants", help="Run config invariant checks")

    # list-missions
    p_list = sub.add_parser("list-missions", help="List catalog missions")
    p_list.add_argument("--business-type", choices=business_types)
    p_list.add_argument("--need", choices=[n.value for n in BusinessNeed])

    # proof-config
    p_proof = sub.add_parser("proof-config", help="Show proof config for a mission")
    p_proof.add_argument("--mission", required=True, help="Mission ID")
    p_proof.add_argument("--business-type", required=True, choices=business_types)

    # level
    p_level = sub.add_parser("level", help="Resolve level, progress and verification posture")
    p_level.add_argument("--points", type=int, required=True, help="Total points")
    p_level.add_argument("--trust", type=int, help="Trust score 0-100")
    p_level.add_argument("--reward", type=int, help="Mission reward in points")

    # validate-activation
    p_act = sub.add_parser("validate-activation", help="Validate a business activating a mission")
    p_act.add_argument("--mission", required=True, help="Mission ID")
    p_act.add_argument("--business-type", required=True, choices=business_types)
    p_act.add_argument("--business-level", type=int, default=1, help="Business level (default: 1)")
    p_act.add_argument("--proof", required=True, choices=proof_methods)
    p_act.add_argument("--reward", type=int, required=True, help="Reward in points")
    p_act.add_argument("--max-participants", type=int, help="Custom participant cap")
    p_act.add_argument("--active", nargs="*", help="Currently active mission IDs")

    # validate-participation
    p_part = sub.add_parser(
        "validate-participation", help="Validate a user participating in a mission",
    )
    p_part.add_argument("--mission", required=True, help="Mission ID")
    p_part.add_argument("--user", required=True, help="User ID")
    p_part.add_argument("--points", type=int, required=True, help="User total points")
    p_part.add_argument("--trust", type=int, required=True, help="User trust score 0-100")
    p_part.add_argument("--business-type", required=True, choices=business_types)
    p_part.add_argument("--proof", required=True, choices=proof_methods)
    p_part.add_argument("--completions", type=int, default=0)
    p_part.add_argument("--last-completion", help="ISO timestamp of last completion")
    p_part.add_argument("--total-participants", type=int, default=0)
    p_part.add_argument("--today-participants", type=int, default=0)
    p_part.add_argument("--missions-today", type=int, default=0)
    p_part.add_argument("--reviews-today", type=int, default=0)
    p_part.add_argument("--check-ins-today", type=int, default=0)
    p_part.add_argument("--high-value-this-week", type=int, default=0)
    p_part.add_argument("--ugc-this-week", type=int, default=0)
    p_part.add_argument("--referrals-this-month", type=int, default=0)
    p_part.add_argument("--last-mission-completed-at", help="ISO timestamp")
    p_part.add_argument(
        "--no-activity", action="store_true",
        help="Skip rolling-window level limits",
    )

    # estimate-budget
    p_budget = sub.add_parser("estimate-budget", help="Estimate mission budget")
    p_budget.add_argument("--mission", required=True, help="Mission ID")
    p_budget.add_argument("--reward", type=int, required=True, help="Reward in points")
    p_budget.add_argument("--max-participants", type=int, help="Custom participant cap")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(ROOT / ".env")
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "check-invariants": cmd_check_invariants,
        "list-missions": cmd_list_missions,
        "proof-config": cmd_proof_config,
        "level": cmd_level,
        "validate-activation": cmd_validate_activation,
        "validate-participation": cmd_validate_participation,
        "estimate-budget": cmd_estimate_budget,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
