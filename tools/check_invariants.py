#!/usr/bin/env python3
"""Fluzio config invariant checks against the deployed policy documents.

Usage:
    python3 tools/check_invariants.py
    FLUZIO_CONFIG_DIR=/path/to/config python3 tools/check_invariants.py

Reads FLUZIO_CONFIG_DIR from a .env file at the project root if present.
"""

import os
import sys
from pathlib import Path

# Add src to path for fluzio imports
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from dotenv import load_dotenv
from fluzio.policy.invariants import check_invariants
from fluzio.policy.resolver import PolicyResolver


def check() -> int:
    load_dotenv(ROOT / ".env")
    config_dir = Path(os.getenv("FLUZIO_CONFIG_DIR", ROOT / "config"))

    try:
        resolver = PolicyResolver.from_config_dir(config_dir)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Config failed to load: {exc}")
        return 1

    errors = check_invariants(resolver)
    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print(f"Invariant check passed ({config_dir}).")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
