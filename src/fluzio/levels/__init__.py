"""User level table, limits and verification posture."""

from fluzio.levels.limits import UserLevelPolicy

__all__ = ["UserLevelPolicy"]
