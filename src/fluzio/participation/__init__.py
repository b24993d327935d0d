"""Participation caps, per-user cooldowns and budgeting."""

from fluzio.participation.caps import ParticipationTracker

__all__ = ["ParticipationTracker"]
