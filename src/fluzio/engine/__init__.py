"""Mission validation engine."""

from fluzio.engine.validation import MissionValidationEngine

__all__ = ["MissionValidationEngine"]
