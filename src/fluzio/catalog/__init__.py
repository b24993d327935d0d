"""Locked mission catalog."""

from fluzio.catalog.registry import MissionCatalog

__all__ = ["MissionCatalog"]
