"""Fluzio mission validation and anti-fraud engine."""

__version__ = "1.0.0"
