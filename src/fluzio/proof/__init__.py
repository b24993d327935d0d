"""Proof method matrix and business-type availability."""

from fluzio.proof.availability import BusinessAvailability
from fluzio.proof.matrix import ProofMethodMatrix

__all__ = ["BusinessAvailability", "ProofMethodMatrix"]
