"""Facility emission allocation."""

from .service import FacilityAllocationEngine, FacilityAllocationOutcome

__all__ = ["FacilityAllocationEngine", "FacilityAllocationOutcome"]
