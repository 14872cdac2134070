"""Custom exception hierarchy for the impact engine."""

from __future__ import annotations


class ImpactEngineError(Exception):
    """Base error for the life-cycle impact aggregation engine."""


class InventoryValidationError(ImpactEngineError):
    """Raised when an inventory document cannot be turned into engine inputs."""


class ReferenceDataError(ImpactEngineError):
    """Raised when reference table overrides are malformed."""
