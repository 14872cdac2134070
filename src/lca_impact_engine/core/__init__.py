"""Shared core utilities for the life-cycle impact aggregation engine."""

from .config import Settings, get_settings, load_settings
from .exceptions import ImpactEngineError, InventoryValidationError, ReferenceDataError
from .grid import GridFactor, resolve_grid_factor
from .logging import configure_logging
from .models import (
    AggregatedImpactResult,
    AllocationValidation,
    DataQualitySummary,
    FacilityContribution,
    FacilityMetrics,
    GhgSplit,
    ImpactValues,
    MaterialContribution,
    MaterialRecord,
    MaterialUncertainty,
    MaturationImpact,
    MaturationProfile,
    ProductionSiteAllocation,
    QualityFlag,
    SensitivityResult,
    UncertaintyEstimate,
)
from .reference_data import ReferenceTables, load_reference_tables

__all__ = [
    "Settings",
    "ReferenceTables",
    "GridFactor",
    "ImpactValues",
    "GhgSplit",
    "MaterialRecord",
    "FacilityMetrics",
    "ProductionSiteAllocation",
    "MaturationProfile",
    "MaterialContribution",
    "FacilityContribution",
    "QualityFlag",
    "SensitivityResult",
    "MaterialUncertainty",
    "UncertaintyEstimate",
    "DataQualitySummary",
    "MaturationImpact",
    "AllocationValidation",
    "AggregatedImpactResult",
    "ImpactEngineError",
    "InventoryValidationError",
    "ReferenceDataError",
    "get_settings",
    "load_settings",
    "configure_logging",
    "load_reference_tables",
    "resolve_grid_factor",
]
