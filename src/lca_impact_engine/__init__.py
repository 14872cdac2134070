"""Life-cycle impact aggregation and allocation engine."""

from .aggregation import ImpactAggregationOrchestrator, aggregate_entity, load_inventory
from .core import (
    AggregatedImpactResult,
    MaterialRecord,
    MaturationProfile,
    ProductionSiteAllocation,
    Settings,
    configure_logging,
    get_settings,
)

__all__ = [
    "ImpactAggregationOrchestrator",
    "aggregate_entity",
    "load_inventory",
    "AggregatedImpactResult",
    "MaterialRecord",
    "MaturationProfile",
    "ProductionSiteAllocation",
    "Settings",
    "configure_logging",
    "get_settings",
]
