"""Aggregation orchestration and inventory loading."""

from .finalize import finalize_contributions, percentage_of
from .loader import Inventory, load_inventory, load_inventory_file
from .orchestrator import ImpactAggregationOrchestrator, aggregate_entity

__all__ = [
    "ImpactAggregationOrchestrator",
    "aggregate_entity",
    "finalize_contributions",
    "percentage_of",
    "Inventory",
    "load_inventory",
    "load_inventory_file",
]
