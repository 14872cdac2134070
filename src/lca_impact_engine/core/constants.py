"""Shared constant values used across the impact aggregation engine."""

from __future__ import annotations

from typing import Final

CALCULATION_VERSION: Final[str] = "2.1.0"

CATEGORY_INGREDIENT: Final[str] = "ingredient"
CATEGORY_PACKAGING: Final[str] = "packaging"
CATEGORY_MATURATION: Final[str] = "maturation"
PACKAGING_CATEGORY_TAGS: Final[frozenset[str]] = frozenset({"packaging", "packaging_material"})
CONTRACT_MANUFACTURER_SOURCE: Final[str] = "contract_manufacturer"

IMPACT_CATEGORIES: Final[tuple[str, ...]] = (
    "climate",
    "water",
    "water_scarcity",
    "land_use",
    "terrestrial_ecotoxicity",
    "freshwater_eutrophication",
    "terrestrial_acidification",
    "fossil_resource_scarcity",
    "waste",
)

SCOPES: Final[tuple[str, ...]] = ("scope1", "scope2", "scope3")

CONTRIBUTION_CATEGORIES: Final[tuple[str, ...]] = (
    "materials",
    "packaging",
    "production",
    "transport",
    "end_of_life",
)

LIFECYCLE_STAGES: Final[tuple[str, ...]] = (
    "raw_materials",
    "processing",
    "packaging",
    "distribution",
    "use_phase",
    "end_of_life",
)

GHG_SPECIES: Final[tuple[str, ...]] = (
    "co2_fossil",
    "co2_biogenic",
    "co2_land_use_change",
    "ch4",
    "n2o",
    "hfc_pfc",
)

SIGNIFICANT_CONTRIBUTION_PCT: Final[float] = 10.0
DOMINANT_CONTRIBUTION_PCT: Final[float] = 50.0
GHG_RECONCILIATION_TOLERANCE: Final[float] = 0.10

RATING_HIGH: Final[str] = "High"
RATING_MEDIUM: Final[str] = "Medium"
RATING_LOW: Final[str] = "Low"


def zero_totals(keys: tuple[str, ...]) -> dict[str, float]:
    """Return a fresh ordered mapping of ``keys`` to ``0.0``."""
    return {key: 0.0 for key in keys}
