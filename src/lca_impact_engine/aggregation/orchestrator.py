"""Aggregation of material, facility and maturation streams into one impact result."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable

from lca_impact_engine.accumulation import MaterialAccumulation, MaterialImpactAccumulator
from lca_impact_engine.allocation import FacilityAllocationEngine, FacilityAllocationOutcome
from lca_impact_engine.core.config import Settings, get_settings
from lca_impact_engine.core.coercion import coerce_float
from lca_impact_engine.core.constants import (
    CALCULATION_VERSION,
    CATEGORY_MATURATION,
    GHG_RECONCILIATION_TOLERANCE,
)
from lca_impact_engine.core.logging import get_logger
from lca_impact_engine.core.models import (
    AggregatedImpactResult,
    MaterialContribution,
    MaterialRecord,
    MaturationImpact,
    MaturationProfile,
    ProductionSiteAllocation,
)
from lca_impact_engine.core.reference_data import ReferenceTables, load_reference_tables
from lca_impact_engine.maturation import MaturationCalculator
from lca_impact_engine.quality import DataQualityAssessor

from .finalize import finalize_contributions

LOGGER = get_logger(__name__)


class ImpactAggregationOrchestrator:
    """Runs every calculator for one assessed entity and normalises the combined result.

    The material and facility passes are independent and may run concurrently;
    percentages are computed only after both have finished and the grand total
    is final.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        tables: ReferenceTables | None = None,
        accumulator: MaterialImpactAccumulator | None = None,
        allocator: FacilityAllocationEngine | None = None,
        maturation: MaturationCalculator | None = None,
        quality: DataQualityAssessor | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._tables = tables or load_reference_tables(self._settings.reference_tables_path)
        self._accumulator = accumulator or MaterialImpactAccumulator(self._settings, tables=self._tables)
        self._allocator = allocator or FacilityAllocationEngine(self._settings)
        self._maturation = maturation or MaturationCalculator(self._settings, tables=self._tables)
        self._quality = quality or DataQualityAssessor(self._settings, tables=self._tables)

    def aggregate(
        self,
        materials: Iterable[MaterialRecord],
        allocations: Iterable[ProductionSiteAllocation] = (),
        maturation_profile: MaturationProfile | None = None,
        functional_unit_quantity: float | None = None,
    ) -> AggregatedImpactResult:
        materials = list(materials)
        allocations = list(allocations)
        LOGGER.info(
            "aggregation.start",
            materials=len(materials),
            allocations=len(allocations),
            has_maturation=maturation_profile is not None,
        )

        accumulation, allocation = self._run_passes(materials, allocations, functional_unit_quantity)
        notes: list[str] = []

        totals = dict(accumulation.totals)
        by_scope = dict(accumulation.by_scope)
        by_category = dict(accumulation.by_category)
        by_ghg = dict(accumulation.by_ghg)
        by_stage = dict(accumulation.by_lifecycle_stage)

        material_entries = list(accumulation.contributions)

        totals["climate"] += allocation.climate_total
        totals["water"] += allocation.water
        totals["waste"] += allocation.waste
        by_scope["scope1"] += allocation.scope1
        by_scope["scope2"] += allocation.scope2
        by_scope["scope3"] += allocation.scope3
        by_category["production"] += allocation.climate_total
        by_stage["processing"] += allocation.climate_total
        by_ghg["co2_fossil"] += allocation.climate_total
        if allocation.unsplit:
            notes.append(
                f"{allocation.unsplit:.4g} kg CO2e of facility emissions could not be split by scope "
                "because the facility reports no scope 1 or scope 2 totals."
            )
        if allocation.validation.status in {"under_allocated", "over_allocated"}:
            notes.append(
                f"Production shares sum to {allocation.validation.total_share_pct:.2f}% "
                f"({allocation.validation.status.replace('_', '-')})."
            )

        maturation: MaturationImpact | None = None
        if maturation_profile is not None:
            maturation = self._maturation.calculate(maturation_profile)
            folded = self._fold_maturation(maturation, maturation_profile)
            if folded:
                totals["climate"] += folded
                by_scope["scope3"] += folded
                by_ghg["co2_fossil"] += folded
                by_stage["processing"] += folded
                material_entries.append(
                    MaterialContribution(
                        name="Maturation",
                        climate=folded,
                        category=CATEGORY_MATURATION,
                        quantity=coerce_float(maturation_profile.product_volume_litres),
                        unit="L",
                    )
                )
                notes.append(f"Maturation adds {folded:.4g} kg CO2e per functional unit.")
            if maturation.grid_factor_estimated:
                notes.append("Warehouse electricity uses the global-average grid factor (estimated).")

        climate_total = totals["climate"]
        if climate_total > 0 and not any(by_scope.values()):
            by_scope["scope3"] = climate_total
            notes.append("No scope split available; climate total reported as scope 3.")

        self._reconcile_ghg(by_ghg, climate_total, notes)

        data_quality = self._quality.assess(materials)

        limit = self._settings.top_contributor_limit
        top_materials = finalize_contributions(material_entries, climate_total, limit)
        top_facilities = finalize_contributions(allocation.contributions, climate_total, limit)
        if any(abs(entry.percentage) > 100.0 for entry in (*top_materials, *top_facilities)):
            notes.append(
                "Some contributions exceed 100% of the total because net-negative credits "
                "reduce the grand total below individual burdens."
            )

        result = AggregatedImpactResult(
            totals=totals,
            by_scope=by_scope,
            by_category=by_category,
            by_ghg=by_ghg,
            by_lifecycle_stage=by_stage,
            top_materials=top_materials,
            top_facilities=top_facilities,
            data_quality=data_quality,
            maturation=maturation,
            allocation_validation=allocation.validation,
            notes=notes,
            materials_count=accumulation.materials_count,
            production_sites_count=allocation.sites_count,
            calculated_at=datetime.now(timezone.utc).isoformat(),
            calculation_version=CALCULATION_VERSION,
        )
        LOGGER.info(
            "aggregation.complete",
            climate=round(climate_total, 6),
            scope1=round(by_scope["scope1"], 6),
            scope2=round(by_scope["scope2"], 6),
            scope3=round(by_scope["scope3"], 6),
            rating=data_quality.rating,
            notes=len(notes),
        )
        return result

    def _run_passes(
        self,
        materials: list[MaterialRecord],
        allocations: list[ProductionSiteAllocation],
        functional_unit_quantity: float | None,
    ) -> tuple[MaterialAccumulation, FacilityAllocationOutcome]:
        if not self._settings.parallel_accumulation:
            return (
                self._accumulator.accumulate(materials),
                self._allocator.allocate(allocations, functional_unit_quantity),
            )
        max_workers = max(1, min(2, self._settings.max_concurrency))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            material_future = executor.submit(self._accumulator.accumulate, materials)
            facility_future = executor.submit(self._allocator.allocate, allocations, functional_unit_quantity)
            return material_future.result(), facility_future.result()

    def _fold_maturation(self, maturation: MaturationImpact, profile: MaturationProfile) -> float:
        if not self._settings.fold_maturation_into_totals:
            return 0.0
        if not profile.product_volume_litres or profile.product_volume_litres <= 0:
            LOGGER.debug("aggregation.maturation_not_folded", reason="missing_product_volume")
            return 0.0
        return maturation.total_maturation_co2e_per_litre_output * profile.product_volume_litres

    def _reconcile_ghg(self, by_ghg: dict[str, float], climate_total: float, notes: list[str]) -> None:
        """Attribute an unexplained positive remainder of the climate total to fossil CO2."""
        if climate_total <= 0:
            return
        gwp = self._tables.gwp100
        ghg_co2e = (
            by_ghg["co2_fossil"]
            + by_ghg["co2_biogenic"]
            + by_ghg["co2_land_use_change"]
            + by_ghg["ch4"] * gwp.get("ch4", 0.0)
            + by_ghg["n2o"] * gwp.get("n2o", 0.0)
            + by_ghg["hfc_pfc"]
        )
        gap = climate_total - ghg_co2e
        if abs(gap) <= climate_total * GHG_RECONCILIATION_TOLERANCE:
            return
        if gap > 0:
            by_ghg["co2_fossil"] += gap
            notes.append(f"{gap:.4g} kg CO2e without a gas breakdown attributed to fossil CO2.")
        LOGGER.warning(
            "aggregation.ghg_reconciliation",
            climate=climate_total,
            ghg_co2e=ghg_co2e,
            gap=gap,
            adjusted=gap > 0,
        )


def aggregate_entity(
    materials: Iterable[MaterialRecord],
    allocations: Iterable[ProductionSiteAllocation] = (),
    maturation_profile: MaturationProfile | None = None,
    *,
    functional_unit_quantity: float | None = None,
    settings: Settings | None = None,
) -> AggregatedImpactResult:
    """Functional wrapper around ImpactAggregationOrchestrator."""
    orchestrator = ImpactAggregationOrchestrator(settings)
    return orchestrator.aggregate(materials, allocations, maturation_profile, functional_unit_quantity)
