"""End-to-end tests for the impact aggregation orchestrator."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from lca_impact_engine.accumulation import MaterialAccumulation
from lca_impact_engine.aggregation import ImpactAggregationOrchestrator, aggregate_entity, finalize_contributions
from lca_impact_engine.core.config import Settings
from lca_impact_engine.core.constants import CALCULATION_VERSION
from lca_impact_engine.core.models import (
    FacilityMetrics,
    GhgSplit,
    ImpactValues,
    MaterialContribution,
    MaterialRecord,
    MaturationProfile,
    ProductionSiteAllocation,
)


def _build_material(name: str, climate: float, **overrides: Any) -> MaterialRecord:
    impacts = overrides.pop("impacts", None) or ImpactValues(climate=climate)
    values: dict[str, Any] = {"name": name, "quantity": 1.0, "unit": "kg", "impacts": impacts}
    values.update(overrides)
    return MaterialRecord(**values)


def _build_site(
    share_pct: float,
    intensity: float,
    *,
    scope1: float = 0.0,
    scope2: float = 0.0,
    facility_id: str = "facility-1",
    name: str | None = None,
    **facility_fields: Any,
) -> ProductionSiteAllocation:
    facility = FacilityMetrics(
        facility_id=facility_id,
        name=name,
        emission_intensity=intensity,
        scope1_total=scope1,
        scope2_total=scope2,
        **facility_fields,
    )
    return ProductionSiteAllocation(share_pct=share_pct, facility=facility, allocation_id=f"alloc-{facility_id}")


def _build_profile(**overrides: Any) -> MaturationProfile:
    values: dict[str, Any] = {
        "barrel_type": "american_oak_200",
        "barrel_volume_litres": 200.0,
        "barrel_use_number": 1,
        "number_of_barrels": 5,
        "fill_volume_litres": 200.0,
        "aging_duration_months": 144.0,
        "climate_zone": "temperate",
        "angel_share_pct_per_year": 2.0,
        "warehouse_energy_kwh_per_barrel_year": 15.0,
        "warehouse_energy_source": "grid_electricity",
    }
    values.update(overrides)
    return MaturationProfile(**values)


def _orchestrator(**overrides) -> ImpactAggregationOrchestrator:
    return ImpactAggregationOrchestrator(Settings(reference_year=2026, **overrides))


def _five_materials() -> list[MaterialRecord]:
    return [
        _build_material("Barley malt", 40.0),
        _build_material("Hops", 30.0),
        _build_material("Yeast", 20.0),
        _build_material("Water treatment", 5.0),
        _build_material("Sugar", 5.0),
    ]


def test_five_material_scenario() -> None:
    result = _orchestrator().aggregate(_five_materials())

    assert result.total_climate == pytest.approx(100.0)
    assert [entry.name for entry in result.top_materials] == [
        "Barley malt",
        "Hops",
        "Yeast",
        "Water treatment",
        "Sugar",
    ]
    assert [entry.percentage for entry in result.top_materials] == [
        pytest.approx(40.0),
        pytest.approx(30.0),
        pytest.approx(20.0),
        pytest.approx(5.0),
        pytest.approx(5.0),
    ]
    assert sum(entry.percentage for entry in result.top_materials) == pytest.approx(100.0)
    assert result.top_facilities == []
    assert result.by_scope["scope3"] == pytest.approx(100.0)
    assert result.materials_count == 5


def test_single_facility_scenario() -> None:
    result = _orchestrator().aggregate([], [_build_site(50.0, 10.0, scope1=6.0, scope2=4.0)], functional_unit_quantity=1.0)

    assert result.total_climate == pytest.approx(5.0)
    assert result.by_scope["scope1"] == pytest.approx(3.0)
    assert result.by_scope["scope2"] == pytest.approx(2.0)
    assert result.by_scope["scope3"] == 0
    assert result.by_category["production"] == pytest.approx(5.0)
    assert result.by_lifecycle_stage["processing"] == pytest.approx(5.0)
    assert result.by_ghg["co2_fossil"] == pytest.approx(5.0)
    assert result.top_facilities[0].percentage == pytest.approx(100.0)
    assert result.top_facilities[0].is_dominant is True
    assert result.production_sites_count == 1


def test_empty_inventory_returns_zero_result() -> None:
    result = _orchestrator().aggregate([], [])

    assert all(value == 0 for value in result.totals.values())
    assert all(value == 0 for value in result.by_scope.values())
    assert all(value == 0 for value in result.by_ghg.values())
    assert result.top_materials == []
    assert result.top_facilities == []
    assert result.maturation is None
    assert result.data_quality.rating == "Low"
    assert result.data_quality.score == 0
    assert result.allocation_validation.status == "empty"
    assert result.calculation_version == CALCULATION_VERSION
    assert datetime.fromisoformat(result.calculated_at).tzinfo is not None


def test_percentages_use_combined_grand_total() -> None:
    materials = [_build_material("Barley malt", 6.0), _build_material("Glass bottle", 4.0)]
    sites = [_build_site(100.0, 10.0, scope1=1.0, scope2=1.0)]

    result = _orchestrator().aggregate(materials, sites)

    assert result.total_climate == pytest.approx(20.0)
    percentages = [entry.percentage for entry in (*result.top_materials, *result.top_facilities)]
    assert sum(percentages) == pytest.approx(100.0)
    assert result.top_facilities[0].percentage == pytest.approx(50.0)
    assert result.top_materials[0].percentage == pytest.approx(30.0)
    assert result.top_materials[0].is_significant is True
    assert result.top_materials[0].is_dominant is False


def test_materials_portion_matches_entries() -> None:
    materials = [
        _build_material("Barley malt", 2.0, quantity=300.0, transport_climate=0.25),
        _build_material("Label", 0.1, quantity=1.0),
    ]

    result = _orchestrator().aggregate(materials, [_build_site(100.0, 1.0, scope1=1.0)])

    material_portion = result.by_scope["scope3"]
    assert sum(entry.climate for entry in result.top_materials) == pytest.approx(material_portion)
    assert result.total_climate == pytest.approx(material_portion + 1.0)


def test_finalize_with_zero_total_reports_zero_percentages() -> None:
    entries = [MaterialContribution(name="A", climate=0.0, category="ingredient")]

    finalized = finalize_contributions(entries, 0.0)

    assert [entry.percentage for entry in finalized] == [0.0]
    assert finalized[0].is_significant is False


def test_finalize_sorts_by_absolute_value_and_truncates() -> None:
    entries = [
        MaterialContribution(name="small", climate=1.0, category="ingredient"),
        MaterialContribution(name="credit", climate=-6.0, category="packaging"),
        MaterialContribution(name="large", climate=5.0, category="ingredient"),
    ]

    finalized = finalize_contributions(entries, 10.0, limit=2)

    assert [entry.name for entry in finalized] == ["credit", "large"]
    assert finalized[0].percentage == pytest.approx(-60.0)


def test_top_contributor_limit() -> None:
    result = _orchestrator(top_contributor_limit=2).aggregate(_five_materials())

    assert [entry.name for entry in result.top_materials] == ["Barley malt", "Hops"]
    assert result.total_climate == pytest.approx(100.0)


def test_parallel_passes_match_sequential() -> None:
    materials = _five_materials()
    sites = [_build_site(60.0, 2.0, scope1=3.0, scope2=1.0, facility_id="a"), _build_site(40.0, 5.0, scope2=1.0, facility_id="b")]

    sequential = _orchestrator().aggregate(materials, sites)
    parallel = _orchestrator(parallel_accumulation=True, max_concurrency=4).aggregate(materials, sites)

    assert parallel.totals == sequential.totals
    assert parallel.by_scope == sequential.by_scope
    assert [entry.name for entry in parallel.top_facilities] == [entry.name for entry in sequential.top_facilities]


def test_maturation_reported_but_not_folded_by_default() -> None:
    profile = _build_profile(product_volume_litres=0.7)

    result = _orchestrator().aggregate([_build_material("Barley malt", 1.0)], [], profile)

    assert result.maturation is not None
    assert result.maturation.angel_share_voc_kg > 0
    assert result.total_climate == pytest.approx(1.0)


def test_maturation_folded_per_functional_unit() -> None:
    profile = _build_profile(product_volume_litres=0.7, warehouse_energy_source="renewable")

    result = _orchestrator(fold_maturation_into_totals=True).aggregate([], [], profile)

    expected = result.maturation.total_maturation_co2e_per_litre_output * 0.7
    assert expected > 0
    assert result.total_climate == pytest.approx(expected)
    assert result.by_scope["scope3"] == pytest.approx(expected)
    assert result.by_lifecycle_stage["processing"] == pytest.approx(expected)
    assert result.total_climate < result.maturation.angel_share_voc_kg


def test_maturation_without_product_volume_is_not_folded() -> None:
    result = _orchestrator(fold_maturation_into_totals=True).aggregate([], [], _build_profile())

    assert result.total_climate == 0
    assert any("global-average grid factor" in note for note in result.notes)


def test_unsplit_facility_emissions_fall_back_to_scope3() -> None:
    result = _orchestrator().aggregate([], [_build_site(100.0, 4.0)])

    assert result.total_climate == pytest.approx(4.0)
    assert result.by_scope["scope1"] == 0
    assert result.by_scope["scope2"] == 0
    assert result.by_scope["scope3"] == pytest.approx(4.0)
    assert any("scope 3" in note for note in result.notes)


def test_ghg_reconciliation_attributes_gap_to_fossil() -> None:
    material = _build_material("Barley malt", 10.0, ghg_split=GhgSplit(fossil=1.0))

    result = _orchestrator().aggregate([material])

    n2o_co2e = 10.0 * 0.005
    assert result.by_ghg["co2_fossil"] == pytest.approx(10.0 - n2o_co2e)
    assert any("fossil CO2" in note for note in result.notes)


def test_allocation_share_note() -> None:
    result = _orchestrator().aggregate([], [_build_site(60.0, 1.0, scope1=1.0)])

    assert result.allocation_validation.status == "under_allocated"
    assert any("60.00%" in note for note in result.notes)


def test_contributions_above_hundred_percent_are_annotated() -> None:
    class FixedAccumulator:
        def accumulate(self, materials) -> MaterialAccumulation:
            accumulation = MaterialAccumulation()
            accumulation.totals["climate"] = 80.0
            accumulation.by_scope["scope3"] = 80.0
            accumulation.by_ghg["co2_fossil"] = 80.0
            accumulation.contributions = [
                MaterialContribution(name="Glass bottle", climate=100.0, category="packaging"),
                MaterialContribution(name="Recycling credit", climate=-20.0, category="packaging"),
            ]
            return accumulation

    orchestrator = ImpactAggregationOrchestrator(Settings(), accumulator=FixedAccumulator())
    result = orchestrator.aggregate([])

    assert result.top_materials[0].percentage == pytest.approx(125.0)
    assert result.top_materials[1].percentage == pytest.approx(-25.0)
    assert any("exceed 100%" in note for note in result.notes)


def test_aggregate_entity_facade() -> None:
    result = aggregate_entity([_build_material("Barley malt", 3.0)], settings=Settings())

    assert result.total_climate == pytest.approx(3.0)
    payload = result.as_dict()
    assert payload["totals"]["climate"] == pytest.approx(3.0)
    assert payload["top_materials"][0]["name"] == "Barley malt"


def test_percentages_cover_every_material_by_default() -> None:
    materials = [_build_material(f"Botanical {index}", 1.0) for index in range(12)]

    result = _orchestrator().aggregate(materials)

    assert len(result.top_materials) == 12
    assert sum(entry.percentage for entry in result.top_materials) == pytest.approx(100.0)


def test_end_of_life_burden_stays_in_material_breakdown() -> None:
    materials = [
        _build_material("Glass bottle", 1.0, quantity=2.0),
        _build_material("Barley malt", 1.0, quantity=2.0),
    ]

    result = _orchestrator(include_end_of_life=True).aggregate(materials)

    assert result.total_climate == pytest.approx(2.03)
    assert sum(entry.climate for entry in result.top_materials) == pytest.approx(result.by_scope["scope3"])
    assert sum(entry.percentage for entry in result.top_materials) == pytest.approx(100.0)
    bottle = next(entry for entry in result.top_materials if entry.name == "Glass bottle")
    assert bottle.climate == pytest.approx(1.03)


def test_folded_maturation_appears_in_breakdown() -> None:
    profile = _build_profile(product_volume_litres=0.7)

    result = _orchestrator(fold_maturation_into_totals=True).aggregate(
        [_build_material("Barley malt", 1.0)], [], profile
    )

    maturation_entry = next(entry for entry in result.top_materials if entry.name == "Maturation")
    assert maturation_entry.category == "maturation"
    assert maturation_entry.climate == pytest.approx(result.total_climate - 1.0)
    assert sum(entry.percentage for entry in result.top_materials) == pytest.approx(100.0)
    assert result.materials_count == 1


def test_contract_manufacturer_water_and_waste_reach_totals() -> None:
    owned = _build_site(
        60.0,
        0.0,
        scope1=1.0,
        scope2=1.0,
        facility_id="owned",
        allocated_emissions=500.0,
        production_volume=100.0,
        allocated_water_litres=1000.0,
        allocated_waste_kg=20.0,
    )
    contract = _build_site(
        40.0,
        0.0,
        facility_id="contract",
        source="contract_manufacturer",
        allocated_emissions=2.0,
        allocated_water_litres=3.0,
    )
    material = _build_material("Barley malt", 1.0, impacts=ImpactValues(climate=1.0, water=2.0, waste=0.1))

    result = _orchestrator().aggregate([material], [owned, contract])

    assert result.by_scope["scope1"] == pytest.approx(1.5)
    assert result.by_scope["scope2"] == pytest.approx(1.5)
    assert result.by_scope["scope3"] == pytest.approx(1.0 + 0.8)
    assert result.total_climate == pytest.approx(1.0 + 3.0 + 0.8)
    assert result.totals["water"] == pytest.approx(2.0 + 6.0 + 1.2)
    assert result.totals["waste"] == pytest.approx(0.1 + 0.12)
    percentages = [entry.percentage for entry in (*result.top_materials, *result.top_facilities)]
    assert sum(percentages) == pytest.approx(100.0)
