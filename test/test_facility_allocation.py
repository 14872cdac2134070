"""Unit tests for facility emission allocation."""

from __future__ import annotations

from typing import Any

import pytest

from lca_impact_engine.allocation import FacilityAllocationEngine
from lca_impact_engine.core.config import Settings
from lca_impact_engine.core.models import FacilityMetrics, ProductionSiteAllocation

SETTINGS = Settings(reference_year=2026)


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


def test_half_share_allocation_splits_by_facility_scope_ratio() -> None:
    outcome = FacilityAllocationEngine(SETTINGS).allocate(
        [_build_site(50.0, 10.0, scope1=6.0, scope2=4.0)],
        functional_unit_quantity=1.0,
    )

    assert outcome.climate_total == pytest.approx(5.0)
    assert outcome.scope1 == pytest.approx(3.0)
    assert outcome.scope2 == pytest.approx(2.0)
    entry = outcome.contributions[0]
    assert entry.allocated_emissions == pytest.approx(5.0)
    assert (entry.scope1, entry.scope2) == (pytest.approx(3.0), pytest.approx(2.0))
    assert entry.percentage == 0.0


def test_allocation_scales_linearly() -> None:
    engine = FacilityAllocationEngine(SETTINGS)
    base = engine.allocate([_build_site(50.0, 10.0, scope1=1.0)], functional_unit_quantity=1.0)
    doubled_quantity = engine.allocate([_build_site(50.0, 10.0, scope1=1.0)], functional_unit_quantity=2.0)
    halved_share = engine.allocate([_build_site(25.0, 10.0, scope1=1.0)], functional_unit_quantity=1.0)

    assert doubled_quantity.climate_total == pytest.approx(2 * base.climate_total)
    assert halved_share.climate_total == pytest.approx(base.climate_total / 2)


def test_default_functional_unit_comes_from_settings() -> None:
    outcome = FacilityAllocationEngine(Settings(functional_unit_quantity=3.0)).allocate(
        [_build_site(100.0, 2.0, scope2=1.0)]
    )

    assert outcome.climate_total == pytest.approx(6.0)
    assert outcome.scope2 == pytest.approx(6.0)


def test_zero_share_zero_intensity_and_missing_facility_contribute_nothing() -> None:
    allocations = [
        _build_site(0.0, 10.0, facility_id="idle"),
        _build_site(40.0, 0.0, facility_id="unmetered"),
        ProductionSiteAllocation(share_pct=30.0, facility=None, allocation_id="orphan"),
    ]

    outcome = FacilityAllocationEngine(SETTINGS).allocate(allocations)

    assert outcome.climate_total == 0
    assert outcome.scope1 == 0
    assert outcome.scope2 == 0
    assert outcome.contributions == []
    assert outcome.skipped == 3
    assert outcome.sites_count == 3


def test_facility_without_scope_totals_stays_unsplit() -> None:
    outcome = FacilityAllocationEngine(SETTINGS).allocate([_build_site(50.0, 10.0)])

    assert outcome.climate_total == pytest.approx(5.0)
    assert outcome.scope1 == 0
    assert outcome.scope2 == 0
    assert outcome.unsplit == pytest.approx(5.0)


def test_contributions_sorted_descending_and_stable() -> None:
    allocations = [
        _build_site(20.0, 10.0, scope1=1.0, facility_id="small-a"),
        _build_site(60.0, 10.0, scope1=1.0, facility_id="large"),
        _build_site(20.0, 10.0, scope1=1.0, facility_id="small-b"),
    ]

    outcome = FacilityAllocationEngine(SETTINGS).allocate(allocations)

    assert [entry.facility_id for entry in outcome.contributions] == ["large", "small-a", "small-b"]


def test_display_name_prefers_facility_name() -> None:
    outcome = FacilityAllocationEngine(SETTINGS).allocate(
        [_build_site(100.0, 1.0, scope1=1.0, facility_id="fac-9", name="Speyside Distillery")]
    )

    assert outcome.contributions[0].name == "Speyside Distillery"


@pytest.mark.parametrize(
    ("shares", "status"),
    [
        ([60.0, 40.0], "ok"),
        ([60.0, 39.5], "ok"),
        ([60.0], "under_allocated"),
        ([70.0, 40.0], "over_allocated"),
        ([], "empty"),
    ],
)
def test_share_sum_validation(shares, status) -> None:
    allocations = [_build_site(share, 1.0, scope1=1.0, facility_id=f"f{index}") for index, share in enumerate(shares)]

    validation = FacilityAllocationEngine(SETTINGS).allocate(allocations).validation

    assert validation.status == status
    assert validation.total_share_pct == pytest.approx(sum(shares))
    assert validation.tolerance_pct == SETTINGS.allocation_tolerance_pct


def test_split_by_scope_helper() -> None:
    assert FacilityAllocationEngine.split_by_scope(10.0, 1.0, 3.0) == (pytest.approx(2.5), pytest.approx(7.5))
    assert FacilityAllocationEngine.split_by_scope(10.0, 0.0, 0.0) == (0.0, 0.0)
    assert FacilityAllocationEngine.split_by_scope(10.0, 5.0, -1.0) == (pytest.approx(10.0), pytest.approx(0.0))


def test_contract_manufacturer_is_booked_to_scope_three() -> None:
    site = _build_site(
        50.0,
        0.0,
        scope1=5.0,
        scope2=5.0,
        facility_id="bottler",
        source="Contract_Manufacturer",
        allocated_emissions=4.0,
    )

    outcome = FacilityAllocationEngine(SETTINGS).allocate([site], functional_unit_quantity=1.0)

    assert outcome.climate_total == pytest.approx(2.0)
    assert outcome.scope3 == pytest.approx(2.0)
    assert (outcome.scope1, outcome.scope2, outcome.unsplit) == (0.0, 0.0, 0.0)
    assert outcome.contributions[0].scope3 == pytest.approx(2.0)


def test_intensity_falls_back_to_emissions_per_production_volume() -> None:
    site = _build_site(100.0, 0.0, scope1=1.0, allocated_emissions=1000.0, production_volume=500.0)

    outcome = FacilityAllocationEngine(SETTINGS).allocate([site], functional_unit_quantity=1.0)

    assert outcome.climate_total == pytest.approx(2.0)
    assert outcome.scope1 == pytest.approx(2.0)


def test_owned_site_without_volume_or_intensity_is_skipped() -> None:
    site = _build_site(100.0, 0.0, scope1=1.0, allocated_emissions=1000.0)

    outcome = FacilityAllocationEngine(SETTINGS).allocate([site])

    assert outcome.climate_total == 0
    assert outcome.skipped == 1


def test_explicit_intensity_wins_over_allocated_emissions() -> None:
    facility = FacilityMetrics(
        facility_id="fac-1",
        emission_intensity=3.0,
        allocated_emissions=1000.0,
        production_volume=10.0,
    )

    assert FacilityAllocationEngine.resolve_intensity(facility) == 3.0


def test_water_and_waste_are_allocated_by_share() -> None:
    owned = _build_site(
        50.0,
        1.0,
        scope1=1.0,
        facility_id="owned",
        production_volume=100.0,
        allocated_water_litres=1000.0,
        allocated_waste_kg=50.0,
    )
    contract = _build_site(
        50.0,
        1.0,
        facility_id="contract",
        source="contract_manufacturer",
        allocated_water_litres=3.0,
        allocated_waste_kg=0.2,
    )

    outcome = FacilityAllocationEngine(SETTINGS).allocate([owned, contract], functional_unit_quantity=2.0)

    assert outcome.water == pytest.approx(2.0 * 0.5 * 10.0 + 2.0 * 0.5 * 3.0)
    assert outcome.waste == pytest.approx(2.0 * 0.5 * 0.5 + 2.0 * 0.5 * 0.2)


def test_facility_metrics_read_contract_manufacturer_columns() -> None:
    facility = FacilityMetrics.from_mapping(
        {
            "facility_id": "cm-7",
            "source": "contract_manufacturer",
            "allocated_emissions_kg_co2e": "1.25",
            "production_volume": 400,
            "allocated_water_litres": "12",
            "allocated_waste_kg": None,
        }
    )

    assert facility.is_contract_manufacturer is True
    assert facility.allocated_emissions == pytest.approx(1.25)
    assert facility.production_volume == 400.0
    assert facility.allocated_water_litres == 12.0
    assert facility.allocated_waste_kg == 0.0
