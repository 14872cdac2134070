"""Allocation of facility emissions to the assessed product by production share."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from lca_impact_engine.core.coercion import coerce_float
from lca_impact_engine.core.config import Settings, get_settings
from lca_impact_engine.core.logging import get_logger
from lca_impact_engine.core.models import (
    AllocationValidation,
    FacilityContribution,
    FacilityMetrics,
    ProductionSiteAllocation,
)

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class FacilityAllocationOutcome:
    """Raw allocation totals; percentages are left for the orchestrator."""

    climate_total: float = 0.0
    scope1: float = 0.0
    scope2: float = 0.0
    scope3: float = 0.0
    unsplit: float = 0.0
    water: float = 0.0
    waste: float = 0.0
    contributions: list[FacilityContribution] = field(default_factory=list)
    validation: AllocationValidation = field(default_factory=AllocationValidation)
    sites_count: int = 0
    skipped: int = 0


class FacilityAllocationEngine:
    """Allocates facility emissions, water and waste using volume share and emission intensity.

    Owned sites are split into scope 1 and scope 2 by the facility's own ratio;
    contract-manufacturer sites are booked entirely to scope 3.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def allocate(
        self,
        allocations: Iterable[ProductionSiteAllocation],
        functional_unit_quantity: float | None = None,
    ) -> FacilityAllocationOutcome:
        if functional_unit_quantity is None:
            quantity = self._settings.functional_unit_quantity
        else:
            quantity = coerce_float(functional_unit_quantity)
        outcome = FacilityAllocationOutcome()
        shares: dict[str, float] = {}

        for index, allocation in enumerate(allocations):
            outcome.sites_count += 1
            share = coerce_float(allocation.share_pct)
            key = self._allocation_key(allocation, index)
            shares[key] = share

            facility = allocation.facility
            intensity = self.resolve_intensity(facility) if facility else 0.0
            if share <= 0 or facility is None or intensity <= 0:
                outcome.skipped += 1
                LOGGER.debug(
                    "allocation.site_skipped",
                    allocation=key,
                    share=share,
                    has_facility=facility is not None,
                    intensity=intensity,
                )
                continue

            attributed = quantity * (share / 100.0)
            allocated = attributed * intensity
            if allocated <= 0:
                outcome.skipped += 1
                continue

            if facility.is_contract_manufacturer:
                scope1, scope2, scope3 = 0.0, 0.0, allocated
            else:
                scope1, scope2 = self.split_by_scope(
                    allocated,
                    coerce_float(facility.scope1_total),
                    coerce_float(facility.scope2_total),
                )
                scope3 = 0.0
                if scope1 == 0 and scope2 == 0:
                    outcome.unsplit += allocated
            outcome.climate_total += allocated
            outcome.scope1 += scope1
            outcome.scope2 += scope2
            outcome.scope3 += scope3
            outcome.water += attributed * self._per_unit(facility, facility.allocated_water_litres)
            outcome.waste += attributed * self._per_unit(facility, facility.allocated_waste_kg)
            outcome.contributions.append(
                FacilityContribution(
                    name=facility.display_name,
                    allocated_emissions=allocated,
                    scope1=scope1,
                    scope2=scope2,
                    scope3=scope3,
                    facility_id=facility.facility_id,
                    share_pct=share,
                )
            )
            LOGGER.info(
                "allocation.site_allocated",
                facility=facility.facility_id,
                share=share,
                allocated=allocated,
                scope1=scope1,
                scope2=scope2,
                scope3=scope3,
                contract_manufacturer=facility.is_contract_manufacturer,
            )

        # sorted() is stable, so equal allocations keep their input order.
        outcome.contributions = sorted(
            outcome.contributions,
            key=lambda entry: entry.allocated_emissions,
            reverse=True,
        )
        outcome.validation = self.validate_shares(shares)
        return outcome

    @staticmethod
    def resolve_intensity(facility: FacilityMetrics) -> float:
        """Per-unit emission intensity of ``facility``.

        An explicit intensity wins. Otherwise contract-manufacturer allocated
        emissions are used as given and owned-site allocated emissions are
        divided by the production volume.
        """
        intensity = coerce_float(facility.emission_intensity)
        if intensity > 0:
            return intensity
        allocated = coerce_float(facility.allocated_emissions)
        if allocated <= 0:
            return 0.0
        if facility.is_contract_manufacturer:
            return allocated
        volume = coerce_float(facility.production_volume)
        return allocated / volume if volume > 0 else 0.0

    @staticmethod
    def _per_unit(facility: FacilityMetrics, amount: float) -> float:
        amount = max(0.0, coerce_float(amount))
        volume = coerce_float(facility.production_volume)
        if facility.is_contract_manufacturer or volume <= 0:
            return amount
        return amount / volume

    @staticmethod
    def split_by_scope(allocated: float, scope1_total: float, scope2_total: float) -> tuple[float, float]:
        """Split ``allocated`` by the facility's own scope 1 : scope 2 ratio.

        When the facility records no scope totals the amount stays unsplit and
        both portions are zero.
        """
        scope1_total = max(0.0, scope1_total)
        scope2_total = max(0.0, scope2_total)
        combined = scope1_total + scope2_total
        if combined <= 0:
            return 0.0, 0.0
        scope1 = allocated * scope1_total / combined
        return scope1, allocated - scope1

    def validate_shares(self, shares: dict[str, float]) -> AllocationValidation:
        tolerance = self._settings.allocation_tolerance_pct
        if not shares:
            return AllocationValidation(total_share_pct=0.0, status="empty", tolerance_pct=tolerance)
        total = sum(shares.values())
        if total < 100.0 - tolerance:
            status = "under_allocated"
        elif total > 100.0 + tolerance:
            status = "over_allocated"
        else:
            status = "ok"
        if status != "ok":
            LOGGER.warning(
                "allocation.share_sum_out_of_tolerance",
                total_share=round(total, 4),
                status=status,
                tolerance=tolerance,
            )
        return AllocationValidation(
            total_share_pct=total,
            status=status,
            tolerance_pct=tolerance,
            shares=dict(shares),
        )

    @staticmethod
    def _allocation_key(allocation: ProductionSiteAllocation, index: int) -> str:
        if allocation.allocation_id:
            return allocation.allocation_id
        if allocation.facility is not None:
            return allocation.facility.facility_id
        return f"allocation-{index + 1}"
