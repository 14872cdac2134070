"""Barrel-ageing impacts: barrel allocation, angel's share and warehouse energy."""

from __future__ import annotations

from typing import Sequence

from lca_impact_engine.core.coercion import coerce_float, coerce_int
from lca_impact_engine.core.config import Settings, get_settings
from lca_impact_engine.core.grid import GridFactor, resolve_grid_factor
from lca_impact_engine.core.logging import get_logger
from lca_impact_engine.core.models import MaturationImpact, MaturationProfile
from lca_impact_engine.core.reference_data import ReferenceTables
from lca_impact_engine.core.resolvers import Resolver, resolve_cascade

from .resolvers import (
    BARREL_BURDEN_RESOLVERS,
    ENERGY_FACTOR_RESOLVERS,
    LOSS_RATE_RESOLVERS,
    GridLookup,
    MaturationContext,
)

LOGGER = get_logger(__name__)


class MaturationCalculator:
    """Computes maturation CO2e and the separately reported ozone-formation figures.

    ``total_maturation_co2e`` is barrel plus warehouse only. Evaporated ethanol
    is characterised as VOC and photochemical ozone, which stay on their own
    impact axis.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        tables: ReferenceTables | None = None,
        grid_lookup: GridLookup = resolve_grid_factor,
        barrel_resolvers: Sequence[Resolver[MaturationContext, float]] | None = None,
        loss_rate_resolvers: Sequence[Resolver[MaturationContext, float]] | None = None,
        energy_resolvers: Sequence[Resolver[MaturationContext, GridFactor]] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._tables = tables or ReferenceTables()
        self._grid_lookup = grid_lookup
        self._barrel_resolvers = tuple(barrel_resolvers or BARREL_BURDEN_RESOLVERS)
        self._loss_rate_resolvers = tuple(loss_rate_resolvers or LOSS_RATE_RESOLVERS)
        self._energy_resolvers = tuple(energy_resolvers or ENERGY_FACTOR_RESOLVERS)

    def calculate(self, profile: MaturationProfile) -> MaturationImpact:
        context = MaturationContext(profile=profile, tables=self._tables, grid_lookup=self._grid_lookup)
        barrels = max(0, coerce_int(profile.number_of_barrels))
        fill_per_barrel = max(0.0, coerce_float(profile.fill_volume_litres))
        total_fill = fill_per_barrel * barrels
        years = max(0.0, profile.aging_years)

        # Barrel allocation (cut-off)
        burden_per_barrel = resolve_cascade(self._barrel_resolvers, context)
        barrel_total = burden_per_barrel * barrels
        barrel_per_litre = barrel_total / total_fill if total_fill > 0 else 0.0

        # Angel's share
        annual_rate = min(100.0, max(0.0, resolve_cascade(self._loss_rate_resolvers, context)))
        retention = (1.0 - annual_rate / 100.0) ** years
        output_volume = total_fill * retention
        lost_volume = total_fill - output_volume
        voc_kg = lost_volume * self._tables.fill_strength_abv * self._tables.ethanol_density_kg_per_litre
        ozone = voc_kg * self._tables.ethanol_pocp

        # Warehouse energy
        energy_factor = resolve_cascade(self._energy_resolvers, context)
        energy_kwh = max(0.0, coerce_float(profile.warehouse_energy_kwh_per_barrel_year)) * barrels * years
        warehouse_total = energy_kwh * energy_factor.factor
        warehouse_per_litre = warehouse_total / total_fill if total_fill > 0 else 0.0

        total = barrel_total + warehouse_total
        per_litre_output = total / output_volume if output_volume > 0 else 0.0

        impact = MaturationImpact(
            barrel_total_co2e=barrel_total,
            barrel_co2e_per_litre=barrel_per_litre,
            warehouse_co2e_total=warehouse_total,
            warehouse_co2e_per_litre=warehouse_per_litre,
            output_volume_litres=output_volume,
            volume_loss_factor=retention,
            angel_share_loss_percent_total=(1.0 - retention) * 100.0,
            angel_share_volume_loss_litres=lost_volume,
            angel_share_voc_kg=voc_kg,
            angel_share_photochemical_ozone=ozone,
            total_maturation_co2e=total,
            total_maturation_co2e_per_litre_output=per_litre_output,
            grid_factor_estimated=energy_factor.is_estimated,
            methodology_notes=self._methodology_notes(profile, annual_rate, energy_factor, burden_per_barrel),
        )
        LOGGER.info(
            "maturation.calculated",
            barrel_type=profile.barrel_type,
            barrels=barrels,
            years=years,
            barrel_total=barrel_total,
            warehouse_total=warehouse_total,
            retention=retention,
            grid_factor_estimated=energy_factor.is_estimated,
        )
        return impact

    @staticmethod
    def _methodology_notes(
        profile: MaturationProfile,
        annual_rate: float,
        energy_factor: GridFactor,
        burden_per_barrel: float,
    ) -> str:
        months = coerce_float(profile.aging_duration_months)
        months_text = f"{months:g}"
        use_number = coerce_int(profile.barrel_use_number, 1)
        fill_label = "first fill" if use_number < 2 else f"fill #{use_number}, reconditioning only"
        parts = [
            f"Barrel: {profile.barrel_type} ({fill_label}, {burden_per_barrel:g} kg CO2e per barrel)",
            f"Aging: {months_text} months in {profile.climate_zone} climate",
            f"Angel's share: {annual_rate:g}% per year, compounded",
            f"Warehouse energy: {profile.warehouse_energy_source} at {energy_factor.factor:g} kg CO2e/kWh "
            f"({energy_factor.source})",
            "Cut-off allocation (ISO 14044): barrel manufacturing burden charged to first fill",
            "Evaporated ethanol reported as VOC and photochemical ozone, excluded from CO2e",
        ]
        return ". ".join(parts) + "."
