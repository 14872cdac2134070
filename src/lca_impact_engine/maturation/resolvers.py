"""Override → keyed default → fallback cascades for maturation parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from lca_impact_engine.core.coercion import coerce_float, coerce_int
from lca_impact_engine.core.grid import GridFactor, resolve_grid_factor
from lca_impact_engine.core.models import MaturationProfile
from lca_impact_engine.core.reference_data import ReferenceTables
from lca_impact_engine.core.resolvers import Resolver

GridLookup = Callable[[str | None, ReferenceTables], GridFactor]


@dataclass(slots=True, frozen=True)
class MaturationContext:
    profile: MaturationProfile
    tables: ReferenceTables
    grid_lookup: GridLookup = resolve_grid_factor


# Barrel burden per barrel (kg CO2e)


def reconditioned_barrel_burden(context: MaturationContext) -> float | None:
    """Reused barrels carry only the reconditioning burden (cut-off allocation)."""
    if coerce_int(context.profile.barrel_use_number, 1) >= 2:
        return context.tables.barrel_reconditioning_kg
    return None


def override_barrel_burden(context: MaturationContext) -> float | None:
    override = context.profile.barrel_co2e_override
    if override is None:
        return None
    return max(0.0, coerce_float(override))


def barrel_type_burden(context: MaturationContext) -> float | None:
    return context.tables.barrel_burden_kg.get(context.profile.barrel_type)


def fallback_barrel_burden(context: MaturationContext) -> float:
    return context.tables.barrel_burden_fallback_kg


BARREL_BURDEN_RESOLVERS: tuple[Resolver[MaturationContext, float], ...] = (
    reconditioned_barrel_burden,
    override_barrel_burden,
    barrel_type_burden,
    fallback_barrel_burden,
)


# Annual angel's share (% per year)


def explicit_loss_rate(context: MaturationContext) -> float | None:
    rate = context.profile.angel_share_pct_per_year
    if rate is None:
        return None
    return coerce_float(rate)


def climate_zone_loss_rate(context: MaturationContext) -> float | None:
    zone = (context.profile.climate_zone or "").strip().lower()
    return context.tables.angel_share_pct_by_zone.get(zone)


def no_loss_rate(context: MaturationContext) -> float:
    return 0.0


LOSS_RATE_RESOLVERS: tuple[Resolver[MaturationContext, float], ...] = (
    explicit_loss_rate,
    climate_zone_loss_rate,
    no_loss_rate,
)


# Warehouse energy emission factor (kg CO2e per kWh)


def fixed_source_factor(context: MaturationContext) -> GridFactor | None:
    source = (context.profile.warehouse_energy_source or "").strip().lower()
    factor = context.tables.energy_source_factors.get(source)
    if factor is None:
        return None
    return GridFactor(factor=factor, source=source, is_estimated=False)


def grid_electricity_factor(context: MaturationContext) -> GridFactor:
    return context.grid_lookup(context.profile.country_code, context.tables)


ENERGY_FACTOR_RESOLVERS: tuple[Resolver[MaturationContext, GridFactor], ...] = (
    fixed_source_factor,
    grid_electricity_factor,
)
