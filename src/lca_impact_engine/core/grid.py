"""Country-aware electricity grid emission factor lookup."""

from __future__ import annotations

from dataclasses import dataclass

from .logging import get_logger
from .reference_data import ReferenceTables

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class GridFactor:
    factor: float
    source: str
    is_estimated: bool


def resolve_grid_factor(country_code: str | None, tables: ReferenceTables) -> GridFactor:
    """Return the grid factor for ``country_code``, or the global average when unknown.

    The fallback is always the documented global average; another country's
    factor is never substituted.
    """
    normalized = (country_code or "").strip().upper()
    if normalized:
        factor = tables.grid_factors.get(normalized)
        if factor is not None:
            return GridFactor(factor=factor, source=f"Grid factor {normalized}", is_estimated=False)
    LOGGER.warning(
        "grid_factor.fallback",
        country_code=normalized or None,
        factor=tables.global_grid_factor,
        source=tables.global_grid_source,
    )
    return GridFactor(
        factor=tables.global_grid_factor,
        source=tables.global_grid_source,
        is_estimated=True,
    )
