"""Immutable reference tables injected into the engine at construction time."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .coercion import coerce_float
from .exceptions import ReferenceDataError


def _frozen(data: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(data))


DEFAULT_PACKAGING_KEYWORDS: tuple[str, ...] = (
    "bottle",
    "glass",
    "label",
    "cap",
    "caps",
    "closure",
    "capsule",
    "cork",
    "box",
    "carton",
    "cardboard",
    "divider",
    "tape",
    "wrapper",
    "shrink",
    "sleeve",
    "pouch",
    "can",
    "jar",
    "container",
    "lid",
    "seal",
    "foil",
    "film",
    "bag",
    "case",
    "crate",
    "pallet",
    "tray",
    "insert",
)

# Pedigree variance contributions per dimension and score (Frischknecht et al. 2007).
DEFAULT_PEDIGREE_VARIANCE: dict[str, dict[int, float]] = {
    "reliability": {1: 0.0, 2: 0.0006, 3: 0.002, 4: 0.008, 5: 0.04},
    "completeness": {1: 0.0, 2: 0.0001, 3: 0.0006, 4: 0.002, 5: 0.008},
    "temporal": {1: 0.0, 2: 0.0002, 3: 0.002, 4: 0.008, 5: 0.04},
    "geographical": {1: 0.0, 2: 0.000025, 3: 0.0001, 4: 0.0006, 5: 0.002},
    "technological": {1: 0.0, 2: 0.0006, 3: 0.008, 4: 0.04, 5: 0.12},
}


@dataclass(slots=True, frozen=True)
class ReferenceTables:
    """Lookup tables and characterisation constants used by the calculators."""

    barrel_burden_kg: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {"american_oak_200": 40.0, "french_oak_225": 55.0, "american_oak_500": 65.0}
        )
    )
    barrel_burden_fallback_kg: float = 40.0
    barrel_reconditioning_kg: float = 0.5
    angel_share_pct_by_zone: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"temperate": 2.0, "continental": 5.0, "tropical": 12.0})
    )
    fill_strength_abv: float = 0.63
    ethanol_density_kg_per_litre: float = 0.789
    ethanol_pocp: float = 0.40
    energy_source_factors: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"renewable": 0.0, "natural_gas": 0.183, "mixed": 0.120})
    )
    grid_factors: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {
                "GB": 0.207,
                "FR": 0.052,
                "DE": 0.380,
                "US": 0.386,
                "IN": 0.708,
                "SE": 0.013,
                "NO": 0.017,
            }
        )
    )
    global_grid_factor: float = 0.490
    global_grid_source: str = "IEA 2023 global average"
    gwp100: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"co2": 1.0, "ch4": 27.9, "n2o": 273.0})
    )
    biogenic_ch4_fraction: float = 0.02
    biogenic_n2o_fraction: float = 0.01
    agricultural_n2o_fraction: float = 0.005
    packaging_keywords: tuple[str, ...] = DEFAULT_PACKAGING_KEYWORDS
    tier_weights: Mapping[int, int] = field(default_factory=lambda: _frozen({1: 95, 2: 85, 3: 70}))
    tier_pedigree_score: Mapping[int, int] = field(default_factory=lambda: _frozen({1: 2, 2: 3, 3: 4}))
    pedigree_variance: Mapping[str, Mapping[int, float]] = field(
        default_factory=lambda: _frozen(
            {dimension: _frozen(scores) for dimension, scores in DEFAULT_PEDIGREE_VARIANCE.items()}
        )
    )
    basic_material_uncertainty: float = 0.10
    eol_landfill_rate: float = 0.30
    eol_landfill_factor: float = 0.05


_MAPPING_FIELDS = {
    "barrel_burden_kg",
    "angel_share_pct_by_zone",
    "energy_source_factors",
    "grid_factors",
    "gwp100",
}
_INT_KEYED_FIELDS = {"tier_weights", "tier_pedigree_score"}


def load_reference_tables(path: Path | None = None, *, base: ReferenceTables | None = None) -> ReferenceTables:
    """Return reference tables with overrides from a TOML file applied on top of ``base``."""
    tables = base or ReferenceTables()
    if path is None or not path.exists():
        return tables
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ReferenceDataError(f"Invalid reference table file: {path}") from exc
    section = data.get("reference_tables", data)
    if not isinstance(section, dict):
        raise ReferenceDataError("`reference_tables` must be a table")
    return apply_overrides(tables, section)


def apply_overrides(tables: ReferenceTables, overrides: Mapping[str, Any]) -> ReferenceTables:
    known = {item.name for item in fields(ReferenceTables)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ReferenceDataError(f"Unknown reference table `{key}`")
        if key in _MAPPING_FIELDS:
            merged = dict(getattr(tables, key))
            merged.update({str(name): coerce_float(number) for name, number in _as_table(key, value).items()})
            changes[key] = _frozen(merged)
        elif key in _INT_KEYED_FIELDS:
            merged = dict(getattr(tables, key))
            merged.update({int(tier): int(coerce_float(number)) for tier, number in _as_table(key, value).items()})
            changes[key] = _frozen(merged)
        elif key == "pedigree_variance":
            merged_variance = {dimension: dict(scores) for dimension, scores in tables.pedigree_variance.items()}
            for dimension, scores in _as_table(key, value).items():
                merged_variance.setdefault(dimension, {}).update(
                    {int(score): coerce_float(variance) for score, variance in _as_table(key, scores).items()}
                )
            changes[key] = _frozen({dimension: _frozen(scores) for dimension, scores in merged_variance.items()})
        elif key == "packaging_keywords":
            if not isinstance(value, (list, tuple)):
                raise ReferenceDataError("`packaging_keywords` must be a list of strings")
            changes[key] = tuple(str(item).strip().lower() for item in value if str(item).strip())
        elif key == "global_grid_source":
            changes[key] = str(value)
        else:
            changes[key] = coerce_float(value, getattr(tables, key))
    return replace(tables, **changes)


def _as_table(key: str, value: Any) -> Mapping[Any, Any]:
    if not isinstance(value, Mapping):
        raise ReferenceDataError(f"`{key}` override must be a table")
    return value
