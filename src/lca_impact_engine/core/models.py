"""Shared data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Mapping

from .coercion import coerce_float, coerce_int, coerce_optional_float
from .constants import CONTRACT_MANUFACTURER_SOURCE

IMPACT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "climate": ("climate", "impact_climate"),
    "water": ("water", "impact_water"),
    "water_scarcity": ("water_scarcity", "impact_water_scarcity"),
    "land_use": ("land_use", "impact_land", "land"),
    "terrestrial_ecotoxicity": ("terrestrial_ecotoxicity", "impact_terrestrial_ecotoxicity"),
    "freshwater_eutrophication": ("freshwater_eutrophication", "impact_freshwater_eutrophication"),
    "terrestrial_acidification": ("terrestrial_acidification", "impact_terrestrial_acidification"),
    "fossil_resource_scarcity": ("fossil_resource_scarcity", "impact_fossil_resource_scarcity"),
    "waste": ("waste", "impact_waste"),
}


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True, frozen=True)
class ImpactValues:
    """Per-functional-unit impact values for one inventory record."""

    climate: float = 0.0
    water: float = 0.0
    water_scarcity: float = 0.0
    land_use: float = 0.0
    terrestrial_ecotoxicity: float = 0.0
    freshwater_eutrophication: float = 0.0
    terrestrial_acidification: float = 0.0
    fossil_resource_scarcity: float = 0.0
    waste: float = 0.0

    def value_of(self, category: str) -> float:
        return coerce_float(getattr(self, category, 0.0))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ImpactValues:
        values = {
            name: coerce_float(_first_present(data, *aliases))
            for name, aliases in IMPACT_FIELD_ALIASES.items()
        }
        return cls(**values)


@dataclass(slots=True, frozen=True)
class GhgSplit:
    fossil: float = 0.0
    biogenic: float = 0.0
    land_use_change: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GhgSplit | None:
        fossil = _first_present(data, "fossil", "impact_climate_fossil")
        biogenic = _first_present(data, "biogenic", "impact_climate_biogenic")
        dluc = _first_present(data, "land_use_change", "dluc", "impact_climate_dluc")
        if fossil is None and biogenic is None and dluc is None:
            return None
        return cls(
            fossil=coerce_float(fossil),
            biogenic=coerce_float(biogenic),
            land_use_change=coerce_float(dluc),
        )


@dataclass(slots=True, frozen=True)
class MaterialRecord:
    """One ingredient or packaging component consumed by the assessed product.

    Impact values are already normalised per functional unit; ``quantity`` is
    informational and is never multiplied into them.
    """

    name: str
    quantity: float = 0.0
    unit: str = ""
    impacts: ImpactValues = field(default_factory=ImpactValues)
    category: str | None = None
    ghg_split: GhgSplit | None = None
    transport_climate: float = 0.0
    data_priority: int = 3
    confidence_score: float | None = None
    source_reference: str | None = None
    methodology: str | None = None
    data_year: int | None = None
    uncertainty_pct: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MaterialRecord:
        nested_impacts = data.get("impacts")
        impacts = ImpactValues.from_mapping(nested_impacts if isinstance(nested_impacts, Mapping) else data)
        nested_split = data.get("ghg_split")
        ghg_split = GhgSplit.from_mapping(nested_split if isinstance(nested_split, Mapping) else data)
        data_year = coerce_optional_float(_first_present(data, "data_year", "reference_year"))
        return cls(
            name=str(_first_present(data, "name", "material_name") or "Unnamed material"),
            quantity=coerce_float(data.get("quantity")),
            unit=str(data.get("unit") or ""),
            impacts=impacts,
            category=_optional_text(_first_present(data, "category", "material_type", "category_type")),
            ghg_split=ghg_split,
            transport_climate=coerce_float(_first_present(data, "transport_climate", "impact_transport")),
            data_priority=coerce_int(data.get("data_priority"), 3),
            confidence_score=coerce_optional_float(data.get("confidence_score")),
            source_reference=_optional_text(_first_present(data, "source_reference", "source")),
            methodology=_optional_text(data.get("methodology")),
            data_year=int(data_year) if data_year else None,
            uncertainty_pct=coerce_optional_float(data.get("uncertainty_pct")),
        )


@dataclass(slots=True, frozen=True)
class FacilityMetrics:
    """Snapshot of a facility's emission intensity and own scope totals.

    Contract-manufacturer figures (``source == "contract_manufacturer"``) are
    already per unit; owned-site ``allocated_*`` figures cover the whole
    ``production_volume``.
    """

    facility_id: str
    name: str | None = None
    emission_intensity: float = 0.0
    scope1_total: float = 0.0
    scope2_total: float = 0.0
    country_code: str | None = None
    source: str | None = None
    allocated_emissions: float = 0.0
    production_volume: float = 0.0
    allocated_water_litres: float = 0.0
    allocated_waste_kg: float = 0.0

    @property
    def display_name(self) -> str:
        return self.name or self.facility_id

    @property
    def is_contract_manufacturer(self) -> bool:
        return (self.source or "").strip().lower() == CONTRACT_MANUFACTURER_SOURCE

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FacilityMetrics:
        return cls(
            facility_id=str(_first_present(data, "facility_id", "id") or "unknown"),
            name=_optional_text(_first_present(data, "name", "facility_name")),
            emission_intensity=coerce_float(
                _first_present(data, "emission_intensity", "emission_intensity_kg_co2e_per_unit")
            ),
            scope1_total=coerce_float(_first_present(data, "scope1_total", "scope1_emissions_kg_co2e")),
            scope2_total=coerce_float(_first_present(data, "scope2_total", "scope2_emissions_kg_co2e")),
            country_code=_optional_text(data.get("country_code")),
            source=_optional_text(data.get("source")),
            allocated_emissions=coerce_float(
                _first_present(data, "allocated_emissions", "allocated_emissions_kg_co2e")
            ),
            production_volume=coerce_float(data.get("production_volume")),
            allocated_water_litres=coerce_float(
                _first_present(data, "allocated_water_litres", "allocated_water")
            ),
            allocated_waste_kg=coerce_float(_first_present(data, "allocated_waste_kg", "allocated_waste")),
        )


@dataclass(slots=True, frozen=True)
class ProductionSiteAllocation:
    """Links the assessed entity to a facility and a production-volume share."""

    share_pct: float
    facility: FacilityMetrics | None = None
    allocation_id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProductionSiteAllocation:
        facility_block = data.get("facility")
        facility = FacilityMetrics.from_mapping(facility_block) if isinstance(facility_block, Mapping) else None
        return cls(
            share_pct=coerce_float(_first_present(data, "share_pct", "share_of_production")),
            facility=facility,
            allocation_id=_optional_text(_first_present(data, "allocation_id", "id")),
        )


@dataclass(slots=True, frozen=True)
class MaturationProfile:
    """Barrel-ageing parameters for one assessed entity."""

    barrel_type: str = "american_oak_200"
    barrel_volume_litres: float = 200.0
    barrel_use_number: int = 1
    barrel_co2e_override: float | None = None
    number_of_barrels: int = 1
    fill_volume_litres: float = 200.0
    aging_duration_months: float = 12.0
    climate_zone: str = "temperate"
    angel_share_pct_per_year: float | None = None
    warehouse_energy_kwh_per_barrel_year: float = 15.0
    warehouse_energy_source: str = "grid_electricity"
    country_code: str | None = None
    product_volume_litres: float | None = None

    @property
    def aging_years(self) -> float:
        return coerce_float(self.aging_duration_months) / 12.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MaturationProfile:
        defaults = cls()
        return cls(
            barrel_type=str(data.get("barrel_type") or defaults.barrel_type),
            barrel_volume_litres=coerce_float(data.get("barrel_volume_litres"), defaults.barrel_volume_litres),
            barrel_use_number=coerce_int(data.get("barrel_use_number"), defaults.barrel_use_number),
            barrel_co2e_override=coerce_optional_float(
                _first_present(data, "barrel_co2e_override", "barrel_co2e_new")
            ),
            number_of_barrels=coerce_int(data.get("number_of_barrels"), defaults.number_of_barrels),
            fill_volume_litres=coerce_float(data.get("fill_volume_litres"), defaults.fill_volume_litres),
            aging_duration_months=coerce_float(data.get("aging_duration_months"), defaults.aging_duration_months),
            climate_zone=str(data.get("climate_zone") or defaults.climate_zone),
            angel_share_pct_per_year=coerce_optional_float(
                _first_present(data, "angel_share_pct_per_year", "angel_share_percent_per_year")
            ),
            warehouse_energy_kwh_per_barrel_year=coerce_float(
                data.get("warehouse_energy_kwh_per_barrel_year"),
                defaults.warehouse_energy_kwh_per_barrel_year,
            ),
            warehouse_energy_source=str(data.get("warehouse_energy_source") or defaults.warehouse_energy_source),
            country_code=_optional_text(data.get("country_code")),
            product_volume_litres=coerce_optional_float(data.get("product_volume_litres")),
        )


@dataclass(slots=True)
class MaterialContribution:
    name: str
    climate: float
    category: str
    quantity: float = 0.0
    unit: str = ""
    source: str | None = None
    percentage: float = 0.0
    is_significant: bool = False
    is_dominant: bool = False

    @property
    def contribution_value(self) -> float:
        return self.climate


@dataclass(slots=True)
class FacilityContribution:
    name: str
    allocated_emissions: float
    scope1: float = 0.0
    scope2: float = 0.0
    scope3: float = 0.0
    facility_id: str | None = None
    share_pct: float = 0.0
    percentage: float = 0.0
    is_significant: bool = False
    is_dominant: bool = False

    @property
    def contribution_value(self) -> float:
        return self.allocated_emissions


@dataclass(slots=True)
class QualityFlag:
    severity: Literal["critical", "warning", "info"]
    code: str
    message: str
    affected_materials: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SensitivityResult:
    material_name: str
    parameter: str
    baseline_result: float
    variation_min: float
    variation_max: float
    result_min: float
    result_max: float
    sensitivity_ratio: float
    is_highly_sensitive: bool


@dataclass(slots=True)
class MaterialUncertainty:
    material_name: str
    uncertainty_pct: float


@dataclass(slots=True)
class UncertaintyEstimate:
    propagated_uncertainty_pct: float = 0.0
    result_lower: float = 0.0
    result_upper: float = 0.0
    materials: list[MaterialUncertainty] = field(default_factory=list)


@dataclass(slots=True)
class DataQualitySummary:
    score: int = 0
    rating: str = "Low"
    material_count: int = 0
    tier_counts: dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0, 3: 0})
    tier_shares_pct: dict[int, float] = field(default_factory=lambda: {1: 0.0, 2: 0.0, 3: 0.0})
    tier_impact_shares_pct: dict[int, float] = field(default_factory=lambda: {1: 0.0, 2: 0.0, 3: 0.0})
    uncertainty: UncertaintyEstimate = field(default_factory=UncertaintyEstimate)
    sensitivity: list[SensitivityResult] = field(default_factory=list)
    flags: list[QualityFlag] = field(default_factory=list)

    @property
    def highly_sensitive_materials(self) -> list[str]:
        return [item.material_name for item in self.sensitivity if item.is_highly_sensitive]


@dataclass(slots=True)
class MaturationImpact:
    barrel_total_co2e: float
    barrel_co2e_per_litre: float
    warehouse_co2e_total: float
    warehouse_co2e_per_litre: float
    output_volume_litres: float
    volume_loss_factor: float
    angel_share_loss_percent_total: float
    angel_share_volume_loss_litres: float
    angel_share_voc_kg: float
    angel_share_photochemical_ozone: float
    total_maturation_co2e: float
    total_maturation_co2e_per_litre_output: float
    grid_factor_estimated: bool = False
    methodology_notes: str = ""


@dataclass(slots=True)
class AllocationValidation:
    total_share_pct: float = 0.0
    status: Literal["ok", "under_allocated", "over_allocated", "empty"] = "empty"
    tolerance_pct: float = 1.0
    shares: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class AggregatedImpactResult:
    totals: dict[str, float]
    by_scope: dict[str, float]
    by_category: dict[str, float]
    by_ghg: dict[str, float]
    by_lifecycle_stage: dict[str, float]
    top_materials: list[MaterialContribution]
    top_facilities: list[FacilityContribution]
    data_quality: DataQualitySummary
    maturation: MaturationImpact | None = None
    allocation_validation: AllocationValidation = field(default_factory=AllocationValidation)
    notes: list[str] = field(default_factory=list)
    materials_count: int = 0
    production_sites_count: int = 0
    calculated_at: str = ""
    calculation_version: str = ""

    @property
    def total_climate(self) -> float:
        return self.totals.get("climate", 0.0)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
