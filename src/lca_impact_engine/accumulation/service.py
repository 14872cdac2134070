"""Material impact accumulation over pre-normalised inventory records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from lca_impact_engine.core.coercion import coerce_float
from lca_impact_engine.core.config import Settings, get_settings
from lca_impact_engine.core.constants import (
    CATEGORY_INGREDIENT,
    CATEGORY_PACKAGING,
    CONTRIBUTION_CATEGORIES,
    GHG_SPECIES,
    IMPACT_CATEGORIES,
    LIFECYCLE_STAGES,
    SCOPES,
    zero_totals,
)
from lca_impact_engine.core.logging import get_logger
from lca_impact_engine.core.models import GhgSplit, MaterialContribution, MaterialRecord
from lca_impact_engine.core.reference_data import ReferenceTables
from lca_impact_engine.core.resolvers import Resolver, resolve_cascade

from .classifier import KeywordMaterialClassifier, MaterialClassifier

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class SplitContext:
    record: MaterialRecord
    climate: float
    fossil_share: float


def explicit_split(context: SplitContext) -> GhgSplit | None:
    split = context.record.ghg_split
    if split is None:
        return None
    resolved = GhgSplit(
        fossil=max(0.0, coerce_float(split.fossil)),
        biogenic=max(0.0, coerce_float(split.biogenic)),
        land_use_change=max(0.0, coerce_float(split.land_use_change)),
    )
    if resolved.fossil + resolved.biogenic + resolved.land_use_change <= 0:
        return None
    return resolved


def default_split(context: SplitContext) -> GhgSplit:
    fossil_share = min(1.0, max(0.0, context.fossil_share))
    return GhgSplit(
        fossil=context.climate * fossil_share,
        biogenic=context.climate * (1.0 - fossil_share),
        land_use_change=0.0,
    )


GHG_SPLIT_RESOLVERS: tuple[Resolver[SplitContext, GhgSplit], ...] = (explicit_split, default_split)


@dataclass(slots=True)
class MaterialAccumulation:
    """Raw totals from the material pass; percentages are left unresolved."""

    totals: dict[str, float] = field(default_factory=lambda: zero_totals(IMPACT_CATEGORIES))
    by_scope: dict[str, float] = field(default_factory=lambda: zero_totals(SCOPES))
    by_category: dict[str, float] = field(default_factory=lambda: zero_totals(CONTRIBUTION_CATEGORIES))
    by_ghg: dict[str, float] = field(default_factory=lambda: zero_totals(GHG_SPECIES))
    by_lifecycle_stage: dict[str, float] = field(default_factory=lambda: zero_totals(LIFECYCLE_STAGES))
    contributions: list[MaterialContribution] = field(default_factory=list)
    zero_impact_materials: list[str] = field(default_factory=list)
    transport_total: float = 0.0
    end_of_life_total: float = 0.0
    materials_count: int = 0

    @property
    def contribution_total(self) -> float:
        """Climate carried by per-material entries (direct, transport and end-of-life)."""
        return sum(entry.climate for entry in self.contributions)


class MaterialImpactAccumulator:
    """Sums per-material impact values into category, scope, gas and stage totals."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        tables: ReferenceTables | None = None,
        classifier: MaterialClassifier | None = None,
        split_resolvers: Sequence[Resolver[SplitContext, GhgSplit]] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._tables = tables or ReferenceTables()
        self._classifier = classifier or KeywordMaterialClassifier(self._tables.packaging_keywords)
        self._split_resolvers = tuple(split_resolvers or GHG_SPLIT_RESOLVERS)

    def classify(self, record: MaterialRecord) -> str:
        return self._classifier.classify(record.name, record.category)

    def accumulate(self, materials: Iterable[MaterialRecord]) -> MaterialAccumulation:
        result = MaterialAccumulation()
        for record in materials:
            result.materials_count += 1
            self._accumulate_record(record, result)
        LOGGER.info(
            "accumulation.complete",
            materials=result.materials_count,
            climate=round(result.totals["climate"], 6),
            zero_impact=len(result.zero_impact_materials),
        )
        return result

    def _accumulate_record(self, record: MaterialRecord, result: MaterialAccumulation) -> None:
        quantity = coerce_float(record.quantity)
        climate = self._non_negative(record, "climate", record.impacts.value_of("climate"))
        transport = self._non_negative(record, "transport", coerce_float(record.transport_climate))
        category = self.classify(record)

        for impact in IMPACT_CATEGORIES:
            if impact == "climate":
                continue
            result.totals[impact] += record.impacts.value_of(impact)
        result.totals["climate"] += climate + transport
        result.by_scope["scope3"] += climate + transport

        if category == CATEGORY_PACKAGING:
            result.by_category["packaging"] += climate
            result.by_lifecycle_stage["packaging"] += climate
        else:
            result.by_category["materials"] += climate
            result.by_lifecycle_stage["raw_materials"] += climate
        if transport:
            result.transport_total += transport
            result.by_category["transport"] += transport
            result.by_lifecycle_stage["distribution"] += transport

        self._accumulate_gases(record, climate, quantity, category, result)
        if transport:
            result.by_ghg["co2_fossil"] += transport

        end_of_life = 0.0
        if category == CATEGORY_PACKAGING and self._settings.include_end_of_life:
            end_of_life = self._accumulate_end_of_life(record, quantity, result)

        if climate == 0 and quantity > 0:
            LOGGER.warning(
                "accumulation.zero_climate_impact",
                material=record.name,
                quantity=quantity,
                unit=record.unit,
            )
            result.zero_impact_materials.append(record.name)

        contribution = climate + transport + end_of_life
        if contribution != 0:
            result.contributions.append(
                MaterialContribution(
                    name=record.name,
                    climate=contribution,
                    category=category,
                    quantity=quantity,
                    unit=record.unit,
                    source=record.source_reference,
                )
            )

    def _accumulate_gases(
        self,
        record: MaterialRecord,
        climate: float,
        quantity: float,
        category: str,
        result: MaterialAccumulation,
    ) -> None:
        if climate <= 0:
            return
        split = resolve_cascade(
            self._split_resolvers,
            SplitContext(record=record, climate=climate, fossil_share=self._settings.default_fossil_share),
        )
        result.by_ghg["co2_fossil"] += split.fossil
        result.by_ghg["co2_biogenic"] += split.biogenic
        result.by_ghg["co2_land_use_change"] += split.land_use_change

        gwp_ch4 = self._tables.gwp100.get("ch4", 0.0)
        gwp_n2o = self._tables.gwp100.get("n2o", 0.0)
        if split.biogenic > 0 and quantity > 0:
            if gwp_ch4:
                result.by_ghg["ch4"] += split.biogenic * self._tables.biogenic_ch4_fraction / gwp_ch4
            if gwp_n2o:
                result.by_ghg["n2o"] += split.biogenic * self._tables.biogenic_n2o_fraction / gwp_n2o
        if category == CATEGORY_INGREDIENT and quantity > 0 and gwp_n2o:
            result.by_ghg["n2o"] += climate * self._tables.agricultural_n2o_fraction / gwp_n2o

    def _accumulate_end_of_life(
        self, record: MaterialRecord, quantity: float, result: MaterialAccumulation
    ) -> float:
        burden = quantity * self._tables.eol_landfill_factor * self._tables.eol_landfill_rate
        if burden <= 0:
            return 0.0
        result.end_of_life_total += burden
        result.totals["climate"] += burden
        result.by_scope["scope3"] += burden
        result.by_category["end_of_life"] += burden
        result.by_lifecycle_stage["end_of_life"] += burden
        result.by_ghg["co2_fossil"] += burden
        LOGGER.debug("accumulation.end_of_life", material=record.name, burden=burden)
        return burden

    @staticmethod
    def _non_negative(record: MaterialRecord, field_name: str, value: float) -> float:
        if value < 0:
            LOGGER.warning(
                "accumulation.negative_impact_ignored",
                material=record.name,
                field=field_name,
                value=value,
            )
            return 0.0
        return value
