"""Data-quality scoring, coverage, uncertainty and advisory flags for an inventory."""

from __future__ import annotations

import math
from typing import Sequence

from lca_impact_engine.core.coercion import coerce_float, coerce_int
from lca_impact_engine.core.config import Settings, get_settings
from lca_impact_engine.core.constants import RATING_HIGH, RATING_LOW, RATING_MEDIUM
from lca_impact_engine.core.logging import get_logger
from lca_impact_engine.core.models import (
    DataQualitySummary,
    MaterialRecord,
    MaterialUncertainty,
    QualityFlag,
    UncertaintyEstimate,
)
from lca_impact_engine.core.reference_data import ReferenceTables

from .uncertainty import material_sigma, propagate_uncertainty, sensitivity_analysis

LOGGER = get_logger(__name__)

TIERS: tuple[int, ...] = (1, 2, 3)


def normalize_tier(value: object) -> int:
    """Map a data-priority value onto tiers 1-3; anything unrecognised is tier 3."""
    tier = coerce_int(value, 3)
    return tier if tier in TIERS else 3


def rating_for_score(score: float) -> str:
    if score >= 85:
        return RATING_HIGH
    if score >= 70:
        return RATING_MEDIUM
    return RATING_LOW


class DataQualityAssessor:
    """Scores data-priority tiers and estimates uncertainty for a material set."""

    def __init__(self, settings: Settings | None = None, *, tables: ReferenceTables | None = None) -> None:
        self._settings = settings or get_settings()
        self._tables = tables or ReferenceTables()

    def assess(self, materials: Sequence[MaterialRecord]) -> DataQualitySummary:
        summary = DataQualitySummary(material_count=len(materials))
        if not materials:
            summary.flags.append(
                QualityFlag(severity="critical", code="NO_DATA", message="No materials in inventory")
            )
            LOGGER.info("quality.no_materials")
            return summary

        tiers = [normalize_tier(record.data_priority) for record in materials]
        climates = [self._material_climate(record) for record in materials]
        total_climate = sum(climates)
        count = len(materials)

        tier_climate = {tier: 0.0 for tier in TIERS}
        for tier, climate in zip(tiers, climates):
            summary.tier_counts[tier] += 1
            tier_climate[tier] += climate

        weighted = sum(summary.tier_counts[tier] * self._tables.tier_weights.get(tier, 0) for tier in TIERS)
        # Half-up rounding.
        summary.score = math.floor(weighted / count + 0.5)
        summary.rating = rating_for_score(summary.score)
        summary.tier_shares_pct = {tier: summary.tier_counts[tier] / count * 100.0 for tier in TIERS}
        summary.tier_impact_shares_pct = {
            tier: (tier_climate[tier] / total_climate * 100.0) if total_climate > 0 else 0.0 for tier in TIERS
        }

        summary.uncertainty = self._estimate_uncertainty(materials, tiers, climates, total_climate)
        summary.sensitivity = sensitivity_analysis(
            [(record.name, climate) for record, climate in zip(materials, climates)],
            total_climate,
            variation=self._settings.sensitivity_variation,
            top_n=self._settings.sensitivity_top_n,
            threshold=self._settings.sensitivity_threshold,
        )
        summary.flags = self._flags(materials, climates, summary)

        LOGGER.info(
            "quality.assessed",
            materials=count,
            score=summary.score,
            rating=summary.rating,
            uncertainty_pct=round(summary.uncertainty.propagated_uncertainty_pct, 2),
            flags=[flag.code for flag in summary.flags],
        )
        return summary

    def _estimate_uncertainty(
        self,
        materials: Sequence[MaterialRecord],
        tiers: Sequence[int],
        climates: Sequence[float],
        total_climate: float,
    ) -> UncertaintyEstimate:
        sigmas = [
            material_sigma(tier, record.uncertainty_pct, self._tables)
            for record, tier in zip(materials, tiers)
        ]
        propagated = propagate_uncertainty(zip(climates, sigmas), total_climate)
        spread = total_climate * propagated / 100.0
        return UncertaintyEstimate(
            propagated_uncertainty_pct=propagated,
            result_lower=max(0.0, total_climate - spread),
            result_upper=total_climate + spread,
            materials=[
                MaterialUncertainty(material_name=record.name, uncertainty_pct=sigma * 100.0)
                for record, sigma in zip(materials, sigmas)
            ],
        )

    def _flags(
        self,
        materials: Sequence[MaterialRecord],
        climates: Sequence[float],
        summary: DataQualitySummary,
    ) -> list[QualityFlag]:
        settings = self._settings
        flags: list[QualityFlag] = []

        low_confidence = [
            record.name
            for record in materials
            if record.confidence_score is not None
            and coerce_float(record.confidence_score) < settings.low_confidence_threshold
        ]
        if low_confidence:
            flags.append(
                QualityFlag(
                    severity="warning",
                    code="LOW_CONFIDENCE",
                    message=f"{len(low_confidence)} material(s) below confidence "
                    f"{settings.low_confidence_threshold:g}",
                    affected_materials=low_confidence,
                )
            )

        cutoff_year = settings.effective_reference_year - settings.stale_data_years
        stale = [record.name for record in materials if record.data_year and record.data_year < cutoff_year]
        if stale:
            flags.append(
                QualityFlag(
                    severity="warning",
                    code="STALE_DATA",
                    message=f"{len(stale)} material(s) with data older than {cutoff_year}",
                    affected_materials=stale,
                )
            )

        zero_impact = [
            record.name
            for record, climate in zip(materials, climates)
            if climate == 0 and coerce_float(record.quantity) > 0
        ]
        if zero_impact:
            flags.append(
                QualityFlag(
                    severity="warning",
                    code="ZERO_IMPACT",
                    message=f"{len(zero_impact)} material(s) with positive quantity and zero climate impact",
                    affected_materials=zero_impact,
                )
            )

        propagated = summary.uncertainty.propagated_uncertainty_pct
        if propagated > settings.high_uncertainty_pct:
            flags.append(
                QualityFlag(
                    severity="warning",
                    code="HIGH_UNCERTAINTY",
                    message=f"Propagated uncertainty {propagated:.1f}% exceeds "
                    f"{settings.high_uncertainty_pct:g}%",
                )
            )

        if sum(climates) > 0 and summary.tier_impact_shares_pct[1] < settings.low_primary_share_pct:
            flags.append(
                QualityFlag(
                    severity="info",
                    code="LOW_PRIMARY_DATA",
                    message=f"Primary (tier 1) data covers {summary.tier_impact_shares_pct[1]:.1f}% "
                    "of climate impact",
                )
            )
        return flags

    @staticmethod
    def _material_climate(record: MaterialRecord) -> float:
        climate = max(0.0, record.impacts.value_of("climate"))
        return climate + max(0.0, coerce_float(record.transport_climate))
