"""Pedigree-matrix uncertainty, root-sum-of-squares propagation and sensitivity."""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

from lca_impact_engine.core.coercion import coerce_float
from lca_impact_engine.core.models import SensitivityResult
from lca_impact_engine.core.reference_data import ReferenceTables

PEDIGREE_DIMENSIONS: tuple[str, ...] = (
    "reliability",
    "completeness",
    "temporal",
    "geographical",
    "technological",
)


def default_pedigree(tier: int, tables: ReferenceTables) -> dict[str, int]:
    """Default pedigree scores for a data-priority tier (one score for every dimension)."""
    score = tables.tier_pedigree_score.get(tier, tables.tier_pedigree_score.get(3, 4))
    return {dimension: score for dimension in PEDIGREE_DIMENSIONS}


def pedigree_sigma(scores: Mapping[str, int], tables: ReferenceTables) -> float:
    """Combined standard deviation of the log-normal (basic plus pedigree variance)."""
    variance = tables.basic_material_uncertainty**2
    for dimension, score in scores.items():
        variance += tables.pedigree_variance.get(dimension, {}).get(score, 0.0)
    return math.sqrt(variance)


def material_sigma(tier: int, explicit_pct: float | None, tables: ReferenceTables) -> float:
    """Uncertainty of one material as a fraction; a positive explicit percentage wins."""
    explicit = coerce_float(explicit_pct)
    if explicit > 0:
        return explicit / 100.0
    return pedigree_sigma(default_pedigree(tier, tables), tables)


def propagate_uncertainty(weighted: Iterable[tuple[float, float]], total: float) -> float:
    """Root-sum-of-squares of ``(value, sigma)`` pairs weighted by share of ``total``.

    Returns a percentage; zero when ``total`` is zero.
    """
    if total <= 0:
        return 0.0
    variance = 0.0
    for value, sigma in weighted:
        weight = value / total
        variance += (weight**2) * (sigma**2)
    return math.sqrt(variance) * 100.0


def sensitivity_analysis(
    contributions: Sequence[tuple[str, float]],
    total: float,
    *,
    variation: float,
    top_n: int,
    threshold: float,
) -> list[SensitivityResult]:
    """Perturb the ``top_n`` largest contributors by ``±variation`` and report the result range.

    The sensitivity ratio is the relative change of the total divided by the
    relative change of the input, so it equals the contributor's share of the
    total.
    """
    if total <= 0 or top_n <= 0 or variation <= 0:
        return []
    ranked = sorted(
        (item for item in contributions if item[1] > 0),
        key=lambda item: item[1],
        reverse=True,
    )[:top_n]
    results: list[SensitivityResult] = []
    for name, value in ranked:
        result_min = total - value * variation
        result_max = total + value * variation
        ratio = ((result_max - result_min) / total) / (2.0 * variation)
        results.append(
            SensitivityResult(
                material_name=name,
                parameter="climate",
                baseline_result=total,
                variation_min=-variation * 100.0,
                variation_max=variation * 100.0,
                result_min=result_min,
                result_max=result_max,
                sensitivity_ratio=ratio,
                is_highly_sensitive=ratio > threshold,
            )
        )
    return results
