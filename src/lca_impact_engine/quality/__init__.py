"""Data quality scoring and uncertainty estimation."""

from .service import DataQualityAssessor, normalize_tier, rating_for_score
from .uncertainty import (
    PEDIGREE_DIMENSIONS,
    default_pedigree,
    material_sigma,
    pedigree_sigma,
    propagate_uncertainty,
    sensitivity_analysis,
)

__all__ = [
    "DataQualityAssessor",
    "normalize_tier",
    "rating_for_score",
    "PEDIGREE_DIMENSIONS",
    "default_pedigree",
    "pedigree_sigma",
    "material_sigma",
    "propagate_uncertainty",
    "sensitivity_analysis",
]
