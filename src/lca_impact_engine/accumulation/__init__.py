"""Material impact accumulation."""

from .classifier import KeywordMaterialClassifier, MaterialClassifier
from .service import (
    GHG_SPLIT_RESOLVERS,
    MaterialAccumulation,
    MaterialImpactAccumulator,
    SplitContext,
    default_split,
    explicit_split,
)

__all__ = [
    "MaterialClassifier",
    "KeywordMaterialClassifier",
    "MaterialImpactAccumulator",
    "MaterialAccumulation",
    "SplitContext",
    "GHG_SPLIT_RESOLVERS",
    "explicit_split",
    "default_split",
]
