"""Barrel maturation sub-calculator."""

from .resolvers import (
    BARREL_BURDEN_RESOLVERS,
    ENERGY_FACTOR_RESOLVERS,
    LOSS_RATE_RESOLVERS,
    MaturationContext,
)
from .service import MaturationCalculator

__all__ = [
    "MaturationCalculator",
    "MaturationContext",
    "BARREL_BURDEN_RESOLVERS",
    "LOSS_RATE_RESOLVERS",
    "ENERGY_FACTOR_RESOLVERS",
]
