"""Tolerant numeric coercion shared by the engine and the configuration layer."""

from __future__ import annotations

import math
from typing import Any


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Return ``value`` as a finite float, or ``default`` when it cannot be read."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def coerce_optional_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    sentinel = float("nan")
    number = coerce_float(value, sentinel)
    if math.isnan(number):
        return None
    return number


def coerce_int(value: Any, default: int = 0) -> int:
    number = coerce_float(value, float(default))
    return int(number)
