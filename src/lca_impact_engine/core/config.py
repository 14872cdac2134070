"""Application configuration primitives."""

from __future__ import annotations

import tomllib
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .coercion import coerce_optional_float

DEFAULT_CONFIG_PATH = Path("lca_engine.toml")

_BOOLEAN_FIELDS = {"include_end_of_life", "fold_maturation_into_totals", "parallel_accumulation"}
_INTEGER_FIELDS = {
    "top_contributor_limit",
    "sensitivity_top_n",
    "stale_data_years",
    "reference_year",
    "max_concurrency",
}


class Settings(BaseSettings):
    """Central configuration for the impact aggregation engine."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    functional_unit_quantity: float = 1.0
    default_fossil_share: float = 0.85
    top_contributor_limit: int | None = None

    sensitivity_variation: float = 0.20
    sensitivity_top_n: int = 3
    sensitivity_threshold: float = 0.5
    low_confidence_threshold: float = 50.0
    stale_data_years: int = 3
    reference_year: int | None = None
    high_uncertainty_pct: float = 40.0
    low_primary_share_pct: float = 20.0

    allocation_tolerance_pct: float = 1.0
    include_end_of_life: bool = False
    fold_maturation_into_totals: bool = False

    parallel_accumulation: bool = False
    max_concurrency: int = 2

    reference_tables_path: Path | None = None

    model_config = SettingsConfigDict(env_prefix="LCA_ENGINE_", env_file=(), extra="ignore")

    @property
    def effective_reference_year(self) -> int:
        """Reference year for temporal representativeness checks."""
        if self.reference_year:
            return self.reference_year
        return datetime.now(timezone.utc).year

    @property
    def default_biogenic_share(self) -> float:
        return max(0.0, 1.0 - self.default_fossil_share)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return load_settings()


def load_settings(config_path: Path | None = None, **overrides: Any) -> Settings:
    """Build settings from the engine TOML file with explicit ``overrides`` on top."""
    values = _load_settings_overrides(config_path or DEFAULT_CONFIG_PATH)
    values.update(overrides)
    return Settings(**values)


def _load_settings_overrides(config_path: Path = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """Load configuration overrides from the engine TOML file."""
    if not config_path.exists():
        return {}
    data = _read_toml(config_path)
    engine_cfg = _extract_section(data, "engine", "lca_engine") or {}
    overrides: dict[str, Any] = {}
    for key, value in engine_cfg.items():
        if key not in Settings.model_fields or value is None:
            continue
        overrides[key] = _coerce_setting(key, value)
    return {key: value for key, value in overrides.items() if value is not None}


def _coerce_setting(key: str, value: Any) -> Any:
    if key in _BOOLEAN_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    if key in _INTEGER_FIELDS:
        number = coerce_optional_float(value)
        return int(number) if number is not None else None
    if Settings.model_fields[key].annotation is float:
        return coerce_optional_float(value)
    return value


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _extract_section(data: dict[str, Any], *candidates: str) -> dict[str, Any] | None:
    for key in candidates:
        section = data.get(key)
        if isinstance(section, dict):
            return section
    return None
