"""Conversion of loose inventory documents into typed engine inputs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from lca_impact_engine.core.coercion import coerce_optional_float
from lca_impact_engine.core.exceptions import InventoryValidationError
from lca_impact_engine.core.logging import get_logger
from lca_impact_engine.core.models import MaterialRecord, MaturationProfile, ProductionSiteAllocation

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class Inventory:
    materials: list[MaterialRecord] = field(default_factory=list)
    allocations: list[ProductionSiteAllocation] = field(default_factory=list)
    maturation_profile: MaturationProfile | None = None
    functional_unit_quantity: float | None = None
    entity_id: str | None = None


def load_inventory(document: Any) -> Inventory:
    """Build an :class:`Inventory` from a decoded JSON document.

    Structural defects (wrong container types) raise
    :class:`InventoryValidationError`; numeric defects inside records are
    coerced to zero by the record constructors.
    """
    if not isinstance(document, Mapping):
        raise InventoryValidationError("Inventory document must be an object")

    materials = [
        MaterialRecord.from_mapping(item)
        for item in _object_list(document, "materials")
    ]
    allocations = [
        ProductionSiteAllocation.from_mapping(item)
        for item in _object_list(document, "production_sites", "allocations")
    ]

    profile_block = document.get("maturation_profile")
    if profile_block is not None and not isinstance(profile_block, Mapping):
        raise InventoryValidationError("`maturation_profile` must be an object")
    profile = MaturationProfile.from_mapping(profile_block) if profile_block else None

    entity = document.get("entity_id") or document.get("product_id")
    inventory = Inventory(
        materials=materials,
        allocations=allocations,
        maturation_profile=profile,
        functional_unit_quantity=coerce_optional_float(document.get("functional_unit_quantity")),
        entity_id=str(entity) if entity is not None else None,
    )
    LOGGER.debug(
        "inventory.loaded",
        entity=inventory.entity_id,
        materials=len(materials),
        allocations=len(allocations),
        has_maturation=profile is not None,
    )
    return inventory


def load_inventory_file(path: Path) -> Inventory:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InventoryValidationError(f"Inventory file is not valid JSON: {path}") from exc
    return load_inventory(document)


def _object_list(document: Mapping[str, Any], *keys: str) -> list[Mapping[str, Any]]:
    key = next((candidate for candidate in keys if candidate in document), keys[0])
    block = document.get(key)
    if block is None:
        return []
    if not isinstance(block, list):
        raise InventoryValidationError(f"`{key}` must be a list")
    for index, item in enumerate(block):
        if not isinstance(item, Mapping):
            raise InventoryValidationError(f"`{key}[{index}]` must be an object")
    return block
