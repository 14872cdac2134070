#!/usr/bin/env python
"""Aggregate one entity's inventory JSON into a life-cycle impact result."""

from __future__ import annotations

import argparse
from pathlib import Path

import structlog
from _workflow_common import dump_json

from lca_impact_engine.aggregation import ImpactAggregationOrchestrator, load_inventory_file
from lca_impact_engine.core.config import load_settings
from lca_impact_engine.core.exceptions import ImpactEngineError
from lca_impact_engine.core.logging import configure_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--inventory",
        type=Path,
        required=True,
        help="Inventory JSON with 'materials', 'production_sites' and optional 'maturation_profile'.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("artifacts/impact_result.json"),
        help="Where to store the aggregated result.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Engine TOML file (defaults to ./lca_engine.toml when present).",
    )
    parser.add_argument(
        "--functional-unit-quantity",
        type=float,
        help="Override the functional unit quantity used for facility allocation.",
    )
    parser.add_argument(
        "--log-format",
        choices=("json", "console"),
        help="Log renderer; defaults to the configured log_format.",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run the material and facility passes concurrently.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.config is not None and not args.config.exists():
        raise SystemExit(f"Config file not found: {args.config}")
    overrides = {"parallel_accumulation": True} if args.parallel else {}
    settings = load_settings(args.config, **overrides)
    configure_logging(settings=settings, log_format=args.log_format)

    try:
        inventory = load_inventory_file(args.inventory)
    except ImpactEngineError as exc:
        raise SystemExit(str(exc)) from exc

    orchestrator = ImpactAggregationOrchestrator(settings)
    quantity = args.functional_unit_quantity
    if quantity is None:
        quantity = inventory.functional_unit_quantity
    with structlog.contextvars.bound_contextvars(entity_id=inventory.entity_id):
        result = orchestrator.aggregate(
            inventory.materials,
            inventory.allocations,
            inventory.maturation_profile,
            functional_unit_quantity=quantity,
        )
    payload = result.as_dict()
    if inventory.entity_id:
        payload["entity_id"] = inventory.entity_id
    dump_json(payload, args.output)
    print(
        f"Climate total={result.total_climate:.4f} kg CO2e "
        f"materials={result.materials_count} sites={result.production_sites_count} -> {args.output}"
    )


if __name__ == "__main__":
    main()
