"""Percentage normalisation of contribution entries against the final grand total.

Only the orchestrator calls into this module, once every total is final.
"""

from __future__ import annotations

from typing import Protocol, Sequence, TypeVar

from lca_impact_engine.core.constants import DOMINANT_CONTRIBUTION_PCT, SIGNIFICANT_CONTRIBUTION_PCT


class ContributionEntry(Protocol):
    percentage: float
    is_significant: bool
    is_dominant: bool

    @property
    def contribution_value(self) -> float: ...


EntryT = TypeVar("EntryT", bound=ContributionEntry)


def percentage_of(value: float, grand_total: float) -> float:
    if grand_total == 0:
        return 0.0
    return value / grand_total * 100.0


def finalize_contributions(entries: Sequence[EntryT], grand_total: float, limit: int | None = None) -> list[EntryT]:
    """Set percentage and significance flags, then rank by absolute contribution.

    The sort is stable so ties keep their input order. ``limit`` of ``None``
    or below one keeps every entry.
    """
    for entry in entries:
        pct = percentage_of(entry.contribution_value, grand_total)
        entry.percentage = pct
        entry.is_significant = pct > SIGNIFICANT_CONTRIBUTION_PCT
        entry.is_dominant = pct > DOMINANT_CONTRIBUTION_PCT
    ranked = sorted(entries, key=lambda entry: abs(entry.contribution_value), reverse=True)
    if limit is not None and limit > 0:
        return ranked[:limit]
    return ranked
