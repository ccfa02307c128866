# backend/house_health/domain/health/engine.py
from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable

from .aggregate import aggregate
from .decay import AsOf
from .policy import DEFAULT_POLICY, HealthPolicy
from .synthesize import synthesize
from .types import ComponentSnapshot, HouseContext, ScoreResult, coerce_structure_type


def house_context(house: Any) -> HouseContext:
    if isinstance(house, HouseContext):
        return house
    if isinstance(house, dict):
        built_year = house.get("built_year")
        structure = house.get("structure_type")
    else:
        built_year = getattr(house, "built_year", None)
        structure = getattr(house, "structure_type", None)
    return HouseContext(
        built_year=int(built_year) if built_year else None,
        structure_type=coerce_structure_type(structure),
    )


def recompute(
    house: Any,
    components: Iterable[Any],
    now: AsOf,
    policy: HealthPolicy = DEFAULT_POLICY,
) -> ScoreResult:
    """
    Score a house and synthesize recommendation candidates.

    Every enum is coerced before any scoring, so one bad row fails the whole
    recompute instead of producing a partial score.
    """
    ctx = house_context(house)
    snaps = [c if isinstance(c, ComponentSnapshot) else ComponentSnapshot.from_row(c) for c in components]

    result = aggregate(snaps, ctx, now, policy)
    candidates = synthesize(snaps, result, now, policy)
    return replace(result, candidates=tuple(candidates))
