# backend/house_health/domain/health/aggregate.py
from __future__ import annotations

from typing import Iterable, Optional

from .decay import AsOf, _clamp, as_of_date, round_half_up, score_component
from .policy import DEFAULT_POLICY, HealthPolicy
from .types import Category, ComponentSnapshot, HouseContext, ScoreResult, StructureType


def age_deduction(built_year: Optional[int], current_year: int, policy: HealthPolicy = DEFAULT_POLICY) -> int:
    if not built_year:
        return 0
    decades = max(0, int(current_year) - int(built_year)) // 10
    return min(policy.age_deduction_cap, decades * policy.age_points_per_decade)


def structure_bonus(structure_type: StructureType, policy: HealthPolicy = DEFAULT_POLICY) -> int:
    return int(policy.structure_bonus.get(structure_type, 0))


def category_scores(
    components: Iterable[ComponentSnapshot],
    now: AsOf,
    policy: HealthPolicy = DEFAULT_POLICY,
) -> dict[Category, int]:
    """
    Mean component score per category.
    Categories without components are absent, not zero.
    """
    buckets: dict[Category, list[int]] = {}
    for c in components:
        buckets.setdefault(c.category, []).append(score_component(c, now, policy))

    return {cat: round_half_up(sum(vals) / len(vals)) for cat, vals in buckets.items()}


def aggregate(
    components: list[ComponentSnapshot],
    context: HouseContext,
    now: AsOf,
    policy: HealthPolicy = DEFAULT_POLICY,
) -> ScoreResult:
    """
    Two-stage house score:
      1) base = mean of present category scores (100 with no components)
      2) overall = clamp(base - age_deduction + structure_bonus, 0, 100)

    age_deduction and structure_bonus are reported separately so callers can
    tell component condition apart from the building's age/material.
    """
    today = as_of_date(now)

    per_component: dict[int, int] = {}
    for c in components:
        if c.component_id is not None:
            per_component[int(c.component_id)] = score_component(c, today, policy)

    cats = category_scores(components, today, policy)
    base = (sum(cats.values()) / len(cats)) if cats else 100.0

    age = age_deduction(context.built_year, today.year, policy)
    bonus = structure_bonus(context.structure_type, policy)

    overall = round_half_up(_clamp(base - age + bonus, 0.0, 100.0))

    return ScoreResult(
        overall_score=overall,
        category_scores=cats,
        age_deduction=age,
        structure_bonus=bonus,
        base_score=round(base, 2),
        component_scores=per_component,
    )
