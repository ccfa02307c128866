# backend/house_health/domain/health/decay.py
from __future__ import annotations

import calendar
import math
from datetime import date, datetime
from typing import Optional, Union

from .policy import DEFAULT_POLICY, HealthPolicy
from .types import ComponentSnapshot

DAYS_PER_YEAR = 365.25

AsOf = Union[date, datetime]


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def round_half_up(x: float) -> int:
    # round() is banker's rounding; scores use the schoolbook rule
    return int(math.floor(x + 0.5))


def as_of_date(now: AsOf) -> date:
    return now.date() if isinstance(now, datetime) else now


def months_before(d: date, months: int) -> date:
    """Same calendar day `months` earlier, clamped to the month's last day."""
    total = d.year * 12 + (d.month - 1) - int(months)
    year, month0 = divmod(total, 12)
    month = month0 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def years_between(start: date, end: date) -> float:
    return (end - start).days / DAYS_PER_YEAR


def life_fraction(component: ComponentSnapshot, today: date, policy: HealthPolicy) -> Optional[float]:
    if component.installed_date is None or not component.expected_lifespan_years:
        return None
    lifespan = float(component.expected_lifespan_years)
    if lifespan <= 0:
        return None
    age_years = years_between(component.installed_date, today)
    return _clamp(age_years / lifespan, 0.0, float(policy.life_fraction_cap))


def is_inspection_stale(component: ComponentSnapshot, today: date, policy: HealthPolicy) -> bool:
    last = component.last_inspection_date
    if last is None:
        return True
    return last < months_before(today, policy.inspection_stale_months)


def is_warranty_expired(component: ComponentSnapshot, today: date) -> bool:
    exp = component.warranty_expiry_date
    return exp is not None and exp < today


def score_component(
    component: ComponentSnapshot,
    now: AsOf,
    policy: HealthPolicy = DEFAULT_POLICY,
) -> int:
    """
    Component health in [0, 100].

    Three additive penalties on top of the reported condition:
      - lifespan decay: round(life_fraction * decay_max_points), life_fraction capped
      - expired warranty
      - missing or stale inspection
    """
    today = as_of_date(now)

    base = component.condition_score
    score = _clamp(float(base), 0.0, 100.0) if base is not None else 100.0

    frac = life_fraction(component, today, policy)
    if frac is not None:
        score -= round_half_up(frac * policy.decay_max_points)

    if is_warranty_expired(component, today):
        score -= policy.warranty_penalty

    if is_inspection_stale(component, today, policy):
        score -= policy.inspection_penalty

    return round_half_up(_clamp(score, 0.0, 100.0))
