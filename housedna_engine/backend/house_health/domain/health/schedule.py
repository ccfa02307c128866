# backend/house_health/domain/health/schedule.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from .decay import AsOf, as_of_date
from .types import Category, ComponentSnapshot

# maintenance cycle in years
MAINTENANCE_CYCLE_YEARS = {
    Category.roof: 10,
    Category.exterior_wall: 10,
    Category.waterproofing: 10,
    Category.flooring: 10,
    Category.hvac: 8,
    Category.electrical: 15,
    Category.plumbing: 15,
    Category.other: 10,
}


@dataclass(frozen=True)
class ScheduleEntry:
    component_id: Optional[int]
    category: Category
    basis: str  # inspection|installation|none
    basis_date: Optional[date]
    next_due: date
    overdue: bool


def _add_years(d: date, years: int) -> date:
    y = d.year + int(years)
    # Feb 29 -> Feb 28 on non-leap targets
    day = min(d.day, calendar.monthrange(y, d.month)[1])
    return date(y, d.month, day)


def next_maintenance_date(category: Category, last_maintenance: Optional[date], now: AsOf) -> date:
    cycle = MAINTENANCE_CYCLE_YEARS.get(category, 10)
    base = last_maintenance or as_of_date(now)
    return _add_years(base, cycle)


def build_schedule(components: Iterable[ComponentSnapshot], now: AsOf) -> list[ScheduleEntry]:
    """
    One entry per component, due date derived from the last inspection,
    falling back to installation, then to `now`. Sorted by due date.
    """
    today = as_of_date(now)
    out: list[ScheduleEntry] = []
    for c in components:
        if c.last_inspection_date is not None:
            basis, basis_date = "inspection", c.last_inspection_date
        elif c.installed_date is not None:
            basis, basis_date = "installation", c.installed_date
        else:
            basis, basis_date = "none", None

        due = next_maintenance_date(c.category, basis_date, today)
        out.append(
            ScheduleEntry(
                component_id=c.component_id,
                category=c.category,
                basis=basis,
                basis_date=basis_date,
                next_due=due,
                overdue=due < today,
            )
        )

    return sorted(out, key=lambda e: (e.next_due, e.category.value, e.component_id or 0))
