# backend/tests/test_maintenance_schedule.py
from __future__ import annotations

from datetime import date

from house_health.db import SessionLocal
from house_health.domain.health import Category, ComponentSnapshot, build_schedule, next_maintenance_date
from house_health.schemas import ComponentCreate, HouseCreate
from house_health.services.component_service import add_component, create_house
from house_health.services.health_service import maintenance_schedule

NOW = date(2026, 6, 1)


def test_next_date_uses_category_cycle():
    assert next_maintenance_date(Category.roof, date(2020, 5, 1), NOW) == date(2030, 5, 1)
    assert next_maintenance_date(Category.hvac, date(2020, 5, 1), NOW) == date(2028, 5, 1)
    assert next_maintenance_date(Category.plumbing, date(2020, 5, 1), NOW) == date(2035, 5, 1)


def test_next_date_without_history_counts_from_now():
    assert next_maintenance_date(Category.electrical, None, NOW) == date(2041, 6, 1)


def test_schedule_prefers_inspection_and_sorts_by_due_date():
    comps = [
        ComponentSnapshot(category=Category.roof, installed_date=date(2010, 1, 1), last_inspection_date=date(2019, 3, 1), component_id=1),
        ComponentSnapshot(category=Category.hvac, installed_date=date(2021, 8, 1), component_id=2),
        ComponentSnapshot(category=Category.flooring, component_id=3),
    ]
    sched = build_schedule(comps, NOW)

    assert [e.component_id for e in sched] == [1, 2, 3]
    assert sched[0].basis == "inspection"
    assert sched[0].next_due == date(2029, 3, 1)
    assert sched[1].basis == "installation"
    assert sched[1].next_due == date(2029, 8, 1)
    assert sched[2].basis == "none"
    assert sched[2].next_due == date(2036, 6, 1)
    assert not any(e.overdue for e in sched)


def test_overdue_entries_are_flagged():
    sched = build_schedule([ComponentSnapshot(category=Category.hvac, installed_date=date(2010, 1, 1))], NOW)
    assert sched[0].overdue is True


def test_service_builds_schedule_from_rows():
    db = SessionLocal()
    try:
        h = create_house(db, HouseCreate(name="予定邸"))
        add_component(db, h.id, ComponentCreate(category="waterproofing", installed_date=date(2012, 10, 1)))
        sched = maintenance_schedule(db, h.id, now=NOW)
        assert len(sched) == 1
        assert sched[0].category == Category.waterproofing
        assert sched[0].next_due == date(2022, 10, 1)
        assert sched[0].overdue is True
    finally:
        db.close()
