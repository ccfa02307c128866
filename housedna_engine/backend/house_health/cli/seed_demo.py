# backend/house_health/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from house_health.db import SessionLocal
from house_health.models import House
from house_health.schemas import ComponentCreate, HouseCreate
from house_health.services.component_service import add_component, create_house


@dataclass(frozen=True)
class SeedResult:
    house_id: int
    house_name: str
    component_count: int
    created: bool


def _demo_components(today: date) -> list[ComponentCreate]:
    def years_ago(n: int) -> date:
        return date(today.year - n, today.month, min(today.day, 28))

    return [
        ComponentCreate(
            category="roof",
            product_name="スレート屋根",
            installed_date=years_ago(18),
            expected_lifespan_years=20,
            warranty_years=10,
            condition_score=75,
            last_inspection_date=years_ago(3),
        ),
        ComponentCreate(
            category="exterior_wall",
            product_name="窯業系サイディング",
            installed_date=years_ago(18),
            expected_lifespan_years=30,
            condition_score=85,
            last_inspection_date=years_ago(1),
        ),
        ComponentCreate(
            category="hvac",
            product_name="ルームエアコン",
            installed_date=years_ago(9),
            expected_lifespan_years=10,
            warranty_years=5,
            condition_score=60,
        ),
        ComponentCreate(
            category="plumbing",
            product_name="給湯器",
            installed_date=years_ago(4),
            expected_lifespan_years=12,
            warranty_years=5,
            condition_score=95,
            last_inspection_date=years_ago(1),
        ),
    ]


def _get_house(db: Session, name: str) -> Optional[House]:
    return db.query(House).filter(House.name == name).one_or_none()


def seed_demo(
    *,
    house_name: str = "デモ邸",
    built_year: int = 2006,
    structure_type: str = "wood",
    today: Optional[date] = None,
) -> SeedResult:
    today = today or date.today()
    db = SessionLocal()
    try:
        existing = _get_house(db, house_name)
        if existing:
            return SeedResult(
                house_id=int(existing.id),
                house_name=existing.name,
                component_count=len(existing.components),
                created=False,
            )

        house = create_house(
            db,
            HouseCreate(name=house_name, address="東京都杉並区1-2-3", built_year=built_year, structure_type=structure_type),
        )
        comps = [add_component(db, house.id, c) for c in _demo_components(today)]
        return SeedResult(house_id=int(house.id), house_name=house.name, component_count=len(comps), created=True)
    finally:
        db.close()
