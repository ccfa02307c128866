# backend/house_health/services/component_service.py
from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..domain.health.types import Category
from ..models import House, HouseComponent
from ..schemas import ComponentCreate, ComponentUpdate, HouseCreate
from .health_service import get_house_or_raise


class ComponentNotFound(LookupError):
    pass


def warranty_expiry(installed: Optional[date], warranty_years: Optional[int]) -> Optional[date]:
    """installed_date + warranty_years, Feb 29 landing on Feb 28 when needed."""
    if installed is None or not warranty_years:
        return None
    y = installed.year + int(warranty_years)
    day = min(installed.day, calendar.monthrange(y, installed.month)[1])
    return date(y, installed.month, day)


def create_house(db: Session, payload: HouseCreate) -> House:
    row = House(
        name=payload.name,
        address=payload.address,
        built_year=payload.built_year,
        structure_type=payload.structure_type.value,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def add_component(db: Session, house_id: int, payload: ComponentCreate) -> HouseComponent:
    get_house_or_raise(db, house_id)

    expiry = payload.warranty_expiry_date or warranty_expiry(payload.installed_date, payload.warranty_years)
    row = HouseComponent(
        house_id=int(house_id),
        category=payload.category.value,
        subcategory=payload.subcategory,
        product_name=payload.product_name,
        manufacturer=payload.manufacturer,
        model_number=payload.model_number,
        installed_date=payload.installed_date,
        expected_lifespan_years=payload.expected_lifespan_years,
        warranty_years=payload.warranty_years,
        warranty_expiry_date=expiry,
        last_inspection_date=payload.last_inspection_date,
        replacement_cost=payload.replacement_cost,
        condition_score=payload.condition_score,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_component(db: Session, house_id: int, component_id: int, payload: ComponentUpdate) -> HouseComponent:
    row = db.scalar(
        select(HouseComponent).where(HouseComponent.id == int(component_id), HouseComponent.house_id == int(house_id))
    )
    if row is None:
        raise ComponentNotFound(f"component {component_id} not found for house {house_id}")

    data = payload.model_dump(exclude_unset=True)
    if data.get("category") is not None:
        data["category"] = Category(data["category"]).value

    for key, value in data.items():
        if value is None and key in ("category", "condition_score"):
            continue  # NOT NULL columns
        setattr(row, key, value)

    # re-derive expiry when the inputs changed and no explicit date was sent
    if "warranty_expiry_date" not in data and ("installed_date" in data or "warranty_years" in data):
        row.warranty_expiry_date = warranty_expiry(row.installed_date, row.warranty_years)

    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_components(
    db: Session,
    house_id: int,
    *,
    category: Optional[Union[Category, str]] = None,
) -> list[HouseComponent]:
    get_house_or_raise(db, house_id)
    q = select(HouseComponent).where(HouseComponent.house_id == int(house_id))
    if category is not None:
        q = q.where(HouseComponent.category == Category(category).value)
    return list(db.scalars(q.order_by(HouseComponent.category.asc(), desc(HouseComponent.created_at))).all())
