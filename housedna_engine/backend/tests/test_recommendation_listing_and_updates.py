# backend/tests/test_recommendation_listing_and_updates.py
from __future__ import annotations

from datetime import date, datetime

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from house_health.db import SessionLocal
from house_health.models import House, MaintenanceRecommendation
from house_health.schemas import RecommendationOut, RecommendationUpdate
from house_health.services.health_service import (
    RecommendationConflict,
    RecommendationNotFound,
    delete_recommendation,
    list_recommendations,
    resolve_recommendation,
    update_recommendation,
)


def _mk_house(db, name: str = "並び順邸") -> House:
    h = House(name=name, structure_type="rc")
    db.add(h)
    db.commit()
    db.refresh(h)
    return h


def _rec(db, house_id: int, risk: str, desc: str, created_at: datetime, resolved: bool = False) -> MaintenanceRecommendation:
    r = MaintenanceRecommendation(
        house_id=house_id,
        risk_level=risk,
        description=desc,
        is_resolved=resolved,
        resolved_at=created_at if resolved else None,
        created_at=created_at,
    )
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


def test_list_orders_by_risk_then_newest_first():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        low = _rec(db, h.id, "low", "a", datetime(2026, 1, 5))
        high_old = _rec(db, h.id, "high", "b", datetime(2026, 1, 1))
        med = _rec(db, h.id, "medium", "c", datetime(2026, 1, 3))
        high_new = _rec(db, h.id, "high", "d", datetime(2026, 1, 4))

        rows = list_recommendations(db, h.id)
        assert [r.id for r in rows] == [high_new.id, high_old.id, med.id, low.id]
    finally:
        db.close()


def test_list_filters_resolved_and_risk_level():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        _rec(db, h.id, "high", "open-high", datetime(2026, 1, 1))
        _rec(db, h.id, "low", "open-low", datetime(2026, 1, 2))
        _rec(db, h.id, "high", "done-high", datetime(2026, 1, 3), resolved=True)

        assert {r.description for r in list_recommendations(db, h.id)} == {"open-high", "open-low"}
        assert {r.description for r in list_recommendations(db, h.id, include_resolved=True)} == {
            "open-high",
            "open-low",
            "done-high",
        }
        assert [r.description for r in list_recommendations(db, h.id, risk_level="high")] == ["open-high"]
    finally:
        db.close()


def test_update_keeps_resolution_fields_in_lockstep():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        r = _rec(db, h.id, "medium", "外壁の点検・補修を検討してください", datetime(2026, 1, 1))

        r = update_recommendation(
            db, h.id, r.id, RecommendationUpdate(is_resolved=True), now=datetime(2026, 2, 1, 10, 0)
        )
        assert r.is_resolved is True
        assert r.resolved_at == datetime(2026, 2, 1, 10, 0)

        r = update_recommendation(db, h.id, r.id, RecommendationUpdate(is_resolved=False))
        assert r.is_resolved is False
        assert r.resolved_at is None
    finally:
        db.close()


def test_partial_update_only_touches_sent_fields():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        r = _rec(db, h.id, "medium", "屋根の点検・補修を検討してください", datetime(2026, 1, 1))
        r.recommended_action = "業者に見積依頼"
        db.add(r)
        db.commit()

        r = update_recommendation(
            db,
            h.id,
            r.id,
            RecommendationUpdate(estimated_cost_min=300000, estimated_cost_max=800000, due_date=date(2026, 9, 30)),
        )
        assert r.recommended_action == "業者に見積依頼"
        assert r.estimated_cost_min == 300000
        assert r.estimated_cost_max == 800000
        assert r.due_date == date(2026, 9, 30)
        assert r.risk_level == "medium"
    finally:
        db.close()


def test_reopening_into_an_existing_open_description_is_rejected():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        _rec(db, h.id, "medium", "屋根の点検・補修を検討してください", datetime(2026, 3, 1))
        old = _rec(db, h.id, "medium", "屋根の点検・補修を検討してください", datetime(2026, 1, 1), resolved=True)

        with pytest.raises(RecommendationConflict):
            update_recommendation(db, h.id, old.id, RecommendationUpdate(is_resolved=False))

        db.refresh(old)
        assert old.is_resolved is True
    finally:
        db.close()


def test_renaming_into_an_existing_open_description_is_rejected():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        _rec(db, h.id, "medium", "屋根の点検・補修を検討してください", datetime(2026, 3, 1))
        other = _rec(db, h.id, "low", "屋根の点検が長期間行われていません", datetime(2026, 3, 2))

        with pytest.raises(RecommendationConflict):
            update_recommendation(
                db, h.id, other.id, RecommendationUpdate(description="屋根の点検・補修を検討してください")
            )
    finally:
        db.close()


def test_update_schema_rejects_bad_input():
    with pytest.raises(ValidationError):
        RecommendationUpdate(risk_level="urgent")
    with pytest.raises(ValidationError):
        RecommendationUpdate(estimated_cost_min=500, estimated_cost_max=100)


def test_recommendation_is_scoped_to_its_house():
    db = SessionLocal()
    try:
        h1 = _mk_house(db, "一号邸")
        h2 = _mk_house(db, "二号邸")
        r = _rec(db, h1.id, "low", "x", datetime(2026, 1, 1))

        with pytest.raises(RecommendationNotFound):
            update_recommendation(db, h2.id, r.id, RecommendationUpdate(recommended_action="y"))
        with pytest.raises(RecommendationNotFound):
            delete_recommendation(db, h2.id, r.id)
    finally:
        db.close()


def test_delete_removes_row():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        r = _rec(db, h.id, "low", "x", datetime(2026, 1, 1))
        rid = r.id
        delete_recommendation(db, h.id, rid)
        assert db.scalar(select(MaintenanceRecommendation).where(MaintenanceRecommendation.id == rid)) is None
    finally:
        db.close()


def test_out_schema_reads_rows():
    db = SessionLocal()
    try:
        h = _mk_house(db)
        r = _rec(db, h.id, "high", "x", datetime(2026, 1, 1))
        out = RecommendationOut.model_validate(r)
        assert out.risk_level.value == "high"
        assert out.is_resolved is False
    finally:
        db.close()


def test_rejected_cost_range_leaves_row_untouched():
    db = SessionLocal()
    try:
        h = _mk_house(db, "費用邸")
        a = _rec(db, h.id, "medium", "外壁の補修", datetime(2026, 1, 1))
        b = _rec(db, h.id, "low", "床の点検", datetime(2026, 1, 2))
        update_recommendation(db, h.id, a.id, RecommendationUpdate(estimated_cost_min=100))

        with pytest.raises(ValueError):
            update_recommendation(
                db, h.id, a.id, RecommendationUpdate(estimated_cost_max=10, description="edited")
            )

        # a later commit on the same session must not carry the rejected edit
        resolve_recommendation(db, h.id, b.id)
        db.expire_all()
        row = db.get(MaintenanceRecommendation, a.id)
        assert row.description == "外壁の補修"
        assert row.estimated_cost_min == 100
        assert row.estimated_cost_max is None
    finally:
        db.close()
