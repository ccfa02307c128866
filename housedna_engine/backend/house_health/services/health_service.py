# backend/house_health/services/health_service.py
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, time as dtime
from typing import Any, Iterable, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.audit import audit_write
from ..domain.health import HealthPolicy, recompute, reconcile
from ..domain.health.schedule import ScheduleEntry, build_schedule
from ..domain.health.types import RISK_PRIORITY, Candidate, ComponentSnapshot, RiskLevel, ScoreResult
from ..logging_config import bind_recompute_id
from ..models import House, HouseComponent, MaintenanceRecommendation
from ..schemas import RecommendationUpdate
from .locks_service import acquire_lock, release_lock

log = logging.getLogger("house_health.recompute")

RECOMPUTE_LOCK_KEY = "health_recompute"

AsOf = Union[date, datetime]


class HouseNotFound(LookupError):
    pass


class RecommendationNotFound(LookupError):
    pass


class RecommendationConflict(Exception):
    """An edit would leave two open recommendations with one description."""


class RecomputeLocked(Exception):
    pass


@dataclass(frozen=True)
class RecomputeOutcome:
    house_id: int
    result: ScoreResult
    created: list[MaintenanceRecommendation] = field(default_factory=list)
    unchanged: list[MaintenanceRecommendation] = field(default_factory=list)
    duplicates: int = 0


def _utcnow() -> datetime:
    return datetime.utcnow()


def _as_datetime(v: AsOf) -> datetime:
    if isinstance(v, datetime):
        return v
    return datetime.combine(v, dtime.min)


def _json_log(payload: dict) -> None:
    log.info(json.dumps(payload, ensure_ascii=False, default=str))


def _policy(policy: Optional[HealthPolicy]) -> HealthPolicy:
    return policy or HealthPolicy.from_settings(settings)


def get_house_or_raise(db: Session, house_id: int) -> House:
    house = db.scalar(select(House).where(House.id == int(house_id)))
    if house is None:
        raise HouseNotFound(f"house {house_id} not found")
    return house


def _get_recommendation_or_raise(db: Session, *, house_id: int, recommendation_id: int) -> MaintenanceRecommendation:
    row = db.scalar(
        select(MaintenanceRecommendation).where(
            MaintenanceRecommendation.id == int(recommendation_id),
            MaintenanceRecommendation.house_id == int(house_id),
        )
    )
    if row is None:
        raise RecommendationNotFound(f"recommendation {recommendation_id} not found for house {house_id}")
    return row


def load_components(db: Session, house_id: int) -> list[HouseComponent]:
    return list(
        db.scalars(
            select(HouseComponent).where(HouseComponent.house_id == int(house_id)).order_by(HouseComponent.id.asc())
        ).all()
    )


def open_recommendations(db: Session, house_id: int) -> list[MaintenanceRecommendation]:
    return list(
        db.scalars(
            select(MaintenanceRecommendation).where(
                MaintenanceRecommendation.house_id == int(house_id),
                MaintenanceRecommendation.is_resolved.is_(False),
            )
        ).all()
    )


def _open_description_exists(db: Session, house_id: int, description: Optional[str]) -> bool:
    if description is None:
        return False
    found = db.scalar(
        select(MaintenanceRecommendation.id).where(
            MaintenanceRecommendation.house_id == int(house_id),
            MaintenanceRecommendation.description == description,
            MaintenanceRecommendation.is_resolved.is_(False),
        )
    )
    return found is not None


def persist_candidates(
    db: Session,
    *,
    house_id: int,
    candidates: Iterable[Candidate],
    actor: Optional[str] = None,
    now: Optional[AsOf] = None,
) -> tuple[list[MaintenanceRecommendation], int]:
    """
    Create sink for reconciled candidates.

    One commit per row: a duplicate-key violation (another recompute inserted
    the same open description first) rolls back only that row and is counted,
    not raised. Any other integrity failure propagates.
    """
    created_at = _as_datetime(now) if now is not None else _utcnow()
    created: list[MaintenanceRecommendation] = []
    duplicates = 0

    for cand in candidates:
        row = MaintenanceRecommendation(
            house_id=int(house_id),
            component_id=cand.component_id,
            risk_level=RiskLevel(cand.risk_level).value,
            description=cand.description,
            recommended_action=cand.recommended_action,
            is_resolved=False,
            resolved_at=None,
            created_at=created_at,
        )
        try:
            db.add(row)
            db.flush()
            audit_write(
                db,
                actor=actor,
                action="maintenance_recommendation.create",
                entity_type="MaintenanceRecommendation",
                entity_id=str(row.id),
                before=None,
                after=row.model_dump(),
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            if not _open_description_exists(db, house_id, cand.description):
                raise
            duplicates += 1
            log.info(
                "open recommendation already exists; create skipped",
                extra={"house_id": int(house_id)},
            )
            continue

        db.refresh(row)
        created.append(row)

    return created, duplicates


def recompute_house_health(
    db: Session,
    house_id: int,
    *,
    now: Optional[AsOf] = None,
    policy: Optional[HealthPolicy] = None,
    actor: Optional[str] = "system",
    use_lock: Optional[bool] = None,
) -> RecomputeOutcome:
    """
    Full recompute cycle for one house:
      score -> write health_score onto the house -> reconcile against open
      recommendations -> persist new ones.

    Existing recommendations are never touched. Safe to run concurrently for
    the same house: the open-description unique index absorbs insert races,
    and the optional per-house lock serializes whole cycles.
    """
    now = now or _utcnow()
    pol = _policy(policy)
    lock_enabled = settings.health_recompute_lock_enabled if use_lock is None else bool(use_lock)

    with bind_recompute_id() as rid:
        t0 = time.time()
        house = get_house_or_raise(db, house_id)

        if lock_enabled:
            ok = acquire_lock(
                db,
                house_id=house.id,
                lock_key=RECOMPUTE_LOCK_KEY,
                owner=rid,
                ttl_seconds=settings.health_recompute_lock_ttl_seconds,
            )
            if not ok:
                raise RecomputeLocked(f"health recompute already running for house {house.id}")

        try:
            components = load_components(db, house.id)
            result = recompute(house, components, now, pol)

            house.health_score = result.overall_score
            house.health_scored_at = _as_datetime(now)
            db.add(house)
            db.commit()

            existing = open_recommendations(db, house.id)
            diff = reconcile(house.id, result.candidates, existing)
            created, duplicates = persist_candidates(
                db, house_id=house.id, candidates=diff.to_create, actor=actor, now=now
            )
        finally:
            if lock_enabled:
                release_lock(db, house_id=int(house_id), lock_key=RECOMPUTE_LOCK_KEY, owner=rid)

        _json_log(
            {
                "event": "house_health_recomputed",
                "recompute_id": rid,
                "house_id": int(house_id),
                "overall_score": result.overall_score,
                "category_scores": {c.value: s for c, s in result.category_scores.items()},
                "candidates": len(result.candidates),
                "created": len(created),
                "unchanged": len(diff.unchanged),
                "duplicates": duplicates,
                "latency_ms": int((time.time() - t0) * 1000),
            }
        )

    return RecomputeOutcome(
        house_id=int(house_id),
        result=result,
        created=created,
        unchanged=list(diff.unchanged),
        duplicates=duplicates,
    )


def sweep_house_health(
    db: Session,
    *,
    now: Optional[AsOf] = None,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    """
    Scheduled recompute of every house. A failing or locked house is
    counted and logged; the sweep moves on.
    """
    now = now or _utcnow()
    house_ids = list(db.scalars(select(House.id).order_by(House.id.asc())).all())

    ok = 0
    locked = 0
    failed: list[int] = []
    for hid in house_ids:
        try:
            recompute_house_health(db, hid, now=now, policy=policy, actor="sweep")
            ok += 1
        except RecomputeLocked:
            locked += 1
        except Exception:
            db.rollback()
            failed.append(int(hid))
            log.exception("house health recompute failed during sweep", extra={"house_id": int(hid)})

    return {"houses": len(house_ids), "recomputed": ok, "locked": locked, "failed": failed}


def _sort_for_display(rows: Iterable[MaintenanceRecommendation]) -> list[MaintenanceRecommendation]:
    # newest first, then stable sort by risk so ties keep created_at desc
    by_recency = sorted(rows, key=lambda r: (r.created_at or datetime.min, r.id or 0), reverse=True)
    return sorted(by_recency, key=lambda r: RISK_PRIORITY.get(RiskLevel(r.risk_level), 9))


def list_recommendations(
    db: Session,
    house_id: int,
    *,
    include_resolved: bool = False,
    risk_level: Optional[Union[RiskLevel, str]] = None,
) -> list[MaintenanceRecommendation]:
    get_house_or_raise(db, house_id)

    q = select(MaintenanceRecommendation).where(MaintenanceRecommendation.house_id == int(house_id))
    if not include_resolved:
        q = q.where(MaintenanceRecommendation.is_resolved.is_(False))
    if risk_level is not None:
        q = q.where(MaintenanceRecommendation.risk_level == RiskLevel(risk_level).value)

    return _sort_for_display(db.scalars(q).all())


def resolve_recommendation(
    db: Session,
    house_id: int,
    recommendation_id: int,
    *,
    now: Optional[AsOf] = None,
    actor: Optional[str] = None,
) -> MaintenanceRecommendation:
    """Single-row read-modify-write; does not touch scores or other rows."""
    row = _get_recommendation_or_raise(db, house_id=house_id, recommendation_id=recommendation_id)
    if row.is_resolved:
        return row

    before = row.model_dump()
    row.is_resolved = True
    row.resolved_at = _as_datetime(now) if now is not None else _utcnow()
    db.add(row)
    db.flush()

    audit_write(
        db,
        actor=actor,
        action="maintenance_recommendation.resolve",
        entity_type="MaintenanceRecommendation",
        entity_id=str(row.id),
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)
    return row


def _open_duplicate_exists(db: Session, row: MaintenanceRecommendation, description: str) -> bool:
    other = db.scalar(
        select(MaintenanceRecommendation.id).where(
            MaintenanceRecommendation.house_id == row.house_id,
            MaintenanceRecommendation.description == description,
            MaintenanceRecommendation.is_resolved.is_(False),
            MaintenanceRecommendation.id != row.id,
        )
    )
    return other is not None


def update_recommendation(
    db: Session,
    house_id: int,
    recommendation_id: int,
    changes: RecommendationUpdate,
    *,
    now: Optional[AsOf] = None,
    actor: Optional[str] = None,
) -> MaintenanceRecommendation:
    """
    Partial update of a user-facing recommendation.
    Only fields present in `changes` are written; is_resolved and
    resolved_at always move together.
    """
    row = _get_recommendation_or_raise(db, house_id=house_id, recommendation_id=recommendation_id)
    data = changes.model_dump(exclude_unset=True)
    before = row.model_dump()

    new_desc = data.get("description") or row.description
    new_resolved = data.get("is_resolved", row.is_resolved)
    if new_resolved is None:
        new_resolved = row.is_resolved

    lo = data["estimated_cost_min"] if "estimated_cost_min" in data else row.estimated_cost_min
    hi = data["estimated_cost_max"] if "estimated_cost_max" in data else row.estimated_cost_max
    if lo is not None and hi is not None and lo > hi:
        raise ValueError("estimated_cost_min must be <= estimated_cost_max")

    if not new_resolved and _open_duplicate_exists(db, row, new_desc):
        raise RecommendationConflict(f"an open recommendation already reads {new_desc!r}")

    if "risk_level" in data and data["risk_level"] is not None:
        row.risk_level = RiskLevel(data["risk_level"]).value
    if "description" in data and data["description"] is not None:
        row.description = data["description"]
    for key in ("recommended_action", "due_date", "estimated_cost_min", "estimated_cost_max"):
        if key in data:
            setattr(row, key, data[key])

    if "is_resolved" in data and data["is_resolved"] is not None and bool(data["is_resolved"]) != bool(row.is_resolved):
        row.is_resolved = bool(data["is_resolved"])
        row.resolved_at = (_as_datetime(now) if now is not None else _utcnow()) if row.is_resolved else None

    try:
        db.add(row)
        db.flush()
    except IntegrityError:
        db.rollback()
        raise RecommendationConflict(f"an open recommendation already reads {new_desc!r}") from None

    audit_write(
        db,
        actor=actor,
        action="maintenance_recommendation.update",
        entity_type="MaintenanceRecommendation",
        entity_id=str(row.id),
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)
    return row


def delete_recommendation(
    db: Session,
    house_id: int,
    recommendation_id: int,
    *,
    actor: Optional[str] = None,
) -> None:
    row = _get_recommendation_or_raise(db, house_id=house_id, recommendation_id=recommendation_id)
    before = row.model_dump()
    db.delete(row)
    db.flush()

    audit_write(
        db,
        actor=actor,
        action="maintenance_recommendation.delete",
        entity_type="MaintenanceRecommendation",
        entity_id=str(recommendation_id),
        before=before,
        after=None,
    )
    db.commit()


def maintenance_schedule(db: Session, house_id: int, *, now: Optional[AsOf] = None) -> list[ScheduleEntry]:
    get_house_or_raise(db, house_id)
    snaps = [ComponentSnapshot.from_row(c) for c in load_components(db, house_id)]
    return build_schedule(snaps, now or _utcnow())
