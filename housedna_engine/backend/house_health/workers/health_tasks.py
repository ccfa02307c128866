# backend/house_health/workers/health_tasks.py
from __future__ import annotations

import logging
import random

from ..db import SessionLocal
from ..services.health_service import (
    HouseNotFound,
    RecomputeLocked,
    recompute_house_health,
    sweep_house_health as _sweep_house_health,
)
from .celery_app import celery_app

log = logging.getLogger("house_health.workers")


def _backoff_seconds(retries: int, base: int = 2, cap: int = 60) -> int:
    """
    Exponential backoff with jitter.
    retries is the current retry count (0 for first retry attempt).
    """
    delay = min(cap, base * (2 ** max(0, int(retries))))

    # jitter: +/- 20%
    jitter = int(delay * 0.2)
    if jitter > 0:
        delay = max(1, delay + random.randint(-jitter, jitter))
    return delay


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=2,
    name="house_health.workers.health_tasks.recompute_house_health",
)
def recompute_house_health_task(self, house_id: int) -> dict:
    """
    Recompute after a component edit.

    A concurrent recompute holding the house lock is retried with backoff;
    when it finally gives up the other run has done the same work.
    """
    db = SessionLocal()
    try:
        out = recompute_house_health(db, int(house_id), actor="worker")
        return {
            "ok": True,
            "house_id": int(house_id),
            "overall_score": out.result.overall_score,
            "created": len(out.created),
            "duplicates": out.duplicates,
        }
    except HouseNotFound:
        return {"ok": False, "house_id": int(house_id), "reason": "house_not_found"}
    except RecomputeLocked as e:
        retries = int(getattr(self.request, "retries", 0) or 0)
        if retries >= int(self.max_retries or 0):
            log.info("house still locked; giving up", extra={"house_id": int(house_id)})
            return {"ok": True, "house_id": int(house_id), "skipped": "locked"}
        raise self.retry(exc=e, countdown=_backoff_seconds(retries))
    finally:
        db.close()


@celery_app.task(name="house_health.workers.health_tasks.sweep_house_health")
def sweep_house_health() -> dict:
    """Periodic sweep; scheduled by celery-beat."""
    db = SessionLocal()
    try:
        res = _sweep_house_health(db)
        return {"ok": not res["failed"], "sweep": res}
    finally:
        db.close()
