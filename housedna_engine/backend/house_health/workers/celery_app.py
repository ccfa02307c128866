# backend/house_health/workers/celery_app.py
from __future__ import annotations

from celery import Celery

from ..config import settings

celery_app = Celery(
    "housedna",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["house_health.workers.health_tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    timezone="UTC",
)

celery_app.conf.task_routes = {
    "house_health.workers.health_tasks.*": {"queue": "health"},
}

# celery-beat
celery_app.conf.beat_schedule = {
    "sweep-house-health": {
        "task": "house_health.workers.health_tasks.sweep_house_health",
        "schedule": float(settings.health_sweep_interval_seconds),
    },
}
