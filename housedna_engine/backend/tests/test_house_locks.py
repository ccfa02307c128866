# backend/tests/test_house_locks.py
from __future__ import annotations

from datetime import datetime, timedelta

from house_health.db import SessionLocal
from house_health.models import HouseLock
from house_health.services.locks_service import acquire_lock, release_lock

KEY = "health_recompute"


def test_held_lock_is_exclusive_and_renewable_by_owner():
    db = SessionLocal()
    try:
        assert acquire_lock(db, house_id=1, lock_key=KEY, owner="run-a", ttl_seconds=60)
        assert not acquire_lock(db, house_id=1, lock_key=KEY, owner="run-b", ttl_seconds=60)
        assert acquire_lock(db, house_id=1, lock_key=KEY, owner="run-a", ttl_seconds=60)
        # other houses are independent
        assert acquire_lock(db, house_id=2, lock_key=KEY, owner="run-b", ttl_seconds=60)
    finally:
        db.close()


def test_expired_lock_is_taken_over_by_one_session_only():
    a = SessionLocal()
    b = SessionLocal()
    try:
        a.add(HouseLock(house_id=7, lock_key=KEY, owner="stale", expires_at=datetime.utcnow() - timedelta(minutes=5)))
        a.commit()

        assert acquire_lock(a, house_id=7, lock_key=KEY, owner="run-a", ttl_seconds=60)
        assert not acquire_lock(b, house_id=7, lock_key=KEY, owner="run-b", ttl_seconds=60)

        b.expire_all()
        row = b.query(HouseLock).filter_by(house_id=7, lock_key=KEY).one()
        assert row.owner == "run-a"
    finally:
        a.close()
        b.close()


def test_release_only_by_owner():
    db = SessionLocal()
    try:
        assert release_lock(db, house_id=3, lock_key=KEY, owner="nobody")
        assert acquire_lock(db, house_id=3, lock_key=KEY, owner="run-a", ttl_seconds=60)

        assert not release_lock(db, house_id=3, lock_key=KEY, owner="run-b")
        assert not acquire_lock(db, house_id=3, lock_key=KEY, owner="run-b", ttl_seconds=60)

        assert release_lock(db, house_id=3, lock_key=KEY, owner="run-a")
        assert acquire_lock(db, house_id=3, lock_key=KEY, owner="run-b", ttl_seconds=60)
    finally:
        db.close()
