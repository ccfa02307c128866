# backend/house_health/services/locks_service.py
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import HouseLock


def _now() -> datetime:
    return datetime.utcnow()


def _lock_row(house_id: int, lock_key: str):
    return (HouseLock.house_id == int(house_id), HouseLock.lock_key == lock_key)


def acquire_lock(db: Session, *, house_id: int, lock_key: str, owner: str | None, ttl_seconds: int) -> bool:
    """
    Per-house advisory lock, committed so other sessions see it.

    Taking over an expired lock or renewing our own is a single conditional
    UPDATE, so only one contender can win it.
    - returns True if the lock was taken or renewed
    - returns False if another owner holds it and it has not expired
    """
    now = _now()
    expires = now + timedelta(seconds=int(ttl_seconds))

    res = db.execute(
        update(HouseLock)
        .where(
            *_lock_row(house_id, lock_key),
            or_(
                HouseLock.expires_at.is_(None),
                HouseLock.expires_at <= now,
                HouseLock.owner == (owner or ""),
            ),
        )
        .values(owner=owner or "", expires_at=expires)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount:
        db.commit()
        return True

    db.add(HouseLock(house_id=int(house_id), lock_key=lock_key, owner=owner or "", expires_at=expires, created_at=now))
    try:
        db.commit()
    except IntegrityError:
        # row exists and is held by someone else, or a concurrent insert won
        db.rollback()
        return False
    return True


def release_lock(db: Session, *, house_id: int, lock_key: str, owner: str | None) -> bool:
    """Expire the lock if `owner` holds it. Returns False for someone else's lock."""
    q = update(HouseLock).where(*_lock_row(house_id, lock_key))
    if owner:
        q = q.where(HouseLock.owner == owner)
    res = db.execute(
        q.values(expires_at=_now() - timedelta(seconds=1)).execution_options(synchronize_session=False)
    )
    db.commit()
    if res.rowcount:
        return True
    # nothing to release when no row exists at all
    return db.scalar(select(HouseLock.id).where(*_lock_row(house_id, lock_key))) is None
