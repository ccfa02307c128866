# backend/house_health/domain/health/reconcile.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .types import Candidate


@dataclass(frozen=True)
class ReconcileResult:
    house_id: int
    to_create: list[Candidate] = field(default_factory=list)
    # existing open records that already cover a candidate
    unchanged: list[Any] = field(default_factory=list)
    # candidates dropped, including same-pass duplicates
    skipped: list[Candidate] = field(default_factory=list)


def _get(it: Any, key: str, default=None):
    if isinstance(it, dict):
        return it.get(key, default)
    return getattr(it, key, default)


def normalize_description(desc: Optional[str]) -> str:
    return (desc or "").strip()


def reconcile(house_id: int, candidates: Iterable[Candidate], existing_open: Iterable[Any]) -> ReconcileResult:
    """
    Set-membership diff keyed by description.

    - Resolved records never block a candidate (a recurring issue is re-flagged).
    - Existing open records are never updated or removed here.
    - Two identical candidates in one pass yield a single create.

    Works with MaintenanceRecommendation rows and dict-like records.
    """
    open_by_desc: dict[str, Any] = {}
    for rec in existing_open:
        if bool(_get(rec, "is_resolved", False)):
            continue
        key = normalize_description(_get(rec, "description"))
        open_by_desc.setdefault(key, rec)

    seen = set(open_by_desc)
    to_create: list[Candidate] = []
    unchanged: list[Any] = []
    unchanged_ids: set[int] = set()
    skipped: list[Candidate] = []

    for cand in candidates:
        key = normalize_description(cand.description)
        if key in seen:
            skipped.append(cand)
            rec = open_by_desc.get(key)
            if rec is not None and id(rec) not in unchanged_ids:
                unchanged_ids.add(id(rec))
                unchanged.append(rec)
            continue
        seen.add(key)
        to_create.append(cand)

    return ReconcileResult(house_id=int(house_id), to_create=to_create, unchanged=unchanged, skipped=skipped)
