# backend/house_health/domain/health/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional


class Category(str, Enum):
    roof = "roof"
    exterior_wall = "exterior_wall"
    plumbing = "plumbing"
    electrical = "electrical"
    hvac = "hvac"
    flooring = "flooring"
    waterproofing = "waterproofing"
    other = "other"


class StructureType(str, Enum):
    wood = "wood"
    steel = "steel"
    rc = "rc"
    src = "src"
    unknown = "unknown"


class RiskLevel(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


# display/sort priority: high first
RISK_PRIORITY = {RiskLevel.high: 0, RiskLevel.medium: 1, RiskLevel.low: 2}

CATEGORY_NAMES_JA = {
    Category.roof: "屋根",
    Category.exterior_wall: "外壁",
    Category.plumbing: "給排水設備",
    Category.electrical: "電気設備",
    Category.hvac: "空調設備",
    Category.flooring: "床材",
    Category.waterproofing: "防水",
    Category.other: "その他",
}


class UnknownCategoryError(ValueError):
    pass


class UnknownStructureTypeError(ValueError):
    pass


def coerce_category(raw: Any) -> Category:
    """
    Strict: an unrecognized category rejects the whole recompute
    instead of silently landing in `other`.
    """
    if isinstance(raw, Category):
        return raw
    try:
        return Category(str(raw).strip().lower())
    except ValueError:
        raise UnknownCategoryError(f"unknown component category: {raw!r}") from None


def coerce_structure_type(raw: Any) -> StructureType:
    """None means the caller never recorded it; anything else must be a known value."""
    if raw is None:
        return StructureType.unknown
    if isinstance(raw, StructureType):
        return raw
    try:
        return StructureType(str(raw).strip().lower())
    except ValueError:
        raise UnknownStructureTypeError(f"unknown structure type: {raw!r}") from None


def category_name(category: Category) -> str:
    return CATEGORY_NAMES_JA[category]


@dataclass(frozen=True)
class ComponentSnapshot:
    category: Category
    condition_score: Optional[float] = None
    installed_date: Optional[date] = None
    expected_lifespan_years: Optional[float] = None
    warranty_expiry_date: Optional[date] = None
    last_inspection_date: Optional[date] = None
    component_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Any) -> "ComponentSnapshot":
        """Works with HouseComponent rows and dict payloads alike."""

        def get(key: str) -> Any:
            if isinstance(row, dict):
                return row.get(key)
            return getattr(row, key, None)

        return cls(
            category=coerce_category(get("category")),
            condition_score=get("condition_score"),
            installed_date=_as_date(get("installed_date")),
            expected_lifespan_years=get("expected_lifespan_years"),
            warranty_expiry_date=_as_date(get("warranty_expiry_date")),
            last_inspection_date=_as_date(get("last_inspection_date")),
            component_id=get("id") if get("id") is not None else get("component_id"),
        )


@dataclass(frozen=True)
class HouseContext:
    built_year: Optional[int] = None
    structure_type: StructureType = StructureType.unknown


@dataclass(frozen=True)
class Candidate:
    risk_level: RiskLevel
    description: str
    component_id: Optional[int] = None
    recommended_action: Optional[str] = None


@dataclass(frozen=True)
class ScoreResult:
    overall_score: int
    category_scores: dict[Category, int]
    age_deduction: int
    structure_bonus: int
    base_score: float
    component_scores: dict[int, int] = field(default_factory=dict)
    candidates: tuple[Candidate, ...] = ()

    @property
    def recommendations(self) -> list[str]:
        return [c.description for c in self.candidates]


def _as_date(v: Any) -> Optional[date]:
    if v is None:
        return None
    # datetime is a date subclass; keep only the calendar day
    if hasattr(v, "date") and callable(v.date):
        return v.date()
    if isinstance(v, date):
        return v
    return date.fromisoformat(str(v))
