# backend/house_health/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .domain.health.types import Category, RiskLevel, StructureType


# -------------------- Houses --------------------

class HouseCreate(BaseModel):
    name: str
    address: Optional[str] = None
    built_year: Optional[int] = Field(default=None, ge=1800, le=2200)
    structure_type: StructureType = StructureType.unknown


# -------------------- Components --------------------

class ComponentCreate(BaseModel):
    category: Category
    subcategory: Optional[str] = None
    product_name: Optional[str] = None
    manufacturer: Optional[str] = None
    model_number: Optional[str] = None

    installed_date: Optional[date] = None
    expected_lifespan_years: Optional[float] = Field(default=None, gt=0)
    warranty_years: Optional[int] = Field(default=None, ge=0)
    warranty_expiry_date: Optional[date] = None
    last_inspection_date: Optional[date] = None

    replacement_cost: Optional[float] = Field(default=None, ge=0)
    condition_score: int = Field(default=100, ge=0, le=100)


class ComponentUpdate(BaseModel):
    category: Optional[Category] = None
    subcategory: Optional[str] = None
    product_name: Optional[str] = None
    manufacturer: Optional[str] = None
    model_number: Optional[str] = None

    installed_date: Optional[date] = None
    expected_lifespan_years: Optional[float] = Field(default=None, gt=0)
    warranty_years: Optional[int] = Field(default=None, ge=0)
    warranty_expiry_date: Optional[date] = None
    last_inspection_date: Optional[date] = None

    replacement_cost: Optional[float] = Field(default=None, ge=0)
    condition_score: Optional[int] = Field(default=None, ge=0, le=100)


class ComponentOut(ComponentCreate):
    id: int
    house_id: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Recommendations --------------------

class RecommendationUpdate(BaseModel):
    risk_level: Optional[RiskLevel] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    recommended_action: Optional[str] = None
    due_date: Optional[date] = None
    estimated_cost_min: Optional[float] = Field(default=None, ge=0)
    estimated_cost_max: Optional[float] = Field(default=None, ge=0)
    is_resolved: Optional[bool] = None

    @model_validator(mode="after")
    def _cost_range(self):
        lo, hi = self.estimated_cost_min, self.estimated_cost_max
        if lo is not None and hi is not None and lo > hi:
            raise ValueError("estimated_cost_min must be <= estimated_cost_max")
        return self


class RecommendationOut(BaseModel):
    id: int
    house_id: int
    component_id: Optional[int] = None
    risk_level: RiskLevel
    description: str
    recommended_action: Optional[str] = None
    due_date: Optional[date] = None
    estimated_cost_min: Optional[float] = None
    estimated_cost_max: Optional[float] = None
    is_resolved: bool
    resolved_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Health score --------------------

class ScoreResultOut(BaseModel):
    house_id: int
    overall_score: int = Field(ge=0, le=100)
    category_scores: dict[Category, int]
    age_deduction: int = Field(ge=0)
    structure_bonus: int
    base_score: float
    recommendations: list[str]
    created: list[RecommendationOut] = Field(default_factory=list)
    unchanged_count: int = 0
    duplicate_count: int = 0
