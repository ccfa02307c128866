# backend/house_health/domain/health/__init__.py
from .aggregate import aggregate
from .decay import score_component
from .engine import recompute
from .policy import DEFAULT_POLICY, HealthPolicy
from .reconcile import ReconcileResult, reconcile
from .schedule import build_schedule, next_maintenance_date
from .synthesize import synthesize
from .types import (
    Candidate,
    Category,
    ComponentSnapshot,
    HouseContext,
    RiskLevel,
    ScoreResult,
    StructureType,
    UnknownCategoryError,
    UnknownStructureTypeError,
)

__all__ = [
    "Candidate",
    "Category",
    "ComponentSnapshot",
    "DEFAULT_POLICY",
    "HealthPolicy",
    "HouseContext",
    "ReconcileResult",
    "RiskLevel",
    "ScoreResult",
    "StructureType",
    "UnknownCategoryError",
    "UnknownStructureTypeError",
    "aggregate",
    "build_schedule",
    "next_maintenance_date",
    "recompute",
    "reconcile",
    "score_component",
    "synthesize",
]
