# backend/house_health/domain/health/policy.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .types import StructureType


def _default_structure_bonus() -> dict[StructureType, int]:
    return {
        StructureType.rc: 5,
        StructureType.src: 5,
        StructureType.steel: 0,
        StructureType.wood: -3,
        StructureType.unknown: 0,
    }


@dataclass(frozen=True)
class HealthPolicy:
    """
    Numeric knobs for the health engine.

    Engine functions take a policy instead of reading settings so that a
    recompute is a pure function of (components, context, now, policy).
    """

    high_risk_threshold: int = 50
    medium_risk_threshold: int = 70
    house_alert_threshold: int = 50

    decay_max_points: int = 40
    life_fraction_cap: float = 1.5
    warranty_penalty: int = 5
    inspection_penalty: int = 5
    inspection_stale_months: int = 24
    warranty_notice_days: int = 90

    age_points_per_decade: int = 2
    age_deduction_cap: int = 20

    structure_bonus: dict[StructureType, int] = field(default_factory=_default_structure_bonus)

    @classmethod
    def from_settings(cls, s: Any) -> "HealthPolicy":
        return cls(
            high_risk_threshold=int(s.health_high_risk_threshold),
            medium_risk_threshold=int(s.health_medium_risk_threshold),
            house_alert_threshold=int(s.health_house_alert_threshold),
            decay_max_points=int(s.health_decay_max_points),
            life_fraction_cap=float(s.health_life_fraction_cap),
            warranty_penalty=int(s.health_warranty_penalty),
            inspection_penalty=int(s.health_inspection_penalty),
            inspection_stale_months=int(s.health_inspection_stale_months),
            warranty_notice_days=int(s.health_warranty_notice_days),
            age_points_per_decade=int(s.health_age_points_per_decade),
            age_deduction_cap=int(s.health_age_deduction_cap),
        )


DEFAULT_POLICY = HealthPolicy()
