# backend/house_health/models.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Houses / components
# -----------------------------
class House(Base):
    __tablename__ = "houses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    built_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    structure_type: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")  # wood|steel|rc|src|unknown

    # written back by the health recompute
    health_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    health_scored_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    components: Mapped[List["HouseComponent"]] = relationship(back_populates="house", cascade="all, delete-orphan")
    recommendations: Mapped[List["MaintenanceRecommendation"]] = relationship(
        back_populates="house", cascade="all, delete-orphan"
    )


class HouseComponent(Base):
    __tablename__ = "house_components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    house_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    subcategory: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    model_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    installed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expected_lifespan_years: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    warranty_years: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    warranty_expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_inspection_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    replacement_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    condition_score: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    house: Mapped["House"] = relationship(back_populates="components")


class MaintenanceRecommendation(Base):
    __tablename__ = "maintenance_recommendations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    house_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("house_components.id", ondelete="SET NULL"), nullable=True, index=True
    )

    risk_level: Mapped[str] = mapped_column(String(10), nullable=False)  # high|medium|low
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    recommended_action: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    estimated_cost_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_cost_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    is_resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    house: Mapped["House"] = relationship(back_populates="recommendations")

    def model_dump(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "house_id": self.house_id,
            "component_id": self.component_id,
            "risk_level": self.risk_level,
            "description": self.description,
            "recommended_action": self.recommended_action,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "estimated_cost_min": self.estimated_cost_min,
            "estimated_cost_max": self.estimated_cost_max,
            "is_resolved": bool(self.is_resolved),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# At most one open recommendation per (house, description).
# Resolved rows are history and may repeat.
Index(
    "uq_maintenance_recommendations_open_description",
    MaintenanceRecommendation.house_id,
    MaintenanceRecommendation.description,
    unique=True,
    sqlite_where=MaintenanceRecommendation.is_resolved == false(),
    postgresql_where=MaintenanceRecommendation.is_resolved == false(),
)


class HouseLock(Base):
    __tablename__ = "house_locks"
    __table_args__ = (UniqueConstraint("house_id", "lock_key", name="uq_house_locks_house_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    house_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    lock_key: Mapped[str] = mapped_column(String(80), nullable=False)
    owner: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
