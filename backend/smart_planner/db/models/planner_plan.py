"""Generated weekly plans, one per student and ISO week."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from smart_planner.db.base import Base
from smart_planner.db.types import JSONBCompat


class PlannerPlan(Base):
    __tablename__ = "smart_planner_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "week_index", "year", name="uq_smart_planner_plans_user_week"),
        Index("ix_smart_planner_plans_user_id", "user_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False)
    week_index = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    plan_data = Column(JSONBCompat, nullable=False, default=dict)
    source = Column(String(16), nullable=False, default="deterministic")
    fallback_used = Column(Boolean, nullable=False, server_default=sa_text("false"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
