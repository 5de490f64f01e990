"""Per-weekday busy periods saved by a student."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from smart_planner.db.base import Base
from smart_planner.db.types import JSONBCompat


class PlannerDaySetting(Base):
    __tablename__ = "smart_planner_settings"
    __table_args__ = (
        UniqueConstraint("user_id", "day_of_week", name="uq_smart_planner_settings_user_day"),
        Index("ix_smart_planner_settings_user_id", "user_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False)
    day_of_week = Column(String(16), nullable=False)
    school_start = Column(Text, nullable=True)
    school_end = Column(Text, nullable=True)
    rest_start = Column(Text, nullable=True)
    rest_end = Column(Text, nullable=True)
    dinner_start = Column(Text, nullable=True)
    dinner_end = Column(Text, nullable=True)
    # [{"name": ..., "start": "HH:MM", "end": "HH:MM"}]
    extra_periods = Column(JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
