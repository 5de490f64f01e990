"""Subjects a student wants in the plan, with their priority."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from smart_planner.db.base import Base


class PlannerSubject(Base):
    __tablename__ = "smart_planner_subjects"
    __table_args__ = (Index("ix_smart_planner_subjects_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False)
    subject = Column(Text, nullable=False)
    priority = Column(String(10), nullable=False, default="medium")
    # Preserves the student's ordering for equal priorities.
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
