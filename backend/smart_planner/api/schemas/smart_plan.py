"""Schemas for the smart study planner endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictStr, StringConstraints

SubjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _WireModel(BaseModel):
    """Plan documents reject unknown keys; string fields refuse coercion."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ClockRangePayload(_WireModel):
    from_: StrictStr = Field(alias="from")
    to: StrictStr


class StudySessionPayload(_WireModel):
    from_: StrictStr = Field(alias="from")
    to: StrictStr
    subject: StrictStr = Field(min_length=1)


class DayPlanPayload(_WireModel):
    day: StrictStr
    school_time: ClockRangePayload
    study_sessions: List[StudySessionPayload]


class WeeklySummaryPayload(_WireModel):
    focus_subjects: List[StrictStr]
    ai_tip: StrictStr = ""


class WeeklyPlanPayload(_WireModel):
    week: StrictStr
    timezone: StrictStr
    days: List[DayPlanPayload]
    weekly_summary: WeeklySummaryPayload


class NamedPeriodPayload(BaseModel):
    name: str = Field(..., min_length=1, description="Label such as 'tutoring' or 'football'.")
    start: Optional[str] = None
    end: Optional[str] = None


class DaySchedulePayload(BaseModel):
    day_of_week: str
    school_start: Optional[str] = None
    school_end: Optional[str] = None
    rest_start: Optional[str] = None
    rest_end: Optional[str] = None
    dinner_start: Optional[str] = None
    dinner_end: Optional[str] = None
    extra_periods: List[NamedPeriodPayload] = Field(default_factory=list)


class SubjectSelectionPayload(BaseModel):
    subject: SubjectName
    priority: Literal["high", "medium", "low"] = "medium"


class GeneratePlanRequest(BaseModel):
    schedules: List[DaySchedulePayload]
    subjects: List[SubjectSelectionPayload] = Field(default_factory=list)
    week_index: Optional[int] = Field(default=None, description="Rotation seed; defaults to the current ISO week.")


class PlanDistributionPayload(BaseModel):
    total_minutes: int
    minutes_by_subject: Dict[str, int]
    minutes_by_day: Dict[str, Dict[str, int]]


class GeneratePlanResponse(BaseModel):
    plan: WeeklyPlanPayload
    fallback_used: bool
    source: Literal["ai", "deterministic"]
    distribution: PlanDistributionPayload
    request_id: str


class PlannerSettingsRequest(BaseModel):
    user_id: UUID
    schedules: List[DaySchedulePayload]


class PlannerSettingsResponse(BaseModel):
    user_id: UUID
    schedules: List[DaySchedulePayload]
    is_default: bool
    request_id: str


class PlannerSubjectsRequest(BaseModel):
    user_id: UUID
    subjects: List[SubjectSelectionPayload]


class PlannerSubjectsResponse(BaseModel):
    user_id: UUID
    subjects: List[SubjectSelectionPayload]
    request_id: str


class SmartPlanRunRequest(BaseModel):
    user_id: UUID
    week_index: Optional[int] = None
    year: Optional[int] = None
    force: bool = True


class StoredPlanResponse(BaseModel):
    id: UUID
    user_id: UUID
    week_index: int
    year: int
    plan: WeeklyPlanPayload
    fallback_used: bool
    source: Literal["ai", "deterministic"]
    distribution: PlanDistributionPayload
    created_at: Optional[datetime] = None
    request_id: str
