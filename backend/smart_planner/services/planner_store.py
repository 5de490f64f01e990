"""Persistence of planner settings, subject choices and generated plans."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from smart_planner.db.models.planner_plan import PlannerPlan
from smart_planner.db.models.planner_setting import PlannerDaySetting
from smart_planner.db.models.planner_subject import PlannerSubject
from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import (
    DaySchedule,
    NamedPeriod,
    Priority,
    SubjectSelection,
    TimeRange,
    Weekday,
)
from smart_planner.services.smart_planner import SmartPlanEngine

logger = logging.getLogger(__name__)

WEEKEND = (Weekday.SATURDAY, Weekday.SUNDAY)
DEFAULT_SCHOOL = TimeRange("08:00", "15:00")
DEFAULT_REST = TimeRange("13:00", "14:00")
DEFAULT_DINNER = TimeRange("19:00", "20:00")


class MissingSubjectsError(ValueError):
    """A stored plan was requested for a student with no saved subjects."""


@dataclass
class StoredPlanResult:
    plan: PlannerPlan
    created: bool


def default_schedules(policy: PlannerPolicy) -> List[DaySchedule]:
    """Starter week: school on weekdays, rest and dinner every day."""
    return [
        DaySchedule(
            day_of_week=day,
            school=None if day in WEEKEND else DEFAULT_SCHOOL,
            rest=DEFAULT_REST,
            dinner=DEFAULT_DINNER,
        )
        for day in policy.planning_days
    ]


def load_schedules(db: Session, user_id: UUID) -> List[DaySchedule]:
    rows = db.query(PlannerDaySetting).filter(PlannerDaySetting.user_id == user_id).all()
    schedules = [_schedule_from_row(row) for row in rows]
    return sorted(schedules, key=lambda schedule: schedule.day_of_week.index)


def load_schedules_or_default(db: Session, user_id: UUID, policy: PlannerPolicy) -> Tuple[List[DaySchedule], bool]:
    """Return (schedules, is_default)."""
    schedules = load_schedules(db, user_id)
    if schedules:
        return schedules, False
    return default_schedules(policy), True


def save_schedules(db: Session, user_id: UUID, schedules: Sequence[DaySchedule]) -> List[DaySchedule]:
    """Replace every stored day for the user."""
    db.query(PlannerDaySetting).filter(PlannerDaySetting.user_id == user_id).delete(synchronize_session=False)
    for schedule in schedules:
        db.add(_row_from_schedule(user_id, schedule))
    db.commit()
    return load_schedules(db, user_id)


def load_subjects(db: Session, user_id: UUID) -> List[SubjectSelection]:
    rows = (
        db.query(PlannerSubject)
        .filter(PlannerSubject.user_id == user_id)
        .order_by(PlannerSubject.position.asc())
        .all()
    )
    return [SubjectSelection(subject=row.subject, priority=Priority(row.priority)) for row in rows]


def save_subjects(db: Session, user_id: UUID, subjects: Sequence[SubjectSelection]) -> List[SubjectSelection]:
    db.query(PlannerSubject).filter(PlannerSubject.user_id == user_id).delete(synchronize_session=False)
    for position, selection in enumerate(subjects):
        db.add(
            PlannerSubject(
                user_id=user_id,
                subject=selection.subject,
                priority=selection.priority.value,
                position=position,
            )
        )
    db.commit()
    return load_subjects(db, user_id)


def load_plan(db: Session, user_id: UUID, week_index: int, year: int) -> Optional[PlannerPlan]:
    return (
        db.query(PlannerPlan)
        .filter(
            PlannerPlan.user_id == user_id,
            PlannerPlan.week_index == week_index,
            PlannerPlan.year == year,
        )
        .first()
    )


def users_with_subjects(db: Session) -> List[UUID]:
    rows = db.query(PlannerSubject.user_id).distinct().all()
    return [row[0] for row in rows]


def run_smart_plan_for_user(
    db: Session,
    user_id: UUID,
    engine: SmartPlanEngine,
    *,
    week_index: int,
    year: int,
    force: bool = True,
) -> StoredPlanResult:
    """
    Generate and store the plan for one student and week.

    The stored plan for that week is replaced, unless ``force`` is False and
    one already exists, in which case it is returned untouched.
    """
    existing = load_plan(db, user_id, week_index, year)
    if existing is not None and not force:
        return StoredPlanResult(plan=existing, created=False)

    subjects = load_subjects(db, user_id)
    if not subjects:
        raise MissingSubjectsError("No subjects selected")
    schedules, is_default = load_schedules_or_default(db, user_id, engine.policy)
    if is_default:
        logger.debug("User %s has no saved schedule; planning with defaults", user_id)

    result = engine.generate(schedules, subjects, week_index)

    if existing is not None:
        db.delete(existing)
        db.flush()
    plan = PlannerPlan(
        user_id=user_id,
        week_index=week_index,
        year=year,
        plan_data=result.plan.to_dict(),
        source=result.source,
        fallback_used=result.fallback_used,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return StoredPlanResult(plan=plan, created=True)


def _schedule_from_row(row: PlannerDaySetting) -> DaySchedule:
    extra = tuple(
        NamedPeriod(name=item.get("name", "busy"), period=TimeRange(item.get("start"), item.get("end")))
        for item in (row.extra_periods or [])
    )
    return DaySchedule(
        day_of_week=Weekday.parse(row.day_of_week),
        school=_stored_range(row.school_start, row.school_end),
        rest=_stored_range(row.rest_start, row.rest_end),
        dinner=_stored_range(row.dinner_start, row.dinner_end),
        extra=extra,
    )


def _row_from_schedule(user_id: UUID, schedule: DaySchedule) -> PlannerDaySetting:
    school = schedule.school or TimeRange()
    rest = schedule.rest or TimeRange()
    dinner = schedule.dinner or TimeRange()
    return PlannerDaySetting(
        user_id=user_id,
        day_of_week=schedule.day_of_week.value,
        school_start=school.start,
        school_end=school.end,
        rest_start=rest.start,
        rest_end=rest.end,
        dinner_start=dinner.start,
        dinner_end=dinner.end,
        extra_periods=[
            {"name": item.name, "start": item.period.start, "end": item.period.end} for item in schedule.extra
        ],
    )


def _stored_range(start: Optional[str], end: Optional[str]) -> Optional[TimeRange]:
    if not start and not end:
        return None
    return TimeRange(start=start, end=end)
