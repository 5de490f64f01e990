"""Translate between request payloads and engine value types."""
from __future__ import annotations

from typing import List, Optional, Sequence

from smart_planner.api.schemas.smart_plan import (
    DaySchedulePayload,
    NamedPeriodPayload,
    SubjectSelectionPayload,
)
from smart_planner.services.planning_models import (
    DaySchedule,
    NamedPeriod,
    Priority,
    SubjectSelection,
    TimeRange,
    Weekday,
)


def schedule_from_payload(payload: DaySchedulePayload) -> DaySchedule:
    """Raises ValueError for an unknown day name."""
    return DaySchedule(
        day_of_week=Weekday.parse(payload.day_of_week),
        school=_time_range(payload.school_start, payload.school_end),
        rest=_time_range(payload.rest_start, payload.rest_end),
        dinner=_time_range(payload.dinner_start, payload.dinner_end),
        extra=tuple(
            NamedPeriod(name=item.name, period=TimeRange(start=item.start, end=item.end))
            for item in payload.extra_periods
        ),
    )


def schedules_from_payload(payloads: Sequence[DaySchedulePayload]) -> List[DaySchedule]:
    return [schedule_from_payload(payload) for payload in payloads]


def schedule_to_payload(schedule: DaySchedule) -> DaySchedulePayload:
    school = schedule.school or TimeRange()
    rest = schedule.rest or TimeRange()
    dinner = schedule.dinner or TimeRange()
    return DaySchedulePayload(
        day_of_week=schedule.day_of_week.value,
        school_start=school.start,
        school_end=school.end,
        rest_start=rest.start,
        rest_end=rest.end,
        dinner_start=dinner.start,
        dinner_end=dinner.end,
        extra_periods=[
            NamedPeriodPayload(name=item.name, start=item.period.start, end=item.period.end)
            for item in schedule.extra
        ],
    )


def subjects_from_payload(payloads: Sequence[SubjectSelectionPayload]) -> List[SubjectSelection]:
    return [SubjectSelection(subject=item.subject.strip(), priority=Priority(item.priority)) for item in payloads]


def subjects_to_payload(subjects: Sequence[SubjectSelection]) -> List[SubjectSelectionPayload]:
    return [SubjectSelectionPayload(subject=item.subject, priority=item.priority.value) for item in subjects]


def _time_range(start: Optional[str], end: Optional[str]) -> Optional[TimeRange]:
    if not start and not end:
        return None
    return TimeRange(start=start or None, end=end or None)
