"""Immutable value types flowing through the study-plan engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from smart_planner.services.time_utils import format_clock


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def parse(cls, value: "str | Weekday") -> "Weekday":
        """Accept enum members or case-insensitive day names."""
        if isinstance(value, Weekday):
            return value
        normalized = str(value).strip().capitalize()
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown day of week: {value!r}") from None

    @property
    def index(self) -> int:
        return list(Weekday).index(self)


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class TimeRange:
    """A caller-supplied ``HH:MM`` pair; either side may be missing."""

    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return bool(self.start and self.start.strip()) and bool(self.end and self.end.strip())


@dataclass(frozen=True)
class NamedPeriod:
    name: str
    period: TimeRange


@dataclass(frozen=True)
class DaySchedule:
    """Fixed commitments for one weekday."""

    day_of_week: Weekday
    school: Optional[TimeRange] = None
    rest: Optional[TimeRange] = None
    dinner: Optional[TimeRange] = None
    extra: Tuple[NamedPeriod, ...] = ()

    def named_periods(self) -> Iterator[NamedPeriod]:
        for name in ("school", "rest", "dinner"):
            period = getattr(self, name)
            if period is not None:
                yield NamedPeriod(name=name, period=period)
        yield from self.extra


@dataclass(frozen=True)
class SubjectSelection:
    subject: str
    priority: Priority = Priority.MEDIUM


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open ``[start, end)`` range in minutes since midnight."""

    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True, order=True)
class FreeSlot(Interval):
    """A gap in the planning window long enough to study in."""

    def to_dict(self) -> Dict[str, str]:
        return {"from": format_clock(self.start), "to": format_clock(self.end)}


@dataclass(frozen=True)
class StudySession:
    start: int
    end: int
    subject: str

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    def to_dict(self) -> Dict[str, str]:
        return {"from": format_clock(self.start), "to": format_clock(self.end), "subject": self.subject}


@dataclass(frozen=True)
class DayPlan:
    day: Weekday
    school_time: Optional[TimeRange]
    study_sessions: Tuple[StudySession, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        school = self.school_time or TimeRange()
        return {
            "day": self.day.value,
            "school_time": {"from": school.start or "", "to": school.end or ""},
            "study_sessions": [session.to_dict() for session in self.study_sessions],
        }


@dataclass(frozen=True)
class WeeklySummary:
    focus_subjects: Tuple[str, ...] = ()
    ai_tip: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"focus_subjects": list(self.focus_subjects), "ai_tip": self.ai_tip}


@dataclass(frozen=True)
class WeeklyPlan:
    week_index: int
    timezone: str
    days: Tuple[DayPlan, ...]
    weekly_summary: WeeklySummary = field(default_factory=WeeklySummary)

    @property
    def week_label(self) -> str:
        return f"Week {self.week_index}"

    def day(self, weekday: Weekday) -> DayPlan:
        for day_plan in self.days:
            if day_plan.day is weekday:
                return day_plan
        raise KeyError(weekday)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the wire field names consumed by the planner UI."""
        return {
            "week": self.week_label,
            "timezone": self.timezone,
            "days": [day_plan.to_dict() for day_plan in self.days],
            "weekly_summary": self.weekly_summary.to_dict(),
        }


@dataclass(frozen=True)
class PlanningDay:
    """One day of the week after normalization: merged busy time and free slots."""

    day: Weekday
    school_time: Optional[TimeRange]
    busy: Tuple[Interval, ...]
    free_slots: Tuple[FreeSlot, ...]
