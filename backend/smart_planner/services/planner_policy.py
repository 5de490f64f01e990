"""Tunable constants for the study-plan engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from smart_planner.services.planning_models import Priority, Weekday
from smart_planner.services.time_utils import MINUTES_PER_DAY, parse_clock

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from smart_planner.core.config import Settings

DEFAULT_TIP = "Focus on high-priority subjects first and take regular breaks."


@dataclass(frozen=True)
class PlannerPolicy:
    """
    Day window, slot and rotation rules handed to the engine.

    ``day_start``/``day_end`` are minutes since midnight. ``planning_days``
    lists the weekdays a caller must supply, always kept in calendar order.
    ``light_day`` gets a single revision session; ``None`` disables the rule.
    Regular days keep at most ``max_sessions_per_day`` sessions (``None`` for no
    cap); ``max_session_minutes`` optionally shortens each session.
    """

    day_start: int = 6 * 60
    day_end: int = 22 * 60
    min_slot_minutes: int = 30
    priority_order: Tuple[Priority, ...] = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)
    planning_days: Tuple[Weekday, ...] = tuple(Weekday)
    light_day: Optional[Weekday] = Weekday.SATURDAY
    revision_label: str = "Revision"
    timezone_label: str = "EAT"
    default_tip: str = DEFAULT_TIP
    max_sessions_per_day: Optional[int] = 2
    max_session_minutes: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0 <= self.day_start < self.day_end <= MINUTES_PER_DAY:
            raise ValueError("day window must satisfy 00:00 <= day_start < day_end <= 24:00")
        if self.min_slot_minutes < 1:
            raise ValueError("min_slot_minutes must be positive")
        if set(self.priority_order) != set(Priority) or len(self.priority_order) != len(Priority):
            raise ValueError("priority_order must rank every priority exactly once")
        if not self.planning_days or len(set(self.planning_days)) != len(self.planning_days):
            raise ValueError("planning_days must be a non-empty list of distinct weekdays")
        if self.light_day is not None and self.light_day not in self.planning_days:
            raise ValueError("light_day must be one of the planning days")
        if self.max_sessions_per_day is not None and self.max_sessions_per_day < 1:
            raise ValueError("max_sessions_per_day must be positive when set")
        if self.max_session_minutes is not None and self.max_session_minutes < 1:
            raise ValueError("max_session_minutes must be positive when set")
        ordered_days = tuple(sorted(self.planning_days, key=lambda day: day.index))
        object.__setattr__(self, "planning_days", ordered_days)

    def priority_rank(self, priority: Priority) -> int:
        return self.priority_order.index(priority)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PlannerPolicy":
        light_day = settings.planner_light_day.strip() if settings.planner_light_day else ""
        return cls(
            day_start=parse_clock(settings.planner_day_start),
            day_end=parse_clock(settings.planner_day_end),
            min_slot_minutes=settings.planner_min_slot_minutes,
            light_day=Weekday.parse(light_day) if light_day else None,
            revision_label=settings.planner_revision_label,
            timezone_label=settings.planner_timezone_label,
            default_tip=settings.planner_default_tip,
            max_sessions_per_day=settings.planner_max_sessions_per_day or None,
            max_session_minutes=settings.planner_max_session_minutes,
        )
