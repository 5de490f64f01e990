"""Weekly study-plan engine: free-time computation, scheduling, optional enrichment."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from smart_planner.observability.metrics import log_metric
from smart_planner.observability.tracing import trace
from smart_planner.services.free_slots import extract_free_slots
from smart_planner.services.interval_normalizer import normalize_busy_periods
from smart_planner.services.plan_enrichment import EnrichmentError, OpenAIPlanEnricher
from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import (
    DayPlan,
    DaySchedule,
    FreeSlot,
    PlanningDay,
    SubjectSelection,
    TimeRange,
    Weekday,
    WeeklyPlan,
    WeeklySummary,
)
from smart_planner.services.subject_scheduler import focus_subjects, schedule_week
from smart_planner.services.time_utils import TimeFormatError, format_clock, parse_clock

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from smart_planner.core.config import Settings

logger = logging.getLogger(__name__)

SOURCE_AI = "ai"
SOURCE_DETERMINISTIC = "deterministic"


class PlanInputError(ValueError):
    """The caller broke the engine contract (e.g. a weekday is missing)."""


@dataclass(frozen=True)
class PlanningResult:
    plan: WeeklyPlan
    source: str
    fallback_used: bool
    fallback_reason: Optional[str] = None


def prepare_week(schedules: Iterable[DaySchedule], policy: PlannerPolicy) -> Tuple[PlanningDay, ...]:
    """Validate the week's schedules and compute busy and free time per day."""
    by_day: Dict[Weekday, DaySchedule] = {}
    for schedule in schedules:
        day = schedule.day_of_week
        if day not in policy.planning_days:
            raise PlanInputError(f"{day.value} is not a planning day")
        if day in by_day:
            raise PlanInputError(f"Duplicate schedule for {day.value}")
        by_day[day] = schedule

    missing = [day.value for day in policy.planning_days if day not in by_day]
    if missing:
        raise PlanInputError(f"Missing schedules for: {', '.join(missing)}")

    prepared: List[PlanningDay] = []
    for day in policy.planning_days:
        schedule = by_day[day]
        busy = normalize_busy_periods(schedule, policy)
        prepared.append(
            PlanningDay(
                day=day,
                school_time=_school_time(schedule),
                busy=tuple(busy),
                free_slots=tuple(extract_free_slots(busy, policy)),
            )
        )
    return tuple(prepared)


def build_deterministic_plan(
    days: Sequence[PlanningDay],
    subjects: Sequence[SubjectSelection],
    week_index: int,
    policy: PlannerPolicy,
) -> WeeklyPlan:
    sessions = schedule_week({day.day: day.free_slots for day in days}, subjects, week_index, policy)
    return WeeklyPlan(
        week_index=week_index,
        timezone=policy.timezone_label,
        days=tuple(
            DayPlan(day=day.day, school_time=day.school_time, study_sessions=sessions.get(day.day, ()))
            for day in days
        ),
        weekly_summary=WeeklySummary(
            focus_subjects=focus_subjects(subjects, policy),
            ai_tip=policy.default_tip,
        ),
    )


def generate_plan(
    schedules: Sequence[DaySchedule],
    subjects: Sequence[SubjectSelection],
    week_index: int,
    *,
    policy: Optional[PlannerPolicy] = None,
    enricher: Optional[OpenAIPlanEnricher] = None,
) -> PlanningResult:
    """
    Produce the weekly plan for one student.

    The deterministic schedule is always computed first. When an enricher is
    supplied its output replaces the schedule only if it validates; any
    failure is logged and reported through ``fallback_used``.
    """
    policy = policy or PlannerPolicy()
    subjects = tuple(subjects)
    days = prepare_week(schedules, policy)

    metadata = {
        "week_index": week_index,
        "subject_count": len(subjects),
        "free_slot_count": sum(len(day.free_slots) for day in days),
        "enrichment": enricher is not None,
    }
    with trace("smart_plan.generate", metadata=metadata) as planning_trace:
        skeleton = build_deterministic_plan(days, subjects, week_index, policy)
        result = _enrich_or_fallback(skeleton, days, subjects, week_index, policy, enricher)
        if planning_trace:
            planning_trace.update(
                metadata={
                    **metadata,
                    "source": result.source,
                    "fallback_used": result.fallback_used,
                    "session_count": sum(len(day.study_sessions) for day in result.plan.days),
                }
            )
    return result


class SmartPlanEngine:
    """Binds a policy and an optional enricher so callers only pass the week's data."""

    def __init__(
        self,
        policy: Optional[PlannerPolicy] = None,
        enricher: Optional[OpenAIPlanEnricher] = None,
    ) -> None:
        self.policy = policy or PlannerPolicy()
        self.enricher = enricher

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SmartPlanEngine":
        return cls(policy=PlannerPolicy.from_settings(settings), enricher=OpenAIPlanEnricher.from_settings(settings))

    def free_slots(self, schedule: DaySchedule) -> List[FreeSlot]:
        return extract_free_slots(normalize_busy_periods(schedule, self.policy), self.policy)

    def generate(
        self,
        schedules: Sequence[DaySchedule],
        subjects: Sequence[SubjectSelection],
        week_index: int,
    ) -> PlanningResult:
        return generate_plan(schedules, subjects, week_index, policy=self.policy, enricher=self.enricher)


def _enrich_or_fallback(
    skeleton: WeeklyPlan,
    days: Sequence[PlanningDay],
    subjects: Sequence[SubjectSelection],
    week_index: int,
    policy: PlannerPolicy,
    enricher: Optional[OpenAIPlanEnricher],
) -> PlanningResult:
    if enricher is None or not subjects:
        return PlanningResult(plan=skeleton, source=SOURCE_DETERMINISTIC, fallback_used=False)

    start = perf_counter()
    reason: Optional[str] = None
    try:
        with trace("smart_plan.enrich", metadata={"week_index": week_index, "model": enricher.model}):
            enriched = enricher.enrich(days, subjects, week_index, skeleton, policy)
    except EnrichmentError as exc:
        reason = str(exc)
        logger.info("Plan enrichment unusable, using deterministic schedule: %s", reason)
    except Exception as exc:
        reason = f"unexpected enrichment failure: {exc}"
        logger.warning("Plan enrichment crashed, using deterministic schedule", exc_info=True)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("smart_plan.enrich.latency_ms", latency_ms, metadata={"week_index": week_index})
    log_metric("smart_plan.enrich.fallback_used", 1 if reason else 0, metadata={"week_index": week_index})
    if reason is not None:
        return PlanningResult(plan=skeleton, source=SOURCE_DETERMINISTIC, fallback_used=True, fallback_reason=reason)
    return PlanningResult(plan=enriched, source=SOURCE_AI, fallback_used=False)


def _school_time(schedule: DaySchedule) -> Optional[TimeRange]:
    school = schedule.school
    if school is None or not school.is_set:
        return None
    try:
        start, end = parse_clock(school.start), parse_clock(school.end)
    except TimeFormatError:
        return None
    if start > end:
        return None
    return TimeRange(start=format_clock(start), end=format_clock(end))
