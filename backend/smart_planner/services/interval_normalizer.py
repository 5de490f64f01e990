"""Turn a day's named busy periods into merged minute intervals."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import DaySchedule, Interval, NamedPeriod
from smart_planner.services.time_utils import TimeFormatError, is_blank, parse_clock

logger = logging.getLogger(__name__)


def normalize_busy_periods(schedule: DaySchedule, policy: PlannerPolicy) -> List[Interval]:
    """
    Return the sorted, non-overlapping busy intervals of ``schedule``.

    Periods with a blank side are absent. Unparseable or inverted periods are
    logged and skipped so one bad entry never sinks the rest of the plan.
    Everything is clipped to the policy's day window.
    """
    intervals: List[Interval] = []
    for named in schedule.named_periods():
        interval = _to_interval(named, schedule, policy)
        if interval is not None:
            intervals.append(interval)
    return merge_intervals(intervals)


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Sort by start and merge intervals that overlap or touch."""
    merged: List[Interval] = []
    for interval in sorted(intervals, key=lambda item: (item.start, item.end)):
        if interval.duration <= 0:
            continue
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, interval.end))
        else:
            merged.append(Interval(interval.start, interval.end))
    return merged


def _to_interval(named: NamedPeriod, schedule: DaySchedule, policy: PlannerPolicy) -> Optional[Interval]:
    period = named.period
    if is_blank(period.start) or is_blank(period.end):
        return None

    try:
        start = parse_clock(period.start)
        end = parse_clock(period.end)
    except TimeFormatError as exc:
        logger.warning(
            "Skipping %s period on %s: %s",
            named.name,
            schedule.day_of_week.value,
            exc,
        )
        return None

    if start > end:
        logger.warning(
            "Skipping inverted %s period on %s (%s-%s)",
            named.name,
            schedule.day_of_week.value,
            period.start,
            period.end,
        )
        return None

    clipped_start = max(start, policy.day_start)
    clipped_end = min(end, policy.day_end)
    if clipped_start >= clipped_end:
        return None
    return Interval(clipped_start, clipped_end)
