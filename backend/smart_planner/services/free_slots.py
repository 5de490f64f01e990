"""Carve free study slots out of the planning day window."""
from __future__ import annotations

from typing import List, Sequence

from smart_planner.services.interval_normalizer import normalize_busy_periods
from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import DaySchedule, FreeSlot, Interval


def extract_free_slots(busy: Sequence[Interval], policy: PlannerPolicy) -> List[FreeSlot]:
    """Return the gaps between ``busy`` intervals that meet the minimum duration."""
    slots: List[FreeSlot] = []
    cursor = policy.day_start
    for interval in sorted(busy, key=lambda item: item.start):
        if interval.start >= policy.day_end:
            break
        if interval.start - cursor >= policy.min_slot_minutes:
            slots.append(FreeSlot(cursor, interval.start))
        cursor = max(cursor, interval.end)

    if policy.day_end - cursor >= policy.min_slot_minutes:
        slots.append(FreeSlot(cursor, policy.day_end))
    return slots


def free_slots_for_day(schedule: DaySchedule, policy: PlannerPolicy) -> List[FreeSlot]:
    return extract_free_slots(normalize_busy_periods(schedule, policy), policy)
