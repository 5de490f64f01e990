from __future__ import annotations

from typing import List

from smart_planner.services.free_slots import extract_free_slots, free_slots_for_day
from smart_planner.services.interval_normalizer import normalize_busy_periods
from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import DaySchedule, FreeSlot, Interval, NamedPeriod, TimeRange, Weekday

POLICY = PlannerPolicy()


def _slots(schedule: DaySchedule, policy: PlannerPolicy = POLICY) -> List[dict]:
    return [slot.to_dict() for slot in free_slots_for_day(schedule, policy)]


def test_school_day_leaves_morning_and_evening() -> None:
    schedule = DaySchedule(Weekday.MONDAY, school=TimeRange("08:00", "15:00"))

    assert _slots(schedule) == [
        {"from": "06:00", "to": "08:00"},
        {"from": "15:00", "to": "22:00"},
    ]


def test_day_without_busy_periods_is_one_slot() -> None:
    assert _slots(DaySchedule(Weekday.SUNDAY)) == [{"from": "06:00", "to": "22:00"}]


def test_gaps_shorter_than_minimum_are_dropped() -> None:
    schedule = DaySchedule(
        Weekday.MONDAY,
        school=TimeRange("06:20", "15:00"),
        rest=TimeRange("15:20", "18:00"),
    )

    assert _slots(schedule) == [{"from": "18:00", "to": "22:00"}]


def test_gap_of_exactly_minimum_is_kept() -> None:
    schedule = DaySchedule(Weekday.MONDAY, school=TimeRange("06:30", "21:30"))

    assert _slots(schedule) == [
        {"from": "06:00", "to": "06:30"},
        {"from": "21:30", "to": "22:00"},
    ]


def test_fully_blocked_day_has_no_slots() -> None:
    schedule = DaySchedule(Weekday.MONDAY, school=TimeRange("06:00", "22:00"))

    assert free_slots_for_day(schedule, POLICY) == []


def test_busy_period_after_day_end_does_not_extend_slots() -> None:
    schedule = DaySchedule(
        Weekday.MONDAY,
        school=TimeRange("08:00", "15:00"),
        extra=(NamedPeriod("late practice", TimeRange("23:00", "23:30")),),
    )

    assert _slots(schedule)[-1] == {"from": "15:00", "to": "22:00"}


def test_custom_window_and_minimum() -> None:
    policy = PlannerPolicy(day_start=8 * 60, day_end=20 * 60, min_slot_minutes=60)
    schedule = DaySchedule(
        Weekday.MONDAY,
        school=TimeRange("09:00", "15:00"),
        dinner=TimeRange("19:30", "20:00"),
        rest=TimeRange("15:30", "16:00"),
    )

    assert _slots(schedule, policy) == [
        {"from": "08:00", "to": "09:00"},
        {"from": "16:00", "to": "19:30"},
    ]


def test_extract_free_slots_tolerates_unsorted_input() -> None:
    busy = [Interval(1140, 1200), Interval(480, 900)]

    assert extract_free_slots(busy, POLICY) == [
        FreeSlot(360, 480),
        FreeSlot(900, 1140),
        FreeSlot(1200, 1320),
    ]


def test_busy_and_free_cover_the_window_without_overlap() -> None:
    schedule = DaySchedule(
        Weekday.WEDNESDAY,
        school=TimeRange("07:45", "14:10"),
        rest=TimeRange("14:25", "15:00"),
        dinner=TimeRange("19:00", "19:45"),
        extra=(NamedPeriod("football", TimeRange("16:00", "17:30")),),
    )
    busy = normalize_busy_periods(schedule, POLICY)
    free = extract_free_slots(busy, POLICY)

    pieces = sorted([(item.start, item.end) for item in busy] + [(item.start, item.end) for item in free])
    cursor = POLICY.day_start
    for start, end in pieces:
        assert start >= cursor, "busy and free intervals must not overlap"
        # anything left uncovered must be a gap too short to study in
        assert start - cursor < POLICY.min_slot_minutes
        cursor = end
    assert POLICY.day_end - cursor < POLICY.min_slot_minutes
    assert all(slot.duration >= POLICY.min_slot_minutes for slot in free)
    assert free == sorted(free)
