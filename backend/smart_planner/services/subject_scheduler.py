"""Deterministic subject rotation over the week's free slots."""
from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Tuple

from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import FreeSlot, StudySession, SubjectSelection, Weekday


def order_subjects(subjects: Sequence[SubjectSelection], policy: PlannerPolicy) -> List[SubjectSelection]:
    """Stable sort by priority rank; ties keep the caller's order."""
    return sorted(subjects, key=lambda selection: policy.priority_rank(selection.priority))


def rotation_start(week_index: int, subject_count: int) -> int:
    """Offset of the first subject for ``week_index`` (never negative)."""
    if subject_count <= 0:
        return 0
    return week_index % subject_count


def schedule_week(
    week_slots: Mapping[Weekday, Sequence[FreeSlot]],
    subjects: Sequence[SubjectSelection],
    week_index: int,
    policy: PlannerPolicy,
) -> Dict[Weekday, Tuple[StudySession, ...]]:
    """
    Assign one subject per free slot across the week.

    A single cursor walks the priority-ordered subjects for the whole week and
    moves once per slot, so the rotation carries over day boundaries. The
    light day keeps only its first slot, relabelled as revision. Days are
    visited in calendar order.
    """
    ordered = order_subjects(subjects, policy)
    days = [day for day in policy.planning_days if day in week_slots]
    if not ordered:
        return {day: () for day in days}

    cursor = rotation_start(week_index, len(ordered))
    plan: Dict[Weekday, Tuple[StudySession, ...]] = {}
    for day in days:
        sessions: List[StudySession] = []
        for slot in week_slots[day]:
            subject = ordered[cursor % len(ordered)].subject
            cursor += 1
            sessions.append(_session_for_slot(slot, subject, policy))
        plan[day] = _apply_day_policy(day, sessions, policy)
    return plan


def focus_subjects(subjects: Sequence[SubjectSelection], policy: PlannerPolicy) -> Tuple[str, ...]:
    """Names of the top-priority subjects, first occurrence order, without repeats."""
    top = policy.priority_order[0]
    names = [selection.subject for selection in order_subjects(subjects, policy) if selection.priority == top]
    return tuple(dict.fromkeys(names))


def _session_for_slot(slot: FreeSlot, subject: str, policy: PlannerPolicy) -> StudySession:
    end = slot.end
    if policy.max_session_minutes is not None:
        end = min(slot.end, slot.start + policy.max_session_minutes)
    return StudySession(start=slot.start, end=end, subject=subject)


def _apply_day_policy(
    day: Weekday,
    sessions: List[StudySession],
    policy: PlannerPolicy,
) -> Tuple[StudySession, ...]:
    if day == policy.light_day:
        return tuple(
            StudySession(start=session.start, end=session.end, subject=policy.revision_label)
            for session in sessions[:1]
        )
    if policy.max_sessions_per_day is not None:
        return tuple(sessions[: policy.max_sessions_per_day])
    return tuple(sessions)
