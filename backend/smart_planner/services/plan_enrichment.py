"""Best-effort AI enrichment of the deterministic weekly plan."""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import openai
from pydantic import ValidationError

from smart_planner.api.schemas.smart_plan import DayPlanPayload, WeeklyPlanPayload
from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import (
    DayPlan,
    Interval,
    PlanningDay,
    StudySession,
    SubjectSelection,
    Weekday,
    WeeklyPlan,
    WeeklySummary,
)
from smart_planner.services.subject_scheduler import order_subjects
from smart_planner.services.time_utils import TimeFormatError, format_clock, parse_clock

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from smart_planner.core.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful study planner AI that generates optimal study schedules. "
    "Always respond with valid JSON only."
)


class EnrichmentError(Exception):
    """The provider could not be reached or returned an unusable plan."""


class OpenAIPlanEnricher:
    """Ask an OpenAI-compatible chat model for an annotated version of the plan."""

    def __init__(self, client: Any, *, model: str, temperature: float = 0.7, timeout: float = 20.0) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: "Settings") -> Optional["OpenAIPlanEnricher"]:
        """Build an enricher, or None when enrichment is off or no key is configured."""
        if not settings.enrichment_enabled:
            return None
        if not settings.openai_api_key:
            logger.info("OPENAI_API_KEY missing; plans will use the deterministic scheduler only.")
            return None
        client = openai.OpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url or None,
            timeout=settings.enrichment_timeout_seconds,
            max_retries=0,
        )
        return cls(
            client,
            model=settings.planner_model,
            temperature=settings.enrichment_temperature,
            timeout=settings.enrichment_timeout_seconds,
        )

    def enrich(
        self,
        days: Sequence[PlanningDay],
        subjects: Sequence[SubjectSelection],
        week_index: int,
        skeleton: WeeklyPlan,
        policy: PlannerPolicy,
    ) -> WeeklyPlan:
        """Single attempt; raises EnrichmentError on any provider or validation failure."""
        user_prompt = build_user_prompt(days, subjects, week_index, skeleton, policy)
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                response_format={"type": "json_object"},
                timeout=self.timeout,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except openai.OpenAIError as exc:
            raise EnrichmentError(f"provider request failed: {exc}") from exc

        if not completion.choices:
            raise EnrichmentError("provider returned no choices")
        content = completion.choices[0].message.content or ""
        return parse_enriched_plan(extract_json_object(content), days, skeleton, policy)


def build_user_prompt(
    days: Sequence[PlanningDay],
    subjects: Sequence[SubjectSelection],
    week_index: int,
    skeleton: WeeklyPlan,
    policy: PlannerPolicy,
) -> str:
    ordered = order_subjects(subjects, policy)
    subject_lines = "\n".join(f"- {item.subject} ({item.priority.value} priority)" for item in ordered)
    day_lines = "\n".join(_describe_day(day) for day in days)
    structured_input = {
        "week_index": week_index,
        "subjects": [{"subject": item.subject, "priority": item.priority.value} for item in ordered],
        "days": [
            {"day": day.day.value, "free_slots": [slot.to_dict() for slot in day.free_slots]}
            for day in days
        ],
    }
    rules = [
        "ONLY schedule study sessions inside the FREE TIME SLOTS listed below.",
        "Never schedule during school, rest, dinner or other busy periods.",
        "Rotate subjects across days; avoid repeating a subject on consecutive days.",
        "Balance language subjects with calculation and social or science subjects.",
        f"Use week index {week_index} to vary which subjects lead the week.",
        "High priority subjects should appear more often than medium or low ones.",
        "Sessions in the same day must not overlap.",
    ]
    if policy.light_day is not None:
        rules.append(
            f"{policy.light_day.value} is a light day: at most one session, labelled '{policy.revision_label}'."
        )
    if policy.max_sessions_per_day is not None:
        rules.append(f"Schedule at most {policy.max_sessions_per_day} study sessions per day.")
    if policy.max_session_minutes:
        rules.append(f"Each study session should last at most {policy.max_session_minutes} minutes.")
    numbered_rules = "\n".join(f"{index}. {rule}" for index, rule in enumerate(rules, start=1))

    return (
        "Generate a weekly study plan from the information below.\n\n"
        f"IMPORTANT RULES:\n{numbered_rules}\n\n"
        f"SELECTED SUBJECTS (with priorities):\n{subject_lines or '- none'}\n\n"
        f"DAILY SCHEDULES AND FREE SLOTS:\n{day_lines}\n\n"
        f"Structured input JSON:\n{json.dumps(structured_input)}\n\n"
        "Respond with ONE JSON object with exactly this structure (times are HH:MM, 24-hour):\n"
        f"{json.dumps(skeleton.to_dict(), indent=2)}\n"
        "Keep 'week', 'timezone', every day and its 'school_time' unchanged. "
        "Rewrite 'study_sessions', 'focus_subjects' and give a short, encouraging 'ai_tip'. "
        "RESPOND ONLY WITH THE JSON, no other text."
    )


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first well-formed JSON object embedded in ``text``."""
    decoder = json.JSONDecoder()
    index = text.find("{")
    while index != -1:
        try:
            value, _ = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find("{", index + 1)
            continue
        if isinstance(value, dict):
            return value
        index = text.find("{", index + 1)
    raise EnrichmentError("no JSON object found in provider response")


def parse_enriched_plan(
    payload: Dict[str, Any],
    days: Sequence[PlanningDay],
    skeleton: WeeklyPlan,
    policy: PlannerPolicy,
) -> WeeklyPlan:
    """
    Validate a provider document against the week it was asked about.

    The shape must match the wire format exactly. Every planning day must be
    present once, and every session must sit inside one of that day's free
    slots without overlapping its neighbours. Week label, timezone and school
    times are always taken from ``skeleton``.
    """
    try:
        document = WeeklyPlanPayload.model_validate(payload)
    except ValidationError as exc:
        raise EnrichmentError(f"plan document failed validation ({exc.error_count()} errors)") from exc

    expected = {day.day: day for day in days}
    sessions_by_day: Dict[Weekday, Tuple[StudySession, ...]] = {}
    for day_doc in document.days:
        try:
            weekday = Weekday.parse(day_doc.day)
        except ValueError as exc:
            raise EnrichmentError(str(exc)) from exc
        if weekday not in expected:
            raise EnrichmentError(f"unexpected day {weekday.value}")
        if weekday in sessions_by_day:
            raise EnrichmentError(f"day {weekday.value} listed twice")
        sessions_by_day[weekday] = _validated_sessions(day_doc, expected[weekday], policy)

    missing = [day.value for day in expected if day not in sessions_by_day]
    if missing:
        raise EnrichmentError(f"plan is missing days: {', '.join(missing)}")

    focus = tuple(name.strip() for name in document.weekly_summary.focus_subjects if name.strip())
    tip = document.weekly_summary.ai_tip.strip() or policy.default_tip
    return WeeklyPlan(
        week_index=skeleton.week_index,
        timezone=skeleton.timezone,
        days=tuple(
            DayPlan(day=day.day, school_time=day.school_time, study_sessions=sessions_by_day[day.day])
            for day in days
        ),
        weekly_summary=WeeklySummary(focus_subjects=focus, ai_tip=tip),
    )


def _validated_sessions(
    day_doc: DayPlanPayload,
    planning_day: PlanningDay,
    policy: PlannerPolicy,
) -> Tuple[StudySession, ...]:
    label = planning_day.day.value
    sessions: List[StudySession] = []
    for entry in day_doc.study_sessions:
        try:
            start, end = parse_clock(entry.from_), parse_clock(entry.to)
        except TimeFormatError as exc:
            raise EnrichmentError(f"{label}: {exc}") from exc
        subject = entry.subject.strip()
        if not subject:
            raise EnrichmentError(f"{label}: session without a subject")
        if start >= end:
            raise EnrichmentError(f"{label}: empty session {entry.from_}-{entry.to}")
        if policy.max_session_minutes is not None and end - start > policy.max_session_minutes:
            raise EnrichmentError(
                f"{label}: session {entry.from_}-{entry.to} exceeds {policy.max_session_minutes} minutes"
            )
        interval = Interval(start, end)
        if not any(slot.contains(interval) for slot in planning_day.free_slots):
            raise EnrichmentError(f"{label}: session {entry.from_}-{entry.to} is outside the free slots")
        sessions.append(StudySession(start=start, end=end, subject=subject))

    sessions.sort(key=lambda session: session.start)
    for previous, current in zip(sessions, sessions[1:]):
        if current.start < previous.end:
            raise EnrichmentError(
                f"{label}: sessions overlap at {format_clock(current.start)}"
            )
    if planning_day.day == policy.light_day and len(sessions) > 1:
        raise EnrichmentError(f"{label}: light day allows a single session")
    if (
        planning_day.day != policy.light_day
        and policy.max_sessions_per_day is not None
        and len(sessions) > policy.max_sessions_per_day
    ):
        raise EnrichmentError(f"{label}: more than {policy.max_sessions_per_day} sessions")
    return tuple(sessions)


def _describe_day(day: PlanningDay) -> str:
    school = day.school_time
    school_text = f"{school.start} - {school.end}" if school else "Not set"
    if day.free_slots:
        slots_text = ", ".join(f"{format_clock(slot.start)}-{format_clock(slot.end)}" for slot in day.free_slots)
    else:
        slots_text = "No free time available"
    return f"{day.day.value}:\n- School: {school_text}\n- Free slots: {slots_text}"
