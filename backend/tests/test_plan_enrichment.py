"""Tests for validating provider output against the week's free slots."""
from __future__ import annotations

import copy
import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from smart_planner.core.config import Settings
from smart_planner.services.plan_enrichment import (
    EnrichmentError,
    OpenAIPlanEnricher,
    build_user_prompt,
    extract_json_object,
    parse_enriched_plan,
)
from smart_planner.services.planner_policy import PlannerPolicy
from smart_planner.services.planning_models import (
    DaySchedule,
    Priority,
    SubjectSelection,
    TimeRange,
    Weekday,
)
from smart_planner.services.smart_planner import build_deterministic_plan, generate_plan, prepare_week

POLICY = PlannerPolicy()
SUBJECTS = [SubjectSelection("Math", Priority.HIGH), SubjectSelection("English", Priority.MEDIUM)]


def _schedules():
    schedules = []
    for day in Weekday:
        school = None if day in (Weekday.SATURDAY, Weekday.SUNDAY) else TimeRange("08:00", "15:00")
        schedules.append(DaySchedule(day, school=school, dinner=TimeRange("19:00", "20:00")))
    return schedules


@pytest.fixture()
def week():
    days = prepare_week(_schedules(), POLICY)
    skeleton = build_deterministic_plan(days, SUBJECTS, 4, POLICY)
    return days, skeleton


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(completions: _FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_valid_document_keeps_skeleton_header_and_school_times(week) -> None:
    days, skeleton = week
    document = skeleton.to_dict()
    document["week"] = "Week 99"
    document["timezone"] = "UTC"
    document["days"][0]["school_time"] = {"from": "07:00", "to": "16:00"}
    document["days"][0]["study_sessions"] = [
        {"from": "06:30", "to": "07:30", "subject": "English"},
        {"from": "15:00", "to": "16:30", "subject": "Math"},
    ]
    document["weekly_summary"] = {"focus_subjects": ["Math", " "], "ai_tip": "Review notes right after school."}

    plan = parse_enriched_plan(document, days, skeleton, POLICY)

    rendered = plan.to_dict()
    assert rendered["week"] == "Week 4"
    assert rendered["timezone"] == "EAT"
    assert rendered["days"][0]["school_time"] == {"from": "08:00", "to": "15:00"}
    assert rendered["days"][0]["study_sessions"][0] == {"from": "06:30", "to": "07:30", "subject": "English"}
    assert plan.weekly_summary.focus_subjects == ("Math",)
    assert plan.weekly_summary.ai_tip == "Review notes right after school."


def test_empty_tip_is_replaced_with_default(week) -> None:
    days, skeleton = week
    document = skeleton.to_dict()
    document["weekly_summary"]["ai_tip"] = "  "

    plan = parse_enriched_plan(document, days, skeleton, POLICY)

    assert plan.weekly_summary.ai_tip == POLICY.default_tip


def test_sessions_are_sorted_by_start(week) -> None:
    days, skeleton = week
    document = skeleton.to_dict()
    document["days"][1]["study_sessions"] = [
        {"from": "16:00", "to": "17:00", "subject": "Math"},
        {"from": "06:00", "to": "07:00", "subject": "English"},
    ]

    plan = parse_enriched_plan(document, days, skeleton, POLICY)

    assert [s.subject for s in plan.day(Weekday.TUESDAY).study_sessions] == ["English", "Math"]


def _mutations():
    def extra_key(doc):
        doc["mood"] = "great"

    def missing_summary(doc):
        del doc["weekly_summary"]

    def numeric_time(doc):
        doc["days"][0]["study_sessions"] = [{"from": 600, "to": "11:00", "subject": "Math"}]

    def unknown_day(doc):
        doc["days"][0]["day"] = "Funday"

    def repeated_day(doc):
        doc["days"][1]["day"] = "Monday"

    def missing_day(doc):
        doc["days"].pop()

    def malformed_time(doc):
        doc["days"][0]["study_sessions"] = [{"from": "6.00", "to": "07:00", "subject": "Math"}]

    def during_school(doc):
        doc["days"][0]["study_sessions"] = [{"from": "09:00", "to": "10:00", "subject": "Math"}]

    def across_slots(doc):
        doc["days"][0]["study_sessions"] = [{"from": "18:30", "to": "20:30", "subject": "Math"}]

    def overlapping(doc):
        doc["days"][0]["study_sessions"] = [
            {"from": "15:00", "to": "17:00", "subject": "Math"},
            {"from": "16:00", "to": "18:00", "subject": "English"},
        ]

    def inverted(doc):
        doc["days"][0]["study_sessions"] = [{"from": "17:00", "to": "16:00", "subject": "Math"}]

    def blank_subject(doc):
        doc["days"][0]["study_sessions"] = [{"from": "16:00", "to": "17:00", "subject": "  "}]

    def busy_light_day(doc):
        doc["days"][5]["study_sessions"] = [
            {"from": "06:00", "to": "07:00", "subject": "Revision"},
            {"from": "09:00", "to": "10:00", "subject": "Revision"},
        ]

    return [
        extra_key,
        missing_summary,
        numeric_time,
        unknown_day,
        repeated_day,
        missing_day,
        malformed_time,
        during_school,
        across_slots,
        overlapping,
        inverted,
        blank_subject,
        busy_light_day,
    ]


@pytest.mark.parametrize("mutate", _mutations(), ids=lambda fn: fn.__name__)
def test_invalid_documents_are_rejected(week, mutate) -> None:
    days, skeleton = week
    document = copy.deepcopy(skeleton.to_dict())
    mutate(document)

    with pytest.raises(EnrichmentError):
        parse_enriched_plan(document, days, skeleton, POLICY)


def test_extract_json_object_skips_surrounding_prose() -> None:
    text = 'Sure! Here is the plan {not json} and then ```json\n{"week": "Week 1", "days": []}\n``` enjoy'

    assert extract_json_object(text) == {"week": "Week 1", "days": []}


def test_extract_json_object_without_object_raises() -> None:
    with pytest.raises(EnrichmentError):
        extract_json_object("I could not build a plan [1, 2, 3]")


def test_prompt_lists_free_slots_and_light_day(week) -> None:
    days, skeleton = week

    prompt = build_user_prompt(days, SUBJECTS, 4, skeleton, POLICY)

    assert "Math (high priority)" in prompt
    assert "Monday:\n- School: 08:00 - 15:00\n- Free slots: 06:00-08:00, 15:00-19:00, 20:00-22:00" in prompt
    assert "Saturday is a light day" in prompt
    assert '"week_index": 4' in prompt


def test_enricher_sends_single_json_request(week) -> None:
    days, skeleton = week
    completions = _FakeCompletions(content="Here you go: " + json.dumps(skeleton.to_dict()))
    enricher = OpenAIPlanEnricher(_fake_client(completions), model="test-model", timeout=5.0)

    plan = enricher.enrich(days, SUBJECTS, 4, skeleton, POLICY)

    assert plan == skeleton
    assert len(completions.calls) == 1
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}
    assert call["timeout"] == 5.0
    assert call["messages"][0]["role"] == "system"


def test_provider_timeout_becomes_enrichment_error(week) -> None:
    days, skeleton = week
    timeout = openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    enricher = OpenAIPlanEnricher(_fake_client(_FakeCompletions(error=timeout)), model="test-model")

    with pytest.raises(EnrichmentError):
        enricher.enrich(days, SUBJECTS, 4, skeleton, POLICY)


def test_timeout_falls_back_through_generate_plan() -> None:
    timeout = openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    enricher = OpenAIPlanEnricher(_fake_client(_FakeCompletions(error=timeout)), model="test-model")

    result = generate_plan(_schedules(), SUBJECTS, 4, policy=POLICY, enricher=enricher)

    assert result.fallback_used is True
    assert result.source == "deterministic"
    assert result.plan.day(Weekday.MONDAY).study_sessions


def test_garbage_response_falls_back_through_generate_plan() -> None:
    enricher = OpenAIPlanEnricher(_fake_client(_FakeCompletions(content="no plan today")), model="test-model")

    result = generate_plan(_schedules(), SUBJECTS, 4, policy=POLICY, enricher=enricher)

    assert result.fallback_used is True


def test_from_settings_requires_key_and_flag() -> None:
    assert OpenAIPlanEnricher.from_settings(Settings(_env_file=None, openai_api_key=None)) is None
    assert (
        OpenAIPlanEnricher.from_settings(Settings(_env_file=None, openai_api_key="sk-test", enrichment_enabled=False))
        is None
    )

    enricher = OpenAIPlanEnricher.from_settings(
        Settings(_env_file=None, openai_api_key="sk-test", planner_model="gpt-4o-mini", enrichment_timeout_seconds=3)
    )

    assert enricher is not None
    assert enricher.model == "gpt-4o-mini"
    assert enricher.timeout == 3


def test_document_over_daily_session_cap_is_rejected(week) -> None:
    days, skeleton = week
    document = skeleton.to_dict()
    document["days"][0]["study_sessions"] = [
        {"from": "06:00", "to": "07:00", "subject": "Math"},
        {"from": "15:00", "to": "16:00", "subject": "English"},
        {"from": "20:00", "to": "21:00", "subject": "Math"},
    ]

    with pytest.raises(EnrichmentError, match="more than 2 sessions"):
        parse_enriched_plan(document, days, skeleton, POLICY)

    uncapped = PlannerPolicy(max_sessions_per_day=None)
    plan = parse_enriched_plan(document, days, skeleton, uncapped)
    assert len(plan.day(Weekday.MONDAY).study_sessions) == 3


def test_document_with_overlong_session_is_rejected(week) -> None:
    days, _ = week
    policy = PlannerPolicy(max_session_minutes=90)
    skeleton = build_deterministic_plan(days, SUBJECTS, 4, policy)
    document = skeleton.to_dict()
    document["days"][0]["study_sessions"] = [{"from": "15:00", "to": "17:00", "subject": "Math"}]

    with pytest.raises(EnrichmentError, match="exceeds 90 minutes"):
        parse_enriched_plan(document, days, skeleton, policy)

    assert parse_enriched_plan(skeleton.to_dict(), days, skeleton, policy) == skeleton
