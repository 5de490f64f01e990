from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smart_planner.db.models.planner_plan import PlannerPlan
from smart_planner.db.models.planner_setting import PlannerDaySetting
from smart_planner.db.models.planner_subject import PlannerSubject
from smart_planner.services.job_runner import run_smart_plans_for_all_users, upcoming_week
from smart_planner.services.planning_models import DaySchedule, Priority, SubjectSelection, Weekday
from smart_planner.services.planner_store import load_plan, save_schedules, save_subjects
from smart_planner.services.smart_planner import SmartPlanEngine


@pytest.fixture()
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    PlannerDaySetting.__table__.create(bind=engine)
    PlannerSubject.__table__.create(bind=engine)
    PlannerPlan.__table__.create(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def _seed_subjects(db, *names):
    user_id = uuid4()
    save_subjects(db, user_id, [SubjectSelection(name, Priority.HIGH) for name in names])
    return user_id


def test_upcoming_week_crosses_iso_year() -> None:
    assert upcoming_week(date(2026, 10, 17)) == (43, 2026)
    assert upcoming_week(date(2026, 12, 28)) == (1, 2027)


def test_job_writes_plans_for_users_with_subjects(session) -> None:
    first = _seed_subjects(session, "Math")
    second = _seed_subjects(session, "Chemistry", "Physics")

    result = run_smart_plans_for_all_users(session, SmartPlanEngine(), week_index=10, year=2026)

    assert result.users_processed == 2
    assert result.plans_written == 2
    assert result.failed == 0
    assert load_plan(session, first, 10, 2026) is not None
    assert load_plan(session, second, 10, 2026).plan_data["week"] == "Week 10"


def test_job_skips_existing_plans_unless_forced(session) -> None:
    user_id = _seed_subjects(session, "Math")
    engine = SmartPlanEngine()
    run_smart_plans_for_all_users(session, engine, week_index=10, year=2026)
    original_id = load_plan(session, user_id, 10, 2026).id

    skipped = run_smart_plans_for_all_users(session, engine, week_index=10, year=2026)
    assert skipped.users_processed == 1
    assert skipped.plans_written == 0
    assert load_plan(session, user_id, 10, 2026).id == original_id

    forced = run_smart_plans_for_all_users(session, engine, week_index=10, year=2026, force=True)
    assert forced.plans_written == 1
    assert load_plan(session, user_id, 10, 2026).id != original_id


def test_job_counts_failures_without_stopping(session) -> None:
    good = _seed_subjects(session, "Math")
    broken = _seed_subjects(session, "History")
    # a stored week missing Sunday cannot be planned
    save_schedules(session, broken, [DaySchedule(day) for day in list(Weekday)[:6]])
    no_subjects = uuid4()

    result = run_smart_plans_for_all_users(
        session,
        SmartPlanEngine(),
        week_index=4,
        year=2026,
        user_ids=[good, broken, no_subjects, good],
    )

    assert result.users_processed == 1
    assert result.plans_written == 1
    assert result.failed == 2
    assert load_plan(session, good, 4, 2026) is not None
    assert load_plan(session, broken, 4, 2026) is None
