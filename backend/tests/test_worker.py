"""Tests for the weekly plan worker wiring."""
from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler

from smart_planner.core.config import settings
from smart_planner.services.job_runner import JobRunResult
from smart_planner.worker import scheduler_main


def test_register_jobs_adds_weekly_cron(monkeypatch) -> None:
    monkeypatch.setattr(settings, "weekly_job_day", 6)
    monkeypatch.setattr(settings, "weekly_job_hour", 17)
    monkeypatch.setattr(settings, "weekly_job_minute", 30)
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler_main.register_jobs(scheduler)

    job = scheduler.get_job(scheduler_main.JOB_ID)
    assert job is not None
    trigger = str(job.trigger)
    assert "day_of_week='6'" in trigger
    assert "hour='17'" in trigger
    assert "minute='30'" in trigger


def test_weekly_job_runs_for_upcoming_week(monkeypatch) -> None:
    calls = {}

    class _Session:
        closed = False

        def close(self):
            self.closed = True

    session = _Session()

    def fake_run(db, engine, *, week_index, year):
        calls.update(db=db, week_index=week_index, year=year)
        return JobRunResult(users_processed=0, plans_written=0)

    monkeypatch.setattr(scheduler_main, "SessionLocal", lambda: session)
    monkeypatch.setattr(scheduler_main, "upcoming_week", lambda: (12, 2027))
    monkeypatch.setattr(scheduler_main, "run_smart_plans_for_all_users", fake_run)

    scheduler_main.run_weekly_plan_job()

    assert calls == {"db": session, "week_index": 12, "year": 2027}
    assert session.closed is True
