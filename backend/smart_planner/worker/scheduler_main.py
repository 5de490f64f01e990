"""Dedicated APScheduler worker that prepares next week's study plans."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from smart_planner.core.config import settings
from smart_planner.core.logging import configure_logging
from smart_planner.db.session import SessionLocal
from smart_planner.services.job_runner import run_smart_plans_for_all_users, upcoming_week
from smart_planner.services.smart_planner import SmartPlanEngine

logger = logging.getLogger(__name__)

JOB_ID = "weekly_smart_plan_job"


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Planner worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running weekly plan job once on startup")
            run_weekly_plan_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Planner worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_weekly_plan_job,
        trigger="cron",
        day_of_week=str(settings.weekly_job_day),
        hour=settings.weekly_job_hour,
        minute=settings.weekly_job_minute,
        id=JOB_ID,
        replace_existing=True,
    )
    logger.info(
        "Registered weekly plan job (day=%s, time=%02d:%02d %s)",
        settings.weekly_job_day,
        settings.weekly_job_hour,
        settings.weekly_job_minute,
        settings.scheduler_timezone,
    )


def run_weekly_plan_job() -> None:
    week_index, year = upcoming_week()
    engine = SmartPlanEngine.from_settings(settings)
    session = SessionLocal()
    try:
        result = run_smart_plans_for_all_users(session, engine, week_index=week_index, year=year)
        logger.info(
            "Weekly plan job complete: users=%s, plans=%s, failed=%s",
            result.users_processed,
            result.plans_written,
            result.failed,
        )
    except Exception:  # pragma: no cover - keeps the scheduler thread alive
        logger.exception("Weekly plan job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
