"""Batch generation of weekly plans for every student with saved subjects."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from smart_planner.services.planner_store import (
    MissingSubjectsError,
    run_smart_plan_for_user,
    users_with_subjects,
)
from smart_planner.services.smart_planner import PlanInputError, SmartPlanEngine
from smart_planner.services.time_utils import current_week

logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    plans_written: int
    failed: int = 0


def upcoming_week(today: Optional[date] = None) -> Tuple[int, int]:
    """ISO (week, year) of the week after ``today``; the job prepares next week's plans."""
    return current_week((today or date.today()) + timedelta(days=7))


def run_smart_plans_for_all_users(
    db: Session,
    engine: SmartPlanEngine,
    *,
    week_index: int,
    year: int,
    user_ids: Optional[Iterable[UUID]] = None,
    force: bool = False,
) -> JobRunResult:
    """Generate plans for each user; one user's failure never stops the batch."""
    ids = _normalize_user_ids(user_ids, db)
    users_processed = 0
    plans_written = 0
    failed = 0
    for uid in ids:
        try:
            result = run_smart_plan_for_user(db, uid, engine, week_index=week_index, year=year, force=force)
        except (MissingSubjectsError, PlanInputError) as exc:
            db.rollback()
            failed += 1
            logger.warning("Skipping weekly plan for user %s: %s", uid, exc)
            continue
        users_processed += 1
        if result.created:
            plans_written += 1
    logger.info(
        "Weekly plans for week %s/%s: users=%s written=%s failed=%s",
        week_index,
        year,
        users_processed,
        plans_written,
        failed,
    )
    return JobRunResult(users_processed=users_processed, plans_written=plans_written, failed=failed)


def _normalize_user_ids(user_ids: Optional[Iterable[UUID]], db: Session) -> List[UUID]:
    if user_ids is None:
        return users_with_subjects(db)
    return list(dict.fromkeys(user_ids))
