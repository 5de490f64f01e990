"""Operational endpoints for the weekly plan job."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from smart_planner.api.deps import get_planner_engine
from smart_planner.api.schemas.jobs import JobRunRequest, JobRunResponse
from smart_planner.core.config import settings
from smart_planner.db.deps import get_db
from smart_planner.observability.metrics import log_metric
from smart_planner.observability.tracing import trace
from smart_planner.services.job_runner import run_smart_plans_for_all_users, upcoming_week
from smart_planner.services.smart_planner import SmartPlanEngine

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "weekly_day": settings.weekly_job_day,
                "weekly_time": f"{settings.weekly_job_hour:02d}:{settings.weekly_job_minute:02d}",
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    db: Session = Depends(get_db),
    engine: SmartPlanEngine = Depends(get_planner_engine),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = getattr(request.state, "request_id", None)
    default_week, default_year = upcoming_week()
    week_index = payload.week_index if payload.week_index is not None else default_week
    year = payload.year if payload.year is not None else default_year
    metadata = {"week_index": week_index, "year": year, "force": payload.force}
    start = perf_counter()
    with trace("jobs.run_now", metadata=metadata, request_id=request_id):
        result = run_smart_plans_for_all_users(
            db,
            engine,
            week_index=week_index,
            year=year,
            user_ids=[payload.user_id] if payload.user_id else None,
            force=payload.force,
        )

    latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.run_now.plans_written", result.plans_written, metadata={"week_index": week_index})
    log_metric("jobs.run_now.latency_ms", latency_ms, metadata={"week_index": week_index})

    return JobRunResponse(
        week_index=week_index,
        year=year,
        users_processed=result.users_processed,
        plans_written=result.plans_written,
        failed=result.failed,
        request_id=request_id or "",
    )
