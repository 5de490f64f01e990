"""Smart study planner endpoints."""
from __future__ import annotations

from time import perf_counter
from typing import Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from smart_planner.api.deps import get_planner_engine
from smart_planner.api.schemas.smart_plan import (
    GeneratePlanRequest,
    GeneratePlanResponse,
    PlanDistributionPayload,
    PlannerSettingsRequest,
    PlannerSettingsResponse,
    PlannerSubjectsRequest,
    PlannerSubjectsResponse,
    SmartPlanRunRequest,
    StoredPlanResponse,
    WeeklyPlanPayload,
)
from smart_planner.db.deps import get_db
from smart_planner.db.models.planner_plan import PlannerPlan
from smart_planner.observability.metrics import log_metric
from smart_planner.observability.tracing import trace
from smart_planner.services.plan_conversion import (
    schedule_to_payload,
    schedules_from_payload,
    subjects_from_payload,
    subjects_to_payload,
)
from smart_planner.services.plan_distribution import summarize_distribution
from smart_planner.services.planner_store import (
    MissingSubjectsError,
    load_plan,
    load_schedules_or_default,
    load_subjects,
    run_smart_plan_for_user,
    save_schedules,
    save_subjects,
)
from smart_planner.services.smart_planner import PlanInputError, SmartPlanEngine, prepare_week
from smart_planner.services.time_utils import current_week

router = APIRouter()


@router.post("/smart-plan/generate", response_model=GeneratePlanResponse, tags=["smart-plan"])
def smart_plan_generate(
    request: Request,
    payload: GeneratePlanRequest,
    engine: SmartPlanEngine = Depends(get_planner_engine),
) -> GeneratePlanResponse:
    request_id = getattr(request.state, "request_id", None)
    week_index, _ = _resolve_week(payload.week_index, None)
    metadata = {"week_index": week_index, "subjects": len(payload.subjects), "request_id": request_id}
    start = perf_counter()
    with trace("smart_plan.generate_request", metadata=metadata, request_id=request_id):
        try:
            schedules = schedules_from_payload(payload.schedules)
            result = engine.generate(schedules, subjects_from_payload(payload.subjects), week_index)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    latency_ms = (perf_counter() - start) * 1000
    log_metric("smart_plan.generate.success", 1, metadata={"source": result.source})
    log_metric("smart_plan.generate.latency_ms", latency_ms, metadata={"source": result.source})

    plan_data = result.plan.to_dict()
    return GeneratePlanResponse(
        plan=WeeklyPlanPayload.model_validate(plan_data),
        fallback_used=result.fallback_used,
        source=result.source,
        distribution=PlanDistributionPayload(**summarize_distribution(plan_data).to_dict()),
        request_id=request_id or "",
    )


@router.get("/smart-plan/settings", response_model=PlannerSettingsResponse, tags=["smart-plan"])
def smart_plan_settings(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
    engine: SmartPlanEngine = Depends(get_planner_engine),
) -> PlannerSettingsResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("smart_plan.settings", metadata={"request_id": request_id}, user_id=str(user_id), request_id=request_id):
        schedules, is_default = load_schedules_or_default(db, user_id, engine.policy)
    return PlannerSettingsResponse(
        user_id=user_id,
        schedules=[schedule_to_payload(schedule) for schedule in schedules],
        is_default=is_default,
        request_id=request_id or "",
    )


@router.put("/smart-plan/settings", response_model=PlannerSettingsResponse, tags=["smart-plan"])
def smart_plan_save_settings(
    request: Request,
    payload: PlannerSettingsRequest,
    db: Session = Depends(get_db),
    engine: SmartPlanEngine = Depends(get_planner_engine),
) -> PlannerSettingsResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace(
        "smart_plan.settings_save",
        metadata={"days": len(payload.schedules)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        try:
            schedules = schedules_from_payload(payload.schedules)
            prepare_week(schedules, engine.policy)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        saved = save_schedules(db, payload.user_id, schedules)

    log_metric("smart_plan.settings_save.success", 1, metadata={"user_id": str(payload.user_id)})
    return PlannerSettingsResponse(
        user_id=payload.user_id,
        schedules=[schedule_to_payload(schedule) for schedule in saved],
        is_default=False,
        request_id=request_id or "",
    )


@router.get("/smart-plan/subjects", response_model=PlannerSubjectsResponse, tags=["smart-plan"])
def smart_plan_subjects(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> PlannerSubjectsResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("smart_plan.subjects", user_id=str(user_id), request_id=request_id):
        subjects = load_subjects(db, user_id)
    return PlannerSubjectsResponse(
        user_id=user_id,
        subjects=subjects_to_payload(subjects),
        request_id=request_id or "",
    )


@router.put("/smart-plan/subjects", response_model=PlannerSubjectsResponse, tags=["smart-plan"])
def smart_plan_save_subjects(
    request: Request,
    payload: PlannerSubjectsRequest,
    db: Session = Depends(get_db),
) -> PlannerSubjectsResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace(
        "smart_plan.subjects_save",
        metadata={"count": len(payload.subjects)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        saved = save_subjects(db, payload.user_id, subjects_from_payload(payload.subjects))

    log_metric("smart_plan.subjects_save.count", len(saved), metadata={"user_id": str(payload.user_id)})
    return PlannerSubjectsResponse(
        user_id=payload.user_id,
        subjects=subjects_to_payload(saved),
        request_id=request_id or "",
    )


@router.post("/smart-plan/run", response_model=StoredPlanResponse, tags=["smart-plan"])
def smart_plan_run(
    request: Request,
    payload: SmartPlanRunRequest,
    db: Session = Depends(get_db),
    engine: SmartPlanEngine = Depends(get_planner_engine),
) -> StoredPlanResponse:
    request_id = getattr(request.state, "request_id", None)
    week_index, year = _resolve_week(payload.week_index, payload.year)
    metadata = {"week_index": week_index, "year": year, "force": payload.force}
    start = perf_counter()
    with trace("smart_plan.run", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
        try:
            result = run_smart_plan_for_user(
                db,
                payload.user_id,
                engine,
                week_index=week_index,
                year=year,
                force=payload.force,
            )
        except MissingSubjectsError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except PlanInputError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    latency_ms = (perf_counter() - start) * 1000
    log_metric("smart_plan.run.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric(
        "smart_plan.run.plan_created",
        1 if result.created else 0,
        metadata={"user_id": str(payload.user_id), "force": payload.force},
    )
    log_metric("smart_plan.run.latency_ms", latency_ms, metadata={"user_id": str(payload.user_id)})
    return _stored_plan_response(result.plan, request_id)


@router.get("/smart-plan/latest", response_model=StoredPlanResponse, tags=["smart-plan"])
def smart_plan_latest(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    week_index: Optional[int] = Query(None, description="ISO week; defaults to the current week"),
    year: Optional[int] = Query(None, description="ISO year; defaults to the current year"),
    db: Session = Depends(get_db),
) -> StoredPlanResponse:
    request_id = getattr(request.state, "request_id", None)
    week_index, year = _resolve_week(week_index, year)
    metadata = {"week_index": week_index, "year": year}
    with trace("smart_plan.latest", metadata=metadata, user_id=str(user_id), request_id=request_id):
        plan = load_plan(db, user_id, week_index, year)
        if plan is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No plan stored for this week")

    log_metric("smart_plan.latest.success", 1, metadata={"user_id": str(user_id)})
    return _stored_plan_response(plan, request_id)


def _resolve_week(week_index: Optional[int], year: Optional[int]) -> Tuple[int, int]:
    current_index, current_year = current_week()
    return (
        week_index if week_index is not None else current_index,
        year if year is not None else current_year,
    )


def _stored_plan_response(plan: PlannerPlan, request_id: Optional[str]) -> StoredPlanResponse:
    plan_data = plan.plan_data or {}
    return StoredPlanResponse(
        id=plan.id,
        user_id=plan.user_id,
        week_index=plan.week_index,
        year=plan.year,
        plan=WeeklyPlanPayload.model_validate(plan_data),
        fallback_used=bool(plan.fallback_used),
        source=plan.source or "deterministic",
        distribution=PlanDistributionPayload(**summarize_distribution(plan_data).to_dict()),
        created_at=plan.created_at,
        request_id=request_id or "",
    )
