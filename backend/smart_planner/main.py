"""Main FastAPI application for the smart planner backend."""
from fastapi import FastAPI, Request

from smart_planner.api.routes.jobs import router as jobs_router
from smart_planner.api.routes.smart_plan import router as smart_plan_router
from smart_planner.core.config import settings
from smart_planner.core.logging import configure_logging
from smart_planner.core.middleware import RequestIDMiddleware
from smart_planner.observability.client import init_opik
from smart_planner.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(smart_plan_router)
app.include_router(jobs_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
