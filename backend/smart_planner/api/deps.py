"""Shared FastAPI dependencies for planner routes."""
from smart_planner.core.config import settings
from smart_planner.services.smart_planner import SmartPlanEngine


def get_planner_engine() -> SmartPlanEngine:
    """Engine configured from the current settings (policy plus optional enricher)."""
    return SmartPlanEngine.from_settings(settings)
