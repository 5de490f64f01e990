"""ORM models exposed for metadata discovery."""
from smart_planner.db.models.planner_plan import PlannerPlan
from smart_planner.db.models.planner_setting import PlannerDaySetting
from smart_planner.db.models.planner_subject import PlannerSubject

__all__ = [
    "PlannerDaySetting",
    "PlannerPlan",
    "PlannerSubject",
]
