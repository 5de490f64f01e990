"""Per-subject study time totals for a plan document."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping

from smart_planner.services.time_utils import parse_clock


@dataclass
class PlanDistribution:
    total_minutes: int = 0
    minutes_by_subject: Dict[str, int] = field(default_factory=dict)
    minutes_by_day: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize_distribution(plan_data: Mapping[str, Any]) -> PlanDistribution:
    """Sum session minutes per subject, for the week and for each day.

    Works on the wire document so stored plans can be summarized as-is.
    """
    distribution = PlanDistribution()
    for day in plan_data.get("days") or []:
        day_totals: Dict[str, int] = {}
        for session in day.get("study_sessions") or []:
            minutes = max(0, parse_clock(session["to"]) - parse_clock(session["from"]))
            subject = session["subject"]
            day_totals[subject] = day_totals.get(subject, 0) + minutes
            distribution.minutes_by_subject[subject] = distribution.minutes_by_subject.get(subject, 0) + minutes
            distribution.total_minutes += minutes
        distribution.minutes_by_day[day["day"]] = day_totals
    return distribution
