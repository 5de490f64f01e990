"""Metric helpers recorded as short-lived Opik traces."""
from __future__ import annotations

from typing import Any, Dict, Optional

from smart_planner.observability.tracing import trace


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a single metric value; a no-op when Opik is disabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    with trace(f"metric:{name}", metadata=payload):
        pass
