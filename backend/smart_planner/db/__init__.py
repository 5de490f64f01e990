"""Database utilities and models."""

from smart_planner.db.base import Base
from smart_planner.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
