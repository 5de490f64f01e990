"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    user_id: Optional[UUID] = None
    week_index: Optional[int] = None
    year: Optional[int] = None
    force: bool = False


class JobRunResponse(BaseModel):
    week_index: int
    year: int
    users_processed: int
    plans_written: int
    failed: int
    request_id: str
