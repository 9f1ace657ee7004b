"""Housekeeping statistics model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HousekeepingStats(BaseModel):
    """Counts and averages derived from one task snapshot."""

    total_tasks: int = Field(default=0, ge=0)
    pending_cleaning: int = Field(default=0, ge=0)
    in_progress: int = Field(default=0, ge=0)
    total_cleaned: int = Field(default=0, ge=0)
    cleaned_today: int = Field(default=0, ge=0)
    average_cleaning_time: float = Field(default=0.0, ge=0.0)
