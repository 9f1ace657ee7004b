"""Poll snapshot model."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from hkops.models.room import Room
from hkops.models.task import Task


class Snapshot(BaseModel):
    """Task and room data as of the most recently applied fetch.

    ``tasks_sequence`` and ``rooms_sequence`` record which poll cycle each
    half came from; they can differ when one of the two fetches failed.
    """

    tasks: list[Task] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    tasks_sequence: int = Field(default=0, ge=0)
    rooms_sequence: int = Field(default=0, ge=0)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def sequence(self) -> int:
        return max(self.tasks_sequence, self.rooms_sequence)
