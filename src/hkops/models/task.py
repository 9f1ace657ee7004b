"""Housekeeping task models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from hkops.models.enums import TaskPriority, TaskStatus, TaskType


class Task(BaseModel):
    """A unit of housekeeping or maintenance work tied to a room."""

    id: str
    room_id: str
    room_number: str | None = None
    task_type: TaskType
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority
    assigned_to: str | None = None
    estimated_time: int = Field(gt=0)
    actual_time: int | None = Field(default=None, gt=0)
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @field_validator("created_at", "completed_at")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are taken to be UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class TaskInput(BaseModel):
    """Payload for creating a task.

    Every field is optional here so that validation can report all missing
    fields at once instead of failing on the first one.
    """

    room_id: str | None = None
    task_type: TaskType | None = None
    priority: TaskPriority | None = None
    estimated_time: int | None = None
    assigned_to: str | None = None
    notes: str | None = None


class TaskUpdate(BaseModel):
    """Partial update for a task. Only explicitly set fields are applied."""

    status: TaskStatus | None = None
    assigned_to: str | None = None
    priority: TaskPriority | None = None
    estimated_time: int | None = None
    actual_time: int | None = None
    notes: str | None = None

    def changes(self) -> dict[str, object]:
        """Return the explicitly set fields.

        ``None`` clears the nullable fields (assignee, actual time, notes) and
        is ignored for the required ones.
        """
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_FIELDS
        }


_REQUIRED_FIELDS = frozenset({"status", "priority", "estimated_time"})
