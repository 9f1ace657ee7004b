"""Exception taxonomy for the housekeeping engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hkops.models.enums import QuickActionKind, TaskAction, TaskStatus
    from hkops.models.room import Room

__all__ = [
    "HousekeepingError",
    "InvalidTransitionError",
    "NotFoundError",
    "PartialCompoundFailureError",
    "QuickActionBusyError",
    "RoomNotFoundError",
    "StoreUnavailableError",
    "TaskNotFoundError",
    "ValidationFailedError",
]


class HousekeepingError(Exception):
    """Base exception for all hkops errors."""


class ValidationFailedError(HousekeepingError):
    """Input is missing a required field or carries an invalid value."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"{field}: {msg}" for field, msg in sorted(self.errors.items()))
        super().__init__(f"Validation failed: {detail}")


class InvalidTransitionError(HousekeepingError):
    """A guarded verb was applied to a task in a status that does not allow it."""

    def __init__(self, task_id: str, status: TaskStatus, action: TaskAction) -> None:
        self.task_id = task_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} task {task_id} in status {status}")


class NotFoundError(HousekeepingError):
    """Referenced entity does not exist."""


class TaskNotFoundError(NotFoundError):
    """Task does not exist."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class RoomNotFoundError(NotFoundError):
    """Room does not exist."""

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class StoreUnavailableError(HousekeepingError):
    """The task/room store could not be reached or returned an error."""


class PartialCompoundFailureError(HousekeepingError):
    """A quick action failed after some of its steps had already been applied.

    Nothing is rolled back. ``completed_steps`` and ``room`` describe what was
    left mutated; the underlying error is chained as ``__cause__``.
    """

    def __init__(
        self,
        kind: QuickActionKind,
        room_id: str,
        *,
        completed_steps: tuple[str, ...],
        failed_step: str,
        room: Room | None = None,
    ) -> None:
        self.kind = kind
        self.room_id = room_id
        self.completed_steps = completed_steps
        self.failed_step = failed_step
        self.room = room
        done = ", ".join(completed_steps) or "none"
        super().__init__(
            f"Quick action {kind} on room {room_id} failed at {failed_step} "
            f"(already applied: {done})"
        )


class QuickActionBusyError(HousekeepingError):
    """A quick action is already running for this room."""

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"A quick action is already in progress for room {room_id}")
