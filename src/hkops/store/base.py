"""Abstract base class for the task/room store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from hkops.models.enums import RoomStatus, TaskStatus
from hkops.models.room import Room
from hkops.models.task import Task, TaskInput


class TaskStore(ABC):
    """Async access to housekeeping tasks and rooms.

    Implement this ABC to plug in any backend. The package ships
    `InMemoryTaskStore` for development and testing and `GraphQLTaskStore`
    for the dashboard's GraphQL API.

    Backend and network failures must be raised as
    ``StoreUnavailableError``; unknown ids on writes as ``TaskNotFoundError``
    or ``RoomNotFoundError``.
    """

    # Task operations

    @abstractmethod
    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        room_id: str | None = None,
    ) -> list[Task]:
        """List tasks, newest first, optionally filtered by status and room."""
        ...

    @abstractmethod
    async def get_task(self, task_id: str) -> Task | None:
        """Get a task by ID, or ``None`` if it doesn't exist."""
        ...

    @abstractmethod
    async def create_task(self, data: TaskInput) -> Task:
        """Persist a new PENDING task from a validated input."""
        ...

    @abstractmethod
    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        """Apply a partial update to a task."""
        ...

    @abstractmethod
    async def complete_task(
        self,
        task_id: str,
        actual_time: int | None = None,
        notes: str | None = None,
    ) -> Task:
        """Mark a task COMPLETED and stamp ``completed_at``."""
        ...

    @abstractmethod
    async def delete_task(self, task_id: str) -> bool:
        """Delete a task. Returns ``True`` if the task existed."""
        ...

    # Room operations

    @abstractmethod
    async def list_rooms(
        self,
        status: RoomStatus | None = None,
        room_type: str | None = None,
    ) -> list[Room]:
        """List rooms, optionally filtered by status and type."""
        ...

    @abstractmethod
    async def update_room_status(self, room_id: str, status: RoomStatus) -> Room:
        """Set a room's status."""
        ...

    async def close(self) -> None:  # noqa: B027
        """Release any held resources."""
