"""In-memory implementation of TaskStore."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from hkops.core.errors import RoomNotFoundError, TaskNotFoundError
from hkops.models.enums import RoomStatus, TaskStatus
from hkops.models.room import Room
from hkops.models.task import Task, TaskInput
from hkops.store.base import TaskStore


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryTaskStore(TaskStore):
    """Dict-based in-memory store for development and testing.

    Maintains ``completed_at is not None`` if and only if the task is
    COMPLETED, the way the backend does.
    """

    def __init__(
        self,
        *,
        rooms: Iterable[Room] = (),
        tasks: Iterable[Task] = (),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._rooms: dict[str, Room] = {r.id: r for r in rooms}
        self._tasks: dict[str, Task] = {t.id: t for t in tasks}

    # Task operations

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        room_id: str | None = None,
    ) -> list[Task]:
        results: list[Task] = []
        for task in self._tasks.values():
            if status is not None and task.status != status:
                continue
            if room_id is not None and task.room_id != room_id:
                continue
            results.append(task.model_copy())
        results.sort(key=lambda t: t.created_at, reverse=True)
        return results

    async def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy() if task is not None else None

    async def create_task(self, data: TaskInput) -> Task:
        if data.room_id is None or data.room_id not in self._rooms:
            raise RoomNotFoundError(str(data.room_id))
        room = self._rooms[data.room_id]
        task = Task.model_validate(
            {
                **data.model_dump(exclude_none=True),
                "id": uuid.uuid4().hex,
                "room_number": room.number,
                "status": TaskStatus.PENDING,
                "created_at": self._clock(),
            }
        )
        self._tasks[task.id] = task
        return task.model_copy()

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        update = dict(changes)
        new_status = update.get("status", task.status)
        if new_status == TaskStatus.COMPLETED and task.completed_at is None:
            update["completed_at"] = self._clock()
        elif new_status != TaskStatus.COMPLETED:
            update["completed_at"] = None
        updated = task.model_copy(update=update)
        self._tasks[task_id] = updated
        return updated.model_copy()

    async def complete_task(
        self,
        task_id: str,
        actual_time: int | None = None,
        notes: str | None = None,
    ) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        update: dict[str, Any] = {
            "status": TaskStatus.COMPLETED,
            "completed_at": self._clock(),
        }
        if actual_time is not None:
            update["actual_time"] = actual_time
        if notes is not None:
            update["notes"] = notes
        updated = task.model_copy(update=update)
        self._tasks[task_id] = updated
        return updated.model_copy()

    async def delete_task(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None

    # Room operations

    async def list_rooms(
        self,
        status: RoomStatus | None = None,
        room_type: str | None = None,
    ) -> list[Room]:
        results: list[Room] = []
        for room in self._rooms.values():
            if status is not None and room.status != status:
                continue
            if room_type is not None and room.type != room_type:
                continue
            results.append(room.model_copy())
        return results

    async def update_room_status(self, room_id: str, status: RoomStatus) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        updated = room.model_copy(update={"status": status})
        self._rooms[room_id] = updated
        return updated.model_copy()

    # Seeding helpers

    def add_room(self, room: Room) -> None:
        self._rooms[room.id] = room

    def add_task(self, task: Task) -> None:
        self._tasks[task.id] = task
