"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from hkops.core.errors import StoreUnavailableError
from hkops.models.enums import RoomStatus, TaskPriority, TaskStatus, TaskType
from hkops.models.room import Room
from hkops.models.task import Task, TaskInput
from hkops.store.memory import InMemoryTaskStore

NOW = datetime(2024, 6, 15, 14, 0, tzinfo=UTC)


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay."""

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore(
        rooms=[
            make_room("R1", "101", status=RoomStatus.OCCUPIED),
            make_room("R2", "102"),
            make_room("R3", "103", status=RoomStatus.MAINTENANCE),
        ],
        clock=lambda: NOW,
    )


def make_room(
    room_id: str = "R1",
    number: str = "101",
    *,
    status: RoomStatus = RoomStatus.AVAILABLE,
    room_type: str = "DOUBLE",
    price: float = 120.0,
) -> Room:
    return Room(id=room_id, number=number, type=room_type, status=status, price=price)


def make_task(
    task_id: str = "t1",
    room_id: str = "R1",
    *,
    status: TaskStatus = TaskStatus.PENDING,
    priority: TaskPriority = TaskPriority.MEDIUM,
    task_type: TaskType = TaskType.CLEANING,
    created_at: datetime = NOW,
    completed_at: datetime | None = None,
    actual_time: int | None = None,
    estimated_time: int = 30,
    **kwargs: Any,
) -> Task:
    if status == TaskStatus.COMPLETED and completed_at is None:
        completed_at = created_at
    return Task(
        id=task_id,
        room_id=room_id,
        task_type=task_type,
        status=status,
        priority=priority,
        estimated_time=estimated_time,
        actual_time=actual_time,
        created_at=created_at,
        completed_at=completed_at,
        **kwargs,
    )


def ago(**kwargs: float) -> datetime:
    return NOW - timedelta(**kwargs)


class FlakyStore(InMemoryTaskStore):
    """In-memory store whose operations can be made to fail on demand.

    ``store.fail("create_task")`` makes every later ``create_task`` call raise
    ``StoreUnavailableError`` until ``store.heal("create_task")``.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._failing: dict[str, Exception] = {}
        self.calls: list[str] = []

    def fail(self, operation: str, exc: Exception | None = None) -> None:
        self._failing[operation] = exc or StoreUnavailableError(f"{operation} unavailable")

    def heal(self, operation: str) -> None:
        self._failing.pop(operation, None)

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        exc = self._failing.get(operation)
        if exc is not None:
            raise exc

    async def list_tasks(
        self, status: TaskStatus | None = None, room_id: str | None = None
    ) -> list[Task]:
        self._enter("list_tasks")
        return await super().list_tasks(status=status, room_id=room_id)

    async def get_task(self, task_id: str) -> Task | None:
        self._enter("get_task")
        return await super().get_task(task_id)

    async def create_task(self, data: TaskInput) -> Task:
        self._enter("create_task")
        return await super().create_task(data)

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        self._enter("update_task")
        return await super().update_task(task_id, changes)

    async def complete_task(
        self, task_id: str, actual_time: int | None = None, notes: str | None = None
    ) -> Task:
        self._enter("complete_task")
        return await super().complete_task(task_id, actual_time=actual_time, notes=notes)

    async def delete_task(self, task_id: str) -> bool:
        self._enter("delete_task")
        return await super().delete_task(task_id)

    async def list_rooms(
        self, status: RoomStatus | None = None, room_type: str | None = None
    ) -> list[Room]:
        self._enter("list_rooms")
        return await super().list_rooms(status=status, room_type=room_type)

    async def update_room_status(self, room_id: str, status: RoomStatus) -> Room:
        self._enter("update_room_status")
        return await super().update_room_status(room_id, status)


@pytest.fixture
def flaky_store() -> FlakyStore:
    return FlakyStore(
        rooms=[
            make_room("R1", "101", status=RoomStatus.OCCUPIED),
            make_room("R2", "102"),
        ],
        clock=lambda: NOW,
    )
