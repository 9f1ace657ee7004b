"""Task lifecycle: guarded status transitions over a TaskStore."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from hkops.core.errors import (
    InvalidTransitionError,
    TaskNotFoundError,
    ValidationFailedError,
)
from hkops.models.enums import TaskAction, TaskStatus
from hkops.models.task import Task, TaskInput, TaskUpdate
from hkops.store.base import TaskStore

__all__ = ["TRANSITIONS", "TaskLifecycleManager", "can_transition"]

# (from status, verb) -> to status. Pairs not listed are illegal.
TRANSITIONS: dict[tuple[TaskStatus, TaskAction], TaskStatus] = {
    (TaskStatus.PENDING, TaskAction.START): TaskStatus.IN_PROGRESS,
    (TaskStatus.PENDING, TaskAction.COMPLETE): TaskStatus.COMPLETED,
    (TaskStatus.IN_PROGRESS, TaskAction.COMPLETE): TaskStatus.COMPLETED,
    (TaskStatus.PENDING, TaskAction.CANCEL): TaskStatus.CANCELLED,
    (TaskStatus.IN_PROGRESS, TaskAction.CANCEL): TaskStatus.CANCELLED,
}


def can_transition(status: TaskStatus, action: TaskAction) -> bool:
    """Return True if *action* is allowed on a task in *status*."""
    return (status, action) in TRANSITIONS


def _pydantic_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "input"
        errors.setdefault(field, err["msg"])
    return errors


class TaskLifecycleManager:
    """Mediates every task mutation.

    Two distinct surfaces:

    * guarded verbs (``start``, ``complete``, ``cancel``) that enforce
      ``TRANSITIONS`` and raise ``InvalidTransitionError``;
    * ``update_fields``, a raw partial update that may set any status. It
      validates field values but never checks transitions.

    The guarded verbs read the task and then write it; there is no
    concurrency token, so a concurrent edit between the two calls wins or
    loses by arrival order at the store.
    """

    def __init__(self, store: TaskStore, *, logger: logging.Logger | None = None) -> None:
        self._store = store
        self._logger = logger or logging.getLogger("hkops.lifecycle")

    # -- Reads --

    async def get(self, task_id: str) -> Task:
        task = await self._store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        room_id: str | None = None,
    ) -> list[Task]:
        return await self._store.list_tasks(status=status, room_id=room_id)

    # -- Create / raw update / delete --

    async def create(self, data: TaskInput | Mapping[str, Any]) -> Task:
        """Validate *data* and create a PENDING task.

        Raises:
            ValidationFailedError: A required field is missing, an enum value
                is unknown, or ``estimated_time`` is not positive.
        """
        if not isinstance(data, TaskInput):
            try:
                data = TaskInput.model_validate(data)
            except ValidationError as exc:
                raise ValidationFailedError(_pydantic_errors(exc)) from exc

        errors: dict[str, str] = {}
        if not data.room_id:
            errors["room_id"] = "Room is required"
        if data.task_type is None:
            errors["task_type"] = "Task type is required"
        if data.priority is None:
            errors["priority"] = "Priority is required"
        if data.estimated_time is None or data.estimated_time <= 0:
            errors["estimated_time"] = "Estimated time must be greater than 0"
        if errors:
            raise ValidationFailedError(errors)

        task = await self._store.create_task(data)
        self._logger.info(
            "Created %s task %s for room %s",
            task.task_type,
            task.id,
            task.room_id,
            extra={"task_id": task.id, "room_id": task.room_id, "priority": task.priority},
        )
        return task

    async def update_fields(self, task_id: str, changes: TaskUpdate | Mapping[str, Any]) -> Task:
        """Apply a partial update without transition checks.

        This is the edit-form escape hatch: any status may be set to any
        other status. Field values are still validated.

        Moving a task into COMPLETED goes through ``complete_task`` so the
        store stamps ``completed_at``; the remaining fields follow as a
        plain update.
        """
        if not isinstance(changes, TaskUpdate):
            try:
                changes = TaskUpdate.model_validate(changes)
            except ValidationError as exc:
                raise ValidationFailedError(_pydantic_errors(exc)) from exc

        partial = changes.changes()
        if not partial:
            raise ValidationFailedError({"input": "No fields to update"})
        errors: dict[str, str] = {}
        for field in ("estimated_time", "actual_time"):
            value = partial.get(field)
            if isinstance(value, int) and value <= 0:
                errors[field] = "Must be greater than 0"
        if errors:
            raise ValidationFailedError(errors)

        completing = partial.get("status") == TaskStatus.COMPLETED
        if completing and (await self.get(task_id)).status != TaskStatus.COMPLETED:
            task = await self._complete_with(task_id, partial)
        else:
            task = await self._store.update_task(task_id, partial)
        self._logger.debug(
            "Updated task %s fields %s",
            task_id,
            sorted(partial),
            extra={"task_id": task_id},
        )
        return task

    async def _complete_with(self, task_id: str, partial: dict[str, Any]) -> Task:
        rest = {key: value for key, value in partial.items() if key != "status"}
        completion = {
            key: rest.pop(key) for key in ("actual_time", "notes") if rest.get(key) is not None
        }
        task = await self._store.complete_task(task_id, **completion)
        if rest:
            task = await self._store.update_task(task_id, rest)
        return task

    async def delete(self, task_id: str) -> None:
        """Delete a task. Deletion is terminal and unconditional."""
        if not await self._store.delete_task(task_id):
            raise TaskNotFoundError(task_id)
        self._logger.info("Deleted task %s", task_id, extra={"task_id": task_id})

    # -- Guarded verbs --

    async def start(self, task_id: str) -> Task:
        await self._check(task_id, TaskAction.START)
        return await self._store.update_task(task_id, {"status": TaskStatus.IN_PROGRESS})

    async def complete(
        self,
        task_id: str,
        actual_time: int | None = None,
        notes: str | None = None,
    ) -> Task:
        if actual_time is not None and actual_time <= 0:
            raise ValidationFailedError({"actual_time": "Must be greater than 0"})
        await self._check(task_id, TaskAction.COMPLETE)
        task = await self._store.complete_task(task_id, actual_time=actual_time, notes=notes)
        self._logger.info(
            "Completed task %s in %s min",
            task_id,
            actual_time if actual_time is not None else "?",
            extra={"task_id": task_id, "actual_time": actual_time},
        )
        return task

    async def cancel(self, task_id: str) -> Task:
        await self._check(task_id, TaskAction.CANCEL)
        return await self._store.update_task(task_id, {"status": TaskStatus.CANCELLED})

    async def _check(self, task_id: str, action: TaskAction) -> Task:
        task = await self.get(task_id)
        if not can_transition(task.status, action):
            self._logger.warning(
                "Rejected %s on task %s in status %s",
                action,
                task_id,
                task.status,
                extra={"task_id": task_id, "action": str(action), "status": str(task.status)},
            )
            raise InvalidTransitionError(task_id, task.status, action)
        return task
