"""Quick actions: compound room-status + task operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pydantic import BaseModel

from hkops.core.errors import PartialCompoundFailureError, QuickActionBusyError
from hkops.core.lifecycle import TaskLifecycleManager
from hkops.models.enums import QuickActionKind, RoomStatus, TaskPriority, TaskType
from hkops.models.room import Room
from hkops.models.task import Task, TaskInput
from hkops.store.base import TaskStore

__all__ = [
    "QUICK_ACTIONS",
    "QuickActionOrchestrator",
    "QuickActionPlan",
    "QuickActionResult",
]

STEP_UPDATE_ROOM_STATUS = "update_room_status"
STEP_CREATE_TASK = "create_task"

PartialFailureCallback = Callable[[PartialCompoundFailureError], Awaitable[None]]


@dataclass(frozen=True)
class QuickActionPlan:
    """What a quick action does.

    Attributes:
        room_status: Status to set on the room first, or ``None`` for a
            single-step action.
        task_type: Type of the task created afterwards.
        priority: Priority of that task.
        estimated_time: Estimated minutes for that task.
        notes: Notes attached to the task.
    """

    room_status: RoomStatus | None
    task_type: TaskType
    priority: TaskPriority
    estimated_time: int
    notes: str

    def task_input(self, room_id: str) -> TaskInput:
        return TaskInput(
            room_id=room_id,
            task_type=self.task_type,
            priority=self.priority,
            estimated_time=self.estimated_time,
            notes=self.notes,
        )


QUICK_ACTIONS: dict[QuickActionKind, QuickActionPlan] = {
    QuickActionKind.CHECKOUT: QuickActionPlan(
        room_status=RoomStatus.CLEANING,
        task_type=TaskType.CLEANING,
        priority=TaskPriority.HIGH,
        estimated_time=45,
        notes="Post check-out cleaning required",
    ),
    QuickActionKind.MAINTENANCE: QuickActionPlan(
        room_status=RoomStatus.MAINTENANCE,
        task_type=TaskType.MAINTENANCE,
        priority=TaskPriority.HIGH,
        estimated_time=120,
        notes="Room requires maintenance attention",
    ),
    QuickActionKind.CLEAN: QuickActionPlan(
        room_status=None,
        task_type=TaskType.CLEANING,
        priority=TaskPriority.MEDIUM,
        estimated_time=30,
        notes="Quick cleaning requested",
    ),
}


class QuickActionResult(BaseModel):
    """Outcome of a fully successful quick action."""

    kind: QuickActionKind
    room_id: str
    room: Room | None = None
    task: Task


class QuickActionOrchestrator:
    """Runs quick actions as explicit two-phase procedures.

    Phase 1 sets the room status, phase 2 creates the follow-up task through
    the lifecycle manager. The two writes are not transactional:

    * phase 1 fails -> its error propagates and phase 2 never runs;
    * phase 2 fails -> ``PartialCompoundFailureError``; the room keeps its
      new status and nothing is retried or rolled back.

    Only one quick action may run per room at a time.
    """

    def __init__(
        self,
        store: TaskStore,
        lifecycle: TaskLifecycleManager,
        *,
        plans: dict[QuickActionKind, QuickActionPlan] | None = None,
        on_partial_failure: PartialFailureCallback | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._lifecycle = lifecycle
        self._plans = plans if plans is not None else QUICK_ACTIONS
        self._on_partial_failure = on_partial_failure
        self._logger = logger or logging.getLogger("hkops.quick_actions")
        self._in_flight: set[str] = set()

    def is_busy(self, room_id: str) -> bool:
        return room_id in self._in_flight

    async def run(self, kind: QuickActionKind, room_id: str) -> QuickActionResult:
        plan = self._plans[QuickActionKind(kind)]
        if room_id in self._in_flight:
            raise QuickActionBusyError(room_id)
        self._in_flight.add(room_id)
        try:
            return await self._run_plan(QuickActionKind(kind), plan, room_id)
        finally:
            self._in_flight.discard(room_id)

    async def _run_plan(
        self, kind: QuickActionKind, plan: QuickActionPlan, room_id: str
    ) -> QuickActionResult:
        room: Room | None = None
        completed: tuple[str, ...] = ()

        if plan.room_status is not None:
            # Phase 1: any failure aborts before the task is attempted.
            room = await self._store.update_room_status(room_id, plan.room_status)
            completed = (STEP_UPDATE_ROOM_STATUS,)
            self._logger.info(
                "Quick action %s: room %s set to %s",
                kind,
                room_id,
                plan.room_status,
                extra={"room_id": room_id, "quick_action": str(kind)},
            )

        try:
            task = await self._lifecycle.create(plan.task_input(room_id))
        except Exception as exc:
            if not completed:
                raise
            error = PartialCompoundFailureError(
                kind,
                room_id,
                completed_steps=completed,
                failed_step=STEP_CREATE_TASK,
                room=room,
            )
            error.__cause__ = exc
            self._logger.error(
                "Quick action %s on room %s partially applied: room is %s, task not created: %s",
                kind,
                room_id,
                plan.room_status,
                exc,
                extra={
                    "room_id": room_id,
                    "quick_action": str(kind),
                    "completed_steps": list(completed),
                    "failed_step": STEP_CREATE_TASK,
                },
            )
            if self._on_partial_failure is not None:
                try:
                    await self._on_partial_failure(error)
                except Exception:
                    self._logger.exception("Partial-failure callback failed")
            raise error from exc

        return QuickActionResult(kind=kind, room_id=room_id, room=room, task=task)
