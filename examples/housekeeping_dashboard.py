"""Housekeeping dashboard walkthrough.

Demonstrates the housekeeping engine against the in-memory store. Shows:
- Creating tasks and moving them through start / complete
- Stats and alerts derived from a poll snapshot
- Marking alerts as read so they stay read after the next poll
- Quick actions, including a partial failure when task creation breaks

Run with:
    uv run python examples/housekeeping_dashboard.py
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from hkops import (
    FrameworkEvent,
    HousekeepingEngine,
    InMemoryTaskStore,
    PartialCompoundFailureError,
    QuickActionKind,
    Room,
    RoomStatus,
    StoreUnavailableError,
    Task,
    TaskInput,
    TaskPriority,
    TaskStatus,
    TaskType,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


class BrokenCreateStore(InMemoryTaskStore):
    """Store whose task creation can be switched off to show a partial failure."""

    broken = False

    async def create_task(self, data: TaskInput) -> Task:
        if self.broken:
            raise StoreUnavailableError("backend rejected createHousekeepingTask")
        return await super().create_task(data)


async def main() -> None:
    now = datetime.now(UTC)
    store = BrokenCreateStore(
        rooms=[
            Room(id="R1", number="101", type="SINGLE", status=RoomStatus.OCCUPIED),
            Room(id="R2", number="102", type="DOUBLE"),
            Room(id="R3", number="201", type="SUITE", status=RoomStatus.MAINTENANCE),
        ],
        tasks=[
            Task(
                id="seed-1",
                room_id="R2",
                room_number="102",
                task_type=TaskType.INSPECTION,
                priority=TaskPriority.MEDIUM,
                estimated_time=15,
                created_at=now - timedelta(hours=3),
            ),
        ],
    )
    engine = HousekeepingEngine(store)

    @engine.on("quick_action_partial_failure")
    async def on_partial(event: FrameworkEvent) -> None:
        print(f"  !! partial failure on room {event.room_id}: {event.data}")

    # =====================================================
    # Part 1: Task lifecycle
    # =====================================================
    print("=== Task lifecycle ===\n")
    task = await engine.lifecycle.create(
        TaskInput(
            room_id="R1",
            task_type=TaskType.CLEANING,
            priority=TaskPriority.URGENT,
            estimated_time=30,
        )
    )
    print(f"Created {task.id[:8]} for room {task.room_number} ({task.status})")

    done = await engine.lifecycle.create(
        {"room_id": "R2", "task_type": "CLEANING", "priority": "LOW", "estimated_time": 20}
    )
    await engine.lifecycle.start(done.id)
    done = await engine.lifecycle.complete(done.id, actual_time=18)
    print(f"Completed {done.id[:8]} in {done.actual_time} min ({done.status})")

    # =====================================================
    # Part 2: Stats and alerts
    # =====================================================
    print("\n=== Stats and alerts ===\n")
    await engine.refresh()
    stats = engine.get_stats()
    print(
        f"total={stats.total_tasks} pending={stats.pending_cleaning} "
        f"cleaned_today={stats.cleaned_today} avg={stats.average_cleaning_time:.1f} min"
    )
    for alert in engine.get_alerts():
        print(f"  [{alert.priority:>6}] {alert.title}: {alert.message}")

    first = engine.get_alerts()[0]
    engine.mark_as_read(first.id)
    await engine.refresh()
    print(f"\nMarked {first.id} as read; unread after next poll: {engine.unread_count()}")

    # =====================================================
    # Part 3: Quick actions
    # =====================================================
    print("\n=== Quick actions ===\n")
    result = await engine.run_quick_action(QuickActionKind.CHECKOUT, "R1")
    assert result.room is not None
    print(f"Checkout: room 101 -> {result.room.status}, task {result.task.task_type}")

    store.broken = True
    try:
        await engine.run_quick_action(QuickActionKind.MAINTENANCE, "R2")
    except PartialCompoundFailureError as exc:
        print(f"Maintenance failed after {exc.completed_steps}: {exc.__cause__}")
    rooms = {r.id: r.status for r in await store.list_rooms()}
    print(f"Room 102 is now {rooms['R2']} (no rollback)")

    pending = await engine.lifecycle.list_tasks(status=TaskStatus.PENDING)
    print(f"\nPending tasks: {len(pending)}")

    await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
