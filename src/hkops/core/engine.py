"""HousekeepingEngine - facade over lifecycle, polling, stats and alerts."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from hkops.core.alerts import AlertReadState, derive_alerts, filter_alerts, unread_count
from hkops.core.errors import PartialCompoundFailureError
from hkops.core.lifecycle import TaskLifecycleManager
from hkops.core.poller import SnapshotPoller
from hkops.core.quick_actions import QuickActionOrchestrator, QuickActionResult
from hkops.core.stats import aggregate
from hkops.models.alert import Alert
from hkops.models.config import HousekeepingConfig
from hkops.models.enums import AlertCategory, QuickActionKind
from hkops.models.framework_event import FrameworkEvent
from hkops.models.snapshot import Snapshot
from hkops.models.stats import HousekeepingStats
from hkops.store.base import TaskStore

__all__ = ["FrameworkEventHandler", "HousekeepingEngine"]

FrameworkEventHandler = Callable[[FrameworkEvent], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class HousekeepingEngine:
    """Central object tying the store, poller, derivations and quick actions.

    Stats and alerts are recomputed from each applied snapshot. Read state
    lives in an ``AlertReadState`` owned by the engine and is re-applied on
    every derivation, so acknowledging an alert survives the next poll.

    Framework events (register with :meth:`on`):

    * ``snapshot_applied`` - a poll cycle produced new data
    * ``sync_failed`` - polling started failing (once per failure streak)
    * ``sync_recovered`` - polling works again
    * ``quick_action_completed`` - both steps of a quick action succeeded
    * ``quick_action_partial_failure`` - step 1 applied, step 2 failed
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        config: HousekeepingConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._config = config or HousekeepingConfig()
        self._clock = clock
        self._logger = logger or logging.getLogger("hkops")
        self._event_handlers: list[tuple[str, FrameworkEventHandler]] = []

        self._read_state = AlertReadState()
        self._stats = HousekeepingStats()
        self._alerts: list[Alert] = []
        self._derived_at: datetime | None = None

        self._lifecycle = TaskLifecycleManager(store, logger=self._logger.getChild("lifecycle"))
        self._quick_actions = QuickActionOrchestrator(
            store,
            self._lifecycle,
            on_partial_failure=self._on_partial_failure,
            logger=self._logger.getChild("quick_actions"),
        )
        self._poller = SnapshotPoller(
            store,
            interval=self._config.poll_interval_seconds,
            on_snapshot=self._on_snapshot,
            on_error=self._on_sync_error,
            on_recovered=self._on_sync_recovered,
            clock=clock,
            logger=self._logger.getChild("poller"),
        )

    # -- Components --

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def lifecycle(self) -> TaskLifecycleManager:
        """Task mutations (create, start, complete, cancel, update, delete)."""
        return self._lifecycle

    @property
    def poller(self) -> SnapshotPoller:
        return self._poller

    @property
    def read_state(self) -> AlertReadState:
        return self._read_state

    @property
    def snapshot(self) -> Snapshot | None:
        return self._poller.snapshot

    # -- Lifecycle --

    async def start(self) -> None:
        await self._poller.start()

    async def stop(self) -> None:
        await self._poller.stop()

    async def close(self) -> None:
        await self.stop()
        await self._store.close()

    async def __aenter__(self) -> HousekeepingEngine:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def refresh(self) -> Snapshot | None:
        """Poll once now instead of waiting for the next tick."""
        return await self._poller.refresh()

    # -- Upward API --

    def get_stats(self) -> HousekeepingStats:
        return self._stats

    def get_alerts(
        self,
        *,
        category: AlertCategory | None = None,
        unread_only: bool = False,
    ) -> list[Alert]:
        return filter_alerts(self._alerts, category=category, unread_only=unread_only)

    def unread_count(self) -> int:
        return unread_count(self._alerts)

    def mark_as_read(self, alert_id: str) -> None:
        self._read_state.mark_as_read(alert_id)
        self._rederive()

    def mark_all_as_read(self) -> None:
        self._read_state.mark_all_as_read(a.id for a in self._alerts)
        self._rederive()

    def remove_alert(self, alert_id: str) -> None:
        self._read_state.remove(alert_id)
        self._rederive()

    async def run_quick_action(self, kind: QuickActionKind, room_id: str) -> QuickActionResult:
        result = await self._quick_actions.run(kind, room_id)
        await self._emit_framework_event(
            "quick_action_completed",
            task_id=result.task.id,
            room_id=room_id,
            data={"kind": str(result.kind)},
        )
        return result

    # -- Framework events --

    def on(self, event_type: str) -> Callable[..., Any]:
        """Decorator to register a framework event handler filtered by type."""

        def decorator(fn: FrameworkEventHandler) -> FrameworkEventHandler:
            self._event_handlers.append((event_type, fn))
            return fn

        return decorator

    async def _emit_framework_event(
        self,
        event_type: str,
        task_id: str | None = None,
        room_id: str | None = None,
        alert_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Emit a framework event to handlers registered for *event_type*."""
        fw_event = FrameworkEvent(
            type=event_type,
            task_id=task_id,
            room_id=room_id,
            alert_id=alert_id,
            timestamp=self._clock(),
            data=data or {},
        )
        for filter_type, handler in self._event_handlers:
            if filter_type == fw_event.type:
                try:
                    await handler(fw_event)
                except Exception:
                    self._logger.exception(
                        "Framework event handler failed",
                        extra={"event_type": fw_event.type},
                    )

    # -- Derivation --

    def _derive(self, snapshot: Snapshot, now: datetime) -> None:
        self._stats = aggregate(snapshot.tasks, now)
        self._alerts = derive_alerts(
            snapshot.tasks,
            snapshot.rooms,
            now,
            self._read_state.read_map(),
            dismissed=self._read_state.dismissed,
            overdue_after=self._config.overdue_after,
            recent_window=self._config.recent_window,
            limit=self._config.max_alerts,
        )
        self._derived_at = now

    def _rederive(self) -> None:
        snapshot = self._poller.snapshot
        if snapshot is None or self._derived_at is None:
            return
        self._derive(snapshot, self._derived_at)

    # -- Poller / orchestrator callbacks --

    async def _on_snapshot(self, snapshot: Snapshot) -> None:
        self._derive(snapshot, self._clock())
        await self._emit_framework_event(
            "snapshot_applied",
            data={
                "tasks_sequence": snapshot.tasks_sequence,
                "rooms_sequence": snapshot.rooms_sequence,
                "alerts": len(self._alerts),
                "unread": self.unread_count(),
            },
        )

    async def _on_sync_error(self, exc: Exception) -> None:
        await self._emit_framework_event(
            "sync_failed",
            data={"error": str(exc), "error_type": type(exc).__name__},
        )

    async def _on_sync_recovered(self) -> None:
        await self._emit_framework_event("sync_recovered")

    async def _on_partial_failure(self, error: PartialCompoundFailureError) -> None:
        await self._emit_framework_event(
            "quick_action_partial_failure",
            room_id=error.room_id,
            data={
                "kind": str(error.kind),
                "completed_steps": list(error.completed_steps),
                "failed_step": error.failed_step,
                "room_status": str(error.room.status) if error.room is not None else None,
                "error": str(error.__cause__) if error.__cause__ is not None else None,
            },
        )
