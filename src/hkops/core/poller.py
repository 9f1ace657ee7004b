"""Periodic snapshot polling with out-of-order protection."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from hkops.core.errors import StoreUnavailableError
from hkops.models.room import Room
from hkops.models.snapshot import Snapshot
from hkops.models.task import Task
from hkops.store.base import TaskStore

__all__ = ["SnapshotPoller"]

SnapshotCallback = Callable[[Snapshot], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]
RecoveredCallback = Callable[[], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SnapshotPoller:
    """Keeps a task/room snapshot fresh by polling the store.

    A single background loop spawns one tick per interval. Ticks run as their
    own tasks, so a slow tick can still be in flight when the next one
    starts. Every tick takes a sequence number and a result is applied only
    if its number is higher than the last one applied for that kind (tasks or
    rooms), so a late reply never overwrites a newer one.

    On failure the last good data stays in place. ``on_error`` fires once
    when a failure streak begins and ``on_recovered`` once when it ends.
    A tick older than the last one whose outcome was recorded cannot start
    or end a streak.

    Lifecycle:
        1. ``await poller.start()`` - begin polling (first tick immediately)
        2. ``poller.snapshot`` - latest applied snapshot, or ``None``
        3. ``await poller.stop()`` - cancel the loop and in-flight ticks;
           replies arriving afterwards are dropped
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        interval: float = 30.0,
        on_snapshot: SnapshotCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_recovered: RecoveredCallback | None = None,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._store = store
        self._interval = interval
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._on_recovered = on_recovered
        self._clock = clock
        self._logger = logger or logging.getLogger("hkops.poller")

        self._sequence = 0
        self._generation = 0
        self._tasks: list[Task] = []
        self._rooms: list[Room] = []
        self._tasks_seq = 0
        self._rooms_seq = 0
        self._outcome_seq = 0
        self._snapshot: Snapshot | None = None
        self._failing = False

        self._stop_event = asyncio.Event()
        self._loop_task: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[Snapshot | None]] = set()

    # -- State queries --

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def is_failing(self) -> bool:
        """True while the most recent fetches have been failing."""
        return self._failing

    @property
    def last_sequence(self) -> int:
        return self._sequence

    # -- Lifecycle --

    async def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run(), name="hkops:poller")
        self._logger.info("Poller started (interval %.1fs)", self._interval)

    async def stop(self) -> None:
        """Stop polling and drop anything still in flight."""
        self._generation += 1
        self._stop_event.set()
        pending: list[asyncio.Task[Any]] = list(self._ticks)
        if self._loop_task is not None:
            pending.append(self._loop_task)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._ticks.clear()
        self._loop_task = None
        self._logger.info("Poller stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            self._spawn_tick()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)

    def _spawn_tick(self) -> None:
        tick = asyncio.create_task(self.refresh(), name=f"hkops:poll:{self._sequence + 1}")
        self._ticks.add(tick)
        tick.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task[Snapshot | None]) -> None:
        self._ticks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("Poll tick %s failed: %s", task.get_name(), exc)

    # -- One cycle --

    async def refresh(self) -> Snapshot | None:
        """Run one fetch cycle now and return the current snapshot."""
        self._sequence += 1
        seq = self._sequence
        generation = self._generation

        tasks_res, rooms_res = await asyncio.gather(
            self._store.list_tasks(),
            self._store.list_rooms(),
            return_exceptions=True,
        )
        for res in (tasks_res, rooms_res):
            if isinstance(res, BaseException) and not isinstance(res, Exception):
                raise res

        if generation != self._generation:
            self._logger.debug("Dropping poll #%d reply received after stop", seq)
            return self._snapshot

        failures: list[Exception] = []
        applied = False

        if isinstance(tasks_res, Exception):
            failures.append(tasks_res)
        elif seq > self._tasks_seq:
            self._tasks, self._tasks_seq = tasks_res, seq
            applied = True
        else:
            self._logger.debug(
                "Discarding stale tasks reply #%d (already applied #%d)", seq, self._tasks_seq
            )

        if isinstance(rooms_res, Exception):
            failures.append(rooms_res)
        elif seq > self._rooms_seq:
            self._rooms, self._rooms_seq = rooms_res, seq
            applied = True
        else:
            self._logger.debug(
                "Discarding stale rooms reply #%d (already applied #%d)", seq, self._rooms_seq
            )

        if applied:
            self._snapshot = Snapshot(
                tasks=list(self._tasks),
                rooms=list(self._rooms),
                tasks_sequence=self._tasks_seq,
                rooms_sequence=self._rooms_seq,
                fetched_at=self._clock(),
            )
            await self._notify(self._on_snapshot, self._snapshot)

        if seq < self._outcome_seq:
            if failures:
                self._logger.debug(
                    "Ignoring failure of poll #%d (outcome of #%d already recorded): %s",
                    seq,
                    self._outcome_seq,
                    failures[0],
                )
            return self._snapshot
        self._outcome_seq = seq

        if failures:
            await self._record_failure(seq, failures[0])
        elif self._failing:
            self._failing = False
            self._logger.info("Store reachable again at poll #%d", seq)
            await self._notify(self._on_recovered)

        return self._snapshot

    async def _record_failure(self, seq: int, exc: Exception) -> None:
        if self._failing:
            self._logger.debug("Poll #%d still failing: %s", seq, exc)
            return
        self._failing = True
        if isinstance(exc, StoreUnavailableError):
            self._logger.warning(
                "Poll #%d failed, serving last snapshot: %s",
                seq,
                exc,
                extra={"sequence": seq},
            )
        else:
            self._logger.error(
                "Poll #%d raised unexpectedly, serving last snapshot",
                seq,
                exc_info=exc,
                extra={"sequence": seq},
            )
        await self._notify(self._on_error, exc)

    async def _notify(self, callback: Callable[..., Awaitable[None]] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            await callback(*args)
        except Exception:
            self._logger.exception("Poller callback failed")
