"""Serial tick driver for the coordinator loop.

A tick starts only after the previous tick's actions were handed to the sink
and the sink returned.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from mission_control.contracts import CoordinatorSnapshot
from mission_control.coordinator.loop import CoordinatorActions, CoordinatorLoop

logger = logging.getLogger(__name__)

SnapshotProvider = Callable[[], CoordinatorSnapshot]
ActionSink = Callable[[CoordinatorActions], None]


class TickInProgressError(RuntimeError):
    """A second tick was requested while one is still being applied."""


@dataclass(slots=True)
class SchedulerRunSummary:
    """Aggregate tick counters for CLI reporting."""

    ticks: int = 0
    decomposed: int = 0
    delegated: int = 0
    escalated: int = 0
    stuck: int = 0
    cycles: int = 0

    def add(self, actions: CoordinatorActions) -> None:
        self.ticks += 1
        self.decomposed += len(actions.tasks_to_decompose)
        self.delegated += len(actions.delegations)
        self.escalated += len(actions.escalations)
        self.stuck += len(actions.stuck_alerts)
        self.cycles += len(actions.cycles)


class TickScheduler:
    """Runs ``CoordinatorLoop.tick`` on the configured poll interval."""

    def __init__(
        self,
        *,
        loop: CoordinatorLoop,
        snapshot_provider: SnapshotProvider,
        action_sink: ActionSink,
    ) -> None:
        self.loop = loop
        self.snapshot_provider = snapshot_provider
        self.action_sink = action_sink
        self._tick_lock = threading.Lock()
        self._stop_requested = False

    @property
    def poll_interval_seconds(self) -> float:
        return self.loop.get_config().poll_interval_ms / 1000

    def run_once(self) -> CoordinatorActions:
        """Read a fresh snapshot, tick, and apply the actions before returning."""

        if not self._tick_lock.acquire(blocking=False):
            raise TickInProgressError("A coordinator tick is already in progress.")
        try:
            snapshot = self.snapshot_provider()
            actions = self.loop.tick(snapshot.state, now=snapshot.now)
            self.action_sink(actions)
            return actions
        finally:
            self._tick_lock.release()

    def run_loop(self, *, max_ticks: int | None = None) -> SchedulerRunSummary:
        """Tick until ``max_ticks`` is reached or a stop signal arrives."""

        summary = SchedulerRunSummary()
        with self._signal_handlers():
            while not self._stop_requested:
                if max_ticks is not None and summary.ticks >= max_ticks:
                    break
                summary.add(self.run_once())
                if max_ticks is not None and summary.ticks >= max_ticks:
                    break
                self._sleep_with_stop(self.poll_interval_seconds)
        return summary

    def request_stop(self) -> None:
        self._stop_requested = True

    def _sleep_with_stop(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while not self._stop_requested and time.monotonic() < deadline:
            time.sleep(min(0.1, max(0.0, deadline - time.monotonic())))

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        if not hasattr(signal, "SIGINT"):
            yield
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            logger.info("Stop requested by signal %s", signum)
            self.request_stop()

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
        except ValueError:
            # Signal handlers can only be installed in main thread.
            yield
            return
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)
