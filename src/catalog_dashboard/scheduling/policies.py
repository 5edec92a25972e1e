"""
Timing policies built on the Scheduler: debounce, throttle, periodic tasks
"""

import logging
from enum import Enum
from typing import Optional

from catalog_dashboard.scheduling.timers import Callback, Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Collapse a burst of triggers into one call after a quiet period.

    Every trigger cancels the pending call and schedules a new one, so only
    the last trigger within the window actually runs.
    """

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callback, name: str = "debounce"):
        self._scheduler = scheduler
        self.delay = delay
        self._callback = callback
        self._name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and self._handle.active

    def trigger(self) -> TimerHandle:
        self._scheduler.cancel(self._handle)
        self._handle = self._scheduler.schedule(self.delay, self._run, self._name)
        return self._handle

    def cancel(self) -> bool:
        cancelled = self._scheduler.cancel(self._handle)
        self._handle = None
        return cancelled

    def _run(self):
        self._handle = None
        return self._callback()


class Throttler:
    """
    Run a callback at most once per window.

    The first trigger of a window arms a trailing call at the end of the
    window; further triggers in the same window are absorbed. The callback
    reads current state when it runs, so the latest change always wins.
    """

    def __init__(self, scheduler: Scheduler, window: float, callback: Callback, name: str = "throttle"):
        self._scheduler = scheduler
        self.window = window
        self._callback = callback
        self._name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and self._handle.active

    def trigger(self) -> TimerHandle:
        if not self.pending:
            self._handle = self._scheduler.schedule(self.window, self._run, self._name)
        return self._handle

    def cancel(self) -> bool:
        cancelled = self._scheduler.cancel(self._handle)
        self._handle = None
        return cancelled

    def _run(self):
        self._handle = None
        return self._callback()


class TaskState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class PeriodicTask:
    """
    Repeating timer with an explicit Stopped/Running state machine.

    Starting a running task is a no-op, so there is never more than one
    armed timer per task. Stopping only prevents future ticks; work spawned
    by the last tick is left to complete.
    """

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callback, name: str = "periodic"):
        if interval <= 0:
            raise ValueError(f"Interval must be > 0: {interval}")
        self._scheduler = scheduler
        self.interval = interval
        self._callback = callback
        self.name = name
        self.state = TaskState.STOPPED
        self.tick_count = 0
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self.state is TaskState.RUNNING

    def start(self, immediate: bool = False) -> bool:
        """
        Args:
            immediate: Run one tick right away instead of after the first interval

        Returns:
            True if the task transitioned from Stopped to Running
        """
        if self.running:
            logger.debug(f"Periodic task '{self.name}' already running")
            return False
        self.state = TaskState.RUNNING
        logger.info(f"Started periodic task '{self.name}' (every {self.interval}s)")
        if immediate:
            self._tick()
        else:
            self._arm()
        return True

    def stop(self) -> bool:
        if not self.running:
            return False
        self.state = TaskState.STOPPED
        self._scheduler.cancel(self._handle)
        self._handle = None
        logger.info(f"Stopped periodic task '{self.name}' after {self.tick_count} ticks")
        return True

    def restart(self) -> None:
        self.stop()
        self.start()

    def _arm(self) -> None:
        self._handle = self._scheduler.schedule(self.interval, self._tick, self.name)

    def _tick(self) -> None:
        if not self.running:
            return
        # Re-arm before running so a slow tick does not delay the next one
        self._arm()
        self.tick_count += 1
        self._scheduler.invoke(self._callback, self.name)
