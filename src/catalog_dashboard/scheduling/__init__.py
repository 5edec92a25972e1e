"""Cancellable timers and the debounce/throttle/periodic policies built on them."""

from .policies import Debouncer, PeriodicTask, TaskState, Throttler
from .timers import AsyncioScheduler, Scheduler, TimerHandle

__all__ = [
    "AsyncioScheduler",
    "Debouncer",
    "PeriodicTask",
    "Scheduler",
    "TaskState",
    "Throttler",
    "TimerHandle",
]
