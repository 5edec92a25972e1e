"""
Timers - Cancellable one-shot timers on a cooperative scheduler

`schedule(delay, fn)` returns a handle that `cancel(handle)` disarms. The
scheduler keeps track of every armed handle so a consumer can be torn down
without any callback firing afterwards.

Callbacks may be plain functions or coroutine functions; a returned
awaitable is spawned as a task and its failure is logged, never raised
into the scheduler.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

Callback = Callable[[], Any]


class TimerHandle:
    """One armed timer. Fires at most once."""

    __slots__ = ("when", "callback", "name", "cancelled", "fired", "_native")

    def __init__(self, when: float, callback: Callback, name: str = ""):
        self.when = when
        self.callback = callback
        self.name = name or getattr(callback, "__qualname__", "timer")
        self.cancelled = False
        self.fired = False
        self._native: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "fired" if self.fired else "armed"
        return f"<TimerHandle {self.name} at={self.when:.3f} {state}>"


class Scheduler(ABC):
    """Base class: bookkeeping of armed timers and spawned tasks."""

    def __init__(self):
        self._armed: Set[TimerHandle] = set()

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""

    @abstractmethod
    def _arm(self, handle: TimerHandle, delay: float) -> None:
        pass

    @abstractmethod
    def _disarm(self, handle: TimerHandle) -> None:
        pass

    @abstractmethod
    def spawn(self, awaitable: Awaitable[Any], name: str = "") -> "asyncio.Future[Any]":
        """Run an awaitable concurrently on the loop."""

    def schedule(self, delay: float, callback: Callback, name: str = "") -> TimerHandle:
        if delay < 0:
            raise ValueError(f"delay must be >= 0: {delay}")
        handle = TimerHandle(self.now() + delay, callback, name)
        self._armed.add(handle)
        self._arm(handle, delay)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> bool:
        """Disarm a timer. Returns True if it was still pending."""
        if handle is None or not handle.active:
            return False
        handle.cancelled = True
        self._armed.discard(handle)
        self._disarm(handle)
        return True

    def cancel_all(self) -> int:
        handles = list(self._armed)
        for handle in handles:
            self.cancel(handle)
        return len(handles)

    @property
    def pending_count(self) -> int:
        return len(self._armed)

    def _fire(self, handle: TimerHandle) -> None:
        if not handle.active:
            return
        handle.fired = True
        self._armed.discard(handle)
        self.invoke(handle.callback, handle.name)

    def invoke(self, callback: Callback, name: str = "") -> None:
        """Call a callback now; spawn it if it returns an awaitable."""
        try:
            result = callback()
        except Exception:
            logger.exception(f"Timer callback '{name}' failed")
            return
        if inspect.isawaitable(result):
            self.spawn(_log_failures(result, name), name=name)


async def _log_failures(awaitable: Awaitable[Any], name: str) -> None:
    try:
        await awaitable
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception(f"Scheduled task '{name}' failed")


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        self._loop = loop
        self._tasks: Set["asyncio.Future[Any]"] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def _arm(self, handle: TimerHandle, delay: float) -> None:
        handle._native = self.loop.call_later(delay, self._fire, handle)

    def _disarm(self, handle: TimerHandle) -> None:
        if handle._native is not None:
            handle._native.cancel()
            handle._native = None

    def spawn(self, awaitable: Awaitable[Any], name: str = "") -> "asyncio.Future[Any]":
        task = asyncio.ensure_future(awaitable, loop=self.loop)
        # Keep a strong reference until done, the loop only holds weak ones
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every spawned task (in-flight requests) to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
