"""
Pytest configuration and shared fixtures.

`ManualScheduler` replaces the asyncio-backed scheduler with virtual time so
timer behavior (debounce, throttle, polling) can be asserted to the
millisecond without sleeping.
"""

import asyncio
import heapq
import itertools
from typing import Any, Awaitable, List
from unittest.mock import Mock

import pytest

from catalog_dashboard.adapters.http.client import DashboardAPIClient
from catalog_dashboard.cache.store import CacheStore
from catalog_dashboard.events.bus import EventBus
from catalog_dashboard.scheduling.timers import Scheduler, TimerHandle
from catalog_dashboard.schemas.catalog import Product
from catalog_dashboard.services.fetcher import DataFetcher

# Timers due within this tolerance of the target time fire (float sums of ms steps)
_EPSILON = 1e-9


class ManualScheduler(Scheduler):
    """Virtual-time scheduler: nothing fires until the test advances the clock."""

    def __init__(self):
        super().__init__()
        self._now = 0.0
        self._queue: List[Any] = []
        self._seq = itertools.count()
        self._tasks: List["asyncio.Future[Any]"] = []
        self.fired: List[TimerHandle] = []

    def now(self) -> float:
        return self._now

    def _arm(self, handle: TimerHandle, delay: float) -> None:
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))

    def _disarm(self, handle: TimerHandle) -> None:
        # Cancelled handles are skipped when popped
        pass

    def spawn(self, awaitable: Awaitable[Any], name: str = "") -> "asyncio.Future[Any]":
        task = asyncio.ensure_future(awaitable)
        self._tasks.append(task)
        return task

    def _pop_due(self, target: float):
        while self._queue and self._queue[0][0] <= target + _EPSILON:
            when, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self._now = max(self._now, when)
            yield handle

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due timers (synchronous callbacks only)."""
        target = self._now + seconds
        for handle in self._pop_due(target):
            self.fired.append(handle)
            self._fire(handle)
        self._now = target

    async def settle(self, seconds: float = 0.0) -> None:
        """Async variant: also awaits tasks spawned by each fired timer."""
        target = self._now + seconds
        await self.drain()
        for handle in self._pop_due(target):
            self.fired.append(handle)
            self._fire(handle)
            await self.drain()
        self._now = target

    async def drain(self) -> None:
        while self._tasks:
            tasks, self._tasks = self._tasks, []
            await asyncio.gather(*tasks)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def cache(clock) -> CacheStore:
    return CacheStore(ttl_seconds=300.0, clock=clock)


@pytest.fixture
def client() -> Mock:
    """API client double; set .get.return_value / .side_effect per test."""
    mock = Mock(spec=DashboardAPIClient)
    mock.get.return_value = None
    mock.post.return_value = None
    mock.get_bytes.return_value = b""
    return mock


@pytest.fixture
def fetcher(client, cache) -> DataFetcher:
    return DataFetcher(client, cache, default_timeout=10.0)


def make_product(product_id: int, **overrides: Any) -> Product:
    fields = {
        "id": product_id,
        "name": f"Product {product_id}",
        "description": "",
        "category": "electronics",
        "price": 20.0,
        "stockQuantity": 5,
    }
    fields.update(overrides)
    return Product.model_validate(fields)


@pytest.fixture
def products() -> List[Product]:
    return [
        make_product(1, name="Wireless Mouse", description="Ergonomic 2.4GHz mouse", category="electronics", price=9.99, stockQuantity=12),
        make_product(2, name="Desk Lamp", description="LED lamp with USB port", category="home", price=50.0, stockQuantity=0),
        make_product(3, name="USB-C Cable", description="Braided, 2m", category="electronics", price=50.01, stockQuantity=3),
        make_product(4, name="Notebook", description="A5 dotted paper", category="office", price=12.5, stockQuantity=40, rating=4.5),
        make_product(5, name="Headphones", description="Noise cancelling", category="Electronics", price=199.0, stockQuantity=7, rating=3.9),
    ]


@pytest.fixture
def product_factory():
    return make_product
