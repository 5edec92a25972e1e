"""
Realtime Sync - Metrics polling, periodic refresh and pushed stock updates

Two independent periodic tasks:
- metrics poll: every 5s, replaces the snapshot and publishes it (a failed
  poll publishes the zeroed snapshot, consumers always get a value)
- refresh: every 30s, re-runs the query the current consumer registered

Stock changes arrive as `stock-changed` events; the matching held record is
updated in place and a `records-changed` notification follows.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from pydantic import ValidationError

from catalog_dashboard.constants import Topic
from catalog_dashboard.events.bus import EventBus, Subscription
from catalog_dashboard.scheduling.policies import PeriodicTask
from catalog_dashboard.scheduling.timers import Scheduler
from catalog_dashboard.schemas.analytics import MetricsSnapshot
from catalog_dashboard.schemas.catalog import Product, StockChange
from catalog_dashboard.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

RefreshTarget = Callable[[], Awaitable[Any]]
RecordsProvider = Callable[[], Iterable[Product]]


class RealTimeSync:
    def __init__(
        self,
        analytics: AnalyticsService,
        bus: EventBus,
        scheduler: Scheduler,
        *,
        metrics_interval: float = 5.0,
        refresh_interval: float = 30.0,
    ):
        self.analytics = analytics
        self.bus = bus
        self.metrics = MetricsSnapshot.zeroed()
        self._metrics_issued = 0
        self._metrics_applied = 0
        self.metrics_task = PeriodicTask(scheduler, metrics_interval, self.collect_metrics, "metrics-poll")
        self.refresh_task = PeriodicTask(scheduler, refresh_interval, self._run_refresh, "catalog-refresh")

        self._refresh_target: Optional[RefreshTarget] = None
        self._records: Optional[RecordsProvider] = None
        self._stock_subscription: Subscription = bus.subscribe(Topic.STOCK_CHANGED, self.on_stock_changed)

    # ---- metrics poll ----

    def start_metrics_polling(self) -> bool:
        return self.metrics_task.start()

    def stop_metrics_polling(self) -> bool:
        return self.metrics_task.stop()

    async def collect_metrics(self) -> MetricsSnapshot:
        """
        One poll tick: replace the snapshot wholesale and publish it.

        Ticks can overlap (the request timeout exceeds the poll interval);
        a tick that resolves after a later tick was applied is discarded.
        """
        self._metrics_issued += 1
        tick = self._metrics_issued
        # Failures already come back as the zeroed snapshot
        snapshot = await self.analytics.get_realtime_metrics()
        if tick < self._metrics_applied:
            logger.debug(f"Discarding metrics from tick {tick}, tick {self._metrics_applied} already applied")
            return self.metrics
        self._metrics_applied = tick
        self.metrics = snapshot
        self.bus.publish(Topic.METRICS_UPDATED, snapshot)
        return snapshot

    # ---- periodic refresh ----

    @property
    def refresh_target(self) -> Optional[RefreshTarget]:
        return self._refresh_target

    @property
    def records_provider(self) -> Optional[RecordsProvider]:
        return self._records

    def set_refresh_target(self, target: Optional[RefreshTarget]) -> None:
        """Register the coroutine function the refresh task re-runs (None to detach)."""
        self._refresh_target = target

    def start_refresh(self) -> bool:
        return self.refresh_task.start()

    def stop_refresh(self) -> bool:
        return self.refresh_task.stop()

    def toggle_refresh(self, enabled: bool) -> None:
        if enabled:
            self.start_refresh()
        else:
            self.stop_refresh()

    async def _run_refresh(self) -> None:
        target = self._refresh_target
        if target is None:
            logger.debug("Refresh tick with no registered target")
            return
        await target()

    # ---- pushed stock updates ----

    def attach_records(self, provider: Optional[RecordsProvider]) -> None:
        """Tell the sync where the currently held records live (None to detach)."""
        self._records = provider

    def push_stock_change(self, product_id: Union[int, str], new_stock: int) -> None:
        self.bus.publish(Topic.STOCK_CHANGED, {"id": product_id, "newStock": new_stock})

    def on_stock_changed(self, payload: Any) -> Optional[Product]:
        """
        Apply a stock-changed event to the held record set.

        Returns:
            The mutated product, or None when the event was a no-op
        """
        try:
            change = StockChange.model_validate(payload)
        except ValidationError:
            logger.warning(f"Ignoring malformed stock update: {payload!r}")
            return None

        if self._records is None:
            return None
        product = next((p for p in self._records() if p.id == change.id), None)
        if product is None:
            logger.debug(f"Stock update for unknown product {change.id} ignored")
            return None

        product.stock_level = change.new_stock
        self.bus.publish(Topic.RECORDS_CHANGED, product)
        return product

    # ---- lifecycle ----

    def close(self) -> None:
        self.metrics_task.stop()
        self.refresh_task.stop()
        self.bus.unsubscribe(self._stock_subscription)
        self._refresh_target = None
        self._records = None
