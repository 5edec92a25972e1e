"""
Analytics View - State of the analytics screen

Keeps the latest aggregate and realtime snapshot, drives the periodic
refresh of the aggregate and writes exports.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from catalog_dashboard.constants import Topic
from catalog_dashboard.events.bus import EventBus, Subscription
from catalog_dashboard.io.writers import atomic_write_bytes, atomic_write_csv, sales_frame
from catalog_dashboard.schemas.analytics import AnalyticsQuery, AnalyticsSummary, MetricsSnapshot
from catalog_dashboard.services.analytics_service import AnalyticsService
from catalog_dashboard.sync.realtime import RealTimeSync

logger = logging.getLogger(__name__)


class AnalyticsView:
    def __init__(self, analytics: AnalyticsService, sync: RealTimeSync, bus: EventBus, *, auto_refresh: bool = True):
        self.analytics = analytics
        self.sync = sync
        self.bus = bus
        self.filters = AnalyticsQuery()
        self.summary = AnalyticsSummary()
        self.realtime_data: MetricsSnapshot = sync.metrics
        self.auto_refresh = auto_refresh
        self.loading = False

        self._generation = 0
        self._subscriptions: List[Subscription] = []
        self.closed = False

    async def init(self) -> None:
        self._subscriptions.append(self.bus.subscribe(Topic.METRICS_UPDATED, self._on_metrics))
        self.sync.set_refresh_target(self.load_analytics)
        await self.load_analytics()
        if self.auto_refresh:
            self.start_auto_refresh()

    async def load_analytics(self) -> Optional[AnalyticsSummary]:
        """Fetch the aggregate for the current filters; stale responses are discarded."""
        self._generation += 1
        generation = self._generation
        self.loading = True
        summary = await self.analytics.get_analytics(self.filters)
        if self.closed or generation != self._generation:
            logger.debug(f"Discarding stale analytics response (generation {generation})")
            return None
        self.loading = False
        self.summary = summary
        self.bus.publish(Topic.ANALYTICS_UPDATED, summary)
        return summary

    async def on_filter_change(self, **changes: Any) -> None:
        """Update start_date / end_date / category / product and reload."""
        self.filters = self.filters.model_copy(update=changes)
        await self.load_analytics()

    def _on_metrics(self, snapshot: MetricsSnapshot) -> None:
        self.realtime_data = snapshot

    # ---- auto refresh ----

    def start_auto_refresh(self) -> None:
        self.sync.start_refresh()

    def stop_auto_refresh(self) -> None:
        self.sync.stop_refresh()

    def toggle_auto_refresh(self, enabled: bool) -> None:
        self.auto_refresh = enabled
        self.sync.toggle_refresh(enabled)

    # ---- export ----

    def export_csv(self, out: Path) -> Path:
        """Write the loaded sales series as Date,Sales,Revenue,Customers."""
        out = Path(out)
        atomic_write_csv(sales_frame(self.summary.sales), out)
        logger.info(f"Exported {len(self.summary.sales)} sales rows to {out}")
        return out

    async def export_data(self, export_format: str, out: Path) -> Optional[Path]:
        """Download the server-side export; None if nothing was returned."""
        data = await self.analytics.export_data(export_format, self.filters.start_date, self.filters.end_date)
        if not data:
            logger.warning(f"Export ({export_format}) returned no data")
            return None
        out = Path(out)
        atomic_write_bytes(data, out)
        return out

    def performance_metrics(self) -> dict:
        return self.analytics.performance_metrics(self.realtime_data)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.sync.refresh_target == self.load_analytics:
            self.sync.stop_refresh()
            self.sync.set_refresh_target(None)
        for subscription in self._subscriptions:
            self.bus.unsubscribe(subscription)
        self._subscriptions.clear()
