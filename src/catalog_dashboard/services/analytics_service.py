"""
Analytics Service - Aggregates, realtime metrics, event tracking and export

Tracking is fire-and-forget: events are posted on a background task and a
failed post never reaches the user flow.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from pydantic import ValidationError

from catalog_dashboard import constants
from catalog_dashboard.scheduling.timers import Scheduler
from catalog_dashboard.schemas.analytics import AnalyticsQuery, AnalyticsSummary, MetricsSnapshot, TrackedEvent
from catalog_dashboard.services.fetcher import DataFetcher

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, fetcher: DataFetcher, scheduler: Scheduler, context: Optional[Dict[str, Any]] = None):
        """
        Args:
            fetcher: Shared fetcher (analytics responses are not cached)
            scheduler: Used to spawn fire-and-forget event posts
            context: Client context attached to every tracked event
        """
        self.fetcher = fetcher
        self.scheduler = scheduler
        self.context: Dict[str, Any] = dict(context or {})
        self.events_sent = 0
        self.events_failed = 0

    async def get_analytics(self, query: AnalyticsQuery) -> AnalyticsSummary:
        """Aggregates for a date range; zeroed summary on failure."""
        data = await self.fetcher.fetch(constants.ANALYTICS_ENDPOINT, query.to_params(), use_cache=False)
        try:
            return AnalyticsSummary.model_validate(data)
        except ValidationError as e:
            logger.error(f"Malformed analytics payload: {e}")
            return AnalyticsSummary()

    async def get_realtime_metrics(self) -> MetricsSnapshot:
        """Current realtime metrics; the zeroed snapshot on failure."""
        data = await self.fetcher.fetch(constants.REALTIME_METRICS_ENDPOINT, use_cache=False)
        try:
            return MetricsSnapshot.model_validate(data)
        except ValidationError as e:
            logger.error(f"Malformed realtime metrics: {e}")
            return MetricsSnapshot.zeroed()

    def track_event(self, event_name: str, event_data: Optional[Dict[str, Any]] = None) -> None:
        """Post an analytics event in the background. Never raises."""
        try:
            event = TrackedEvent(event=event_name, data=event_data or {}, context=self.context)
        except ValidationError as e:
            logger.warning(f"Dropping invalid analytics event {event_name!r}: {e}")
            return
        self.scheduler.spawn(self._send(event), name=f"track:{event_name}")

    async def _send(self, event: TrackedEvent) -> None:
        ok = await self.fetcher.post(constants.EVENTS_ENDPOINT, event.model_dump(mode="json"))
        if ok:
            self.events_sent += 1
        else:
            self.events_failed += 1

    async def export_data(self, export_format: str, start_date: date, end_date: date) -> bytes:
        """Server-side export blob (e.g. csv, xlsx); b"" on failure."""
        params = {
            "format": export_format,
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
        }
        return await self.fetcher.fetch_bytes(constants.EXPORT_ENDPOINT, params)

    def performance_metrics(self, snapshot: MetricsSnapshot) -> Dict[str, Any]:
        """Client-side health counters shown next to the realtime panel."""
        attempted = self.events_sent + self.events_failed
        return {
            "data_points_collected": len(snapshot.model_dump(exclude_none=True)),
            "events_sent": self.events_sent,
            "events_failed": self.events_failed,
            "event_error_rate": (self.events_failed / attempted) if attempted else 0.0,
        }
