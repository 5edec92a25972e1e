"""
Data Layer - Explicitly constructed root of the dashboard's data access

One instance owns one bus, one cache, one HTTP client and one scheduler.
Whoever constructs it owns its lifecycle: there is no process-wide singleton.

Usage:
    async with DataLayer(get_settings()) as layer:
        view = layer.catalog_view()
        await view.init()
        layer.bus.subscribe(Topic.FILTERS_APPLIED, render_grid)
"""

import logging
import time
from typing import Callable, List, Optional, Union

from catalog_dashboard.adapters.http.client import DashboardAPIClient
from catalog_dashboard.cache.store import CacheStore
from catalog_dashboard.events.bus import EventBus
from catalog_dashboard.filtering.engine import FilterEngine
from catalog_dashboard.scheduling.timers import AsyncioScheduler, Scheduler
from catalog_dashboard.services.analytics_service import AnalyticsService
from catalog_dashboard.services.fetcher import DataFetcher
from catalog_dashboard.services.product_service import ProductService
from catalog_dashboard.settings import Settings, get_settings
from catalog_dashboard.sync.realtime import RealTimeSync
from catalog_dashboard.views.analytics_view import AnalyticsView
from catalog_dashboard.views.catalog_view import CatalogView

logger = logging.getLogger(__name__)


class DataLayer:
    """
    Wires the data-access components together and tears them down.

    Loads in order:
    1. Bus, cache and scheduler (no I/O)
    2. HTTP client and fetcher
    3. Product and analytics services
    4. Realtime sync (polling starts in start())
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[DashboardAPIClient] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        cfg = self.settings

        self.bus = EventBus()
        self.scheduler = scheduler or AsyncioScheduler()
        self.cache = CacheStore(ttl_seconds=cfg.cache_ttl_seconds, clock=clock)
        self.client = client or DashboardAPIClient(cfg.api)
        self.fetcher = DataFetcher(
            self.client,
            self.cache,
            default_timeout=cfg.api.timeout_seconds,
            serve_stale_on_error=cfg.serve_stale_on_error,
        )
        self.products = ProductService(self.fetcher)
        self.analytics = AnalyticsService(self.fetcher, self.scheduler, context={"env": cfg.env})
        self.sync = RealTimeSync(
            self.analytics,
            self.bus,
            self.scheduler,
            metrics_interval=cfg.metrics_poll_seconds,
            refresh_interval=cfg.refresh_interval_seconds,
        )

        self._views: List[Union[CatalogView, AnalyticsView]] = []
        self._closed = False
        logger.info(f"Data layer created (env={cfg.env}, api={cfg.api.base_url})")

    # ---- views ----

    def catalog_view(self) -> CatalogView:
        cfg = self.settings
        engine = FilterEngine(
            self.bus,
            self.scheduler,
            search_debounce=cfg.search_debounce_seconds,
            filter_throttle=cfg.filter_throttle_seconds,
            render_yield=cfg.render_yield_seconds,
            price_ceiling=cfg.price_ceiling,
        )
        view = CatalogView(
            self.products,
            self.analytics,
            self.sync,
            self.bus,
            engine,
            page_size=cfg.page_size,
            items_per_page=cfg.items_per_page,
            auto_refresh=cfg.auto_refresh,
        )
        self._track(view)
        return view

    def analytics_view(self) -> AnalyticsView:
        view = AnalyticsView(self.analytics, self.sync, self.bus, auto_refresh=self.settings.auto_refresh)
        self._track(view)
        return view

    def _track(self, view: Union[CatalogView, AnalyticsView]) -> None:
        # Views closed on their own are dropped here
        self._views = [v for v in self._views if not v.closed]
        self._views.append(view)

    # ---- lifecycle ----

    def start(self) -> None:
        self.sync.start_metrics_polling()

    def clear_cache(self) -> None:
        """Cache-busting action: the next query of every key goes to the network."""
        self.cache.clear()

    def close(self) -> None:
        """Close every view, stop polling, cancel remaining timers and close the session."""
        if self._closed:
            return
        self._closed = True
        for view in self._views:
            view.close()
        self._views.clear()
        self.sync.close()
        cancelled = self.scheduler.cancel_all()
        if cancelled:
            logger.debug(f"Cancelled {cancelled} pending timers on shutdown")
        self.client.close()
        logger.info("Data layer closed")

    async def __aenter__(self) -> "DataLayer":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
