"""
Filter Engine - Debounced/throttled recomputation of the visible catalog subset

Search-field changes are debounced, other filter controls are throttled, and
every recomputation runs after a short scheduling yield so presentation can
render a "filtering" state before the synchronous pass over the records.
Results are announced on the EventBus, never polled.
"""

import logging
from typing import Any, Iterable, List, Optional

from catalog_dashboard.constants import Topic
from catalog_dashboard.events.bus import EventBus
from catalog_dashboard.filtering.predicates import filter_products
from catalog_dashboard.scheduling.policies import Debouncer, Throttler
from catalog_dashboard.scheduling.timers import Scheduler, TimerHandle
from catalog_dashboard.schemas.catalog import Product
from catalog_dashboard.schemas.filters import FilterCriteria, PriceRange

logger = logging.getLogger(__name__)

# FilterCriteria fields that go through the throttled path
_CONTROL_FIELDS = {"category", "in_stock", "min_rating", "min_price", "max_price"}


class FilterEngine:
    """
    Holds filter criteria, the full record set and the derived visible subset.

    The record objects are shared, not copied: a record mutated in place
    (e.g. a stock update) is the same object in `records` and `visible`.
    """

    def __init__(
        self,
        bus: EventBus,
        scheduler: Scheduler,
        *,
        search_debounce: float = 0.3,
        filter_throttle: float = 0.1,
        render_yield: float = 0.1,
        price_ceiling: float = 1000.0,
    ):
        self.bus = bus
        self.scheduler = scheduler
        self.render_yield = render_yield
        self.price_ceiling = price_ceiling

        self.criteria = FilterCriteria.unconstrained(price_ceiling)
        self.records: List[Product] = []
        self.visible: List[Product] = []
        self.filtering = False
        self.recompute_count = 0

        self._search_debouncer = Debouncer(scheduler, search_debounce, self.apply_filters, "search-debounce")
        self._filter_throttler = Throttler(scheduler, filter_throttle, self.apply_filters, "filter-throttle")
        self._pending_recompute: Optional[TimerHandle] = None
        self._closed = False

    # ---- record set ----

    def set_records(self, records: Iterable[Product]) -> None:
        """Replace the full result set (after a fetch) and start from all records visible."""
        self.records = list(records)
        self.visible = list(self.records)

    def find(self, product_id: Any) -> Optional[Product]:
        for product in self.records:
            if product.id == product_id:
                return product
        return None

    # ---- user actions ----

    def on_search_change(self, search_term: str) -> None:
        """Keystroke in the search field: debounced."""
        self.criteria.search_term = search_term
        self._search_debouncer.trigger()

    def on_filter_change(self, **changes: Any) -> None:
        """
        Change one or more filter controls: throttled.

        Accepts category, in_stock, min_rating, min_price, max_price.
        """
        unknown = set(changes) - _CONTROL_FIELDS
        if unknown:
            raise ValueError(f"Unknown filter fields: {sorted(unknown)}")

        if "min_price" in changes or "max_price" in changes:
            self.criteria.price_range = PriceRange(
                min=changes.pop("min_price", self.criteria.price_range.min),
                max=changes.pop("max_price", self.criteria.price_range.max),
            )
        for name, value in changes.items():
            setattr(self.criteria, name, value)
        self._filter_throttler.trigger()

    def select_category(self, category: str) -> None:
        """Category click: applied without waiting for the throttle window."""
        self.criteria.category = category or ""
        self.apply_filters()

    def clear_filters(self) -> None:
        self._search_debouncer.cancel()
        self._filter_throttler.cancel()
        self.criteria = FilterCriteria.unconstrained(self.price_ceiling)
        self.apply_filters()

    # ---- recomputation ----

    def apply_filters(self) -> None:
        """
        Schedule a recomputation of the visible subset.

        An empty record set is resolved immediately; otherwise the predicates
        run after the render yield. Calling again before the yield elapses
        reschedules the single pending recomputation.
        """
        if self._closed:
            return
        self.scheduler.cancel(self._pending_recompute)
        self._pending_recompute = None

        if not self.records:
            logger.debug("No products to filter")
            self.visible = []
            self.filtering = False
            self.bus.publish(Topic.FILTERS_APPLIED, self.visible)
            return

        self.filtering = True
        self.bus.publish(Topic.FILTERING_STARTED, self.criteria)
        self._pending_recompute = self.scheduler.schedule(self.render_yield, self.recompute, "filter-recompute")

    def recompute(self) -> List[Product]:
        """Run the predicates now and notify. Returns the visible subset."""
        self._pending_recompute = None
        self.recompute_count += 1
        self.visible = filter_products(self.records, self.criteria, self.price_ceiling)
        self.filtering = False
        logger.debug(f"Filtered products: {len(self.visible)}/{len(self.records)} visible")
        self.bus.publish(Topic.FILTERS_APPLIED, self.visible)
        return self.visible

    def category_count(self, category: str) -> int:
        return sum(1 for product in self.records if product.category == category)

    # ---- lifecycle ----

    @property
    def has_pending_work(self) -> bool:
        return (
            self._search_debouncer.pending
            or self._filter_throttler.pending
            or (self._pending_recompute is not None and self._pending_recompute.active)
        )

    def close(self) -> None:
        """Cancel every pending timer; later calls to apply_filters are ignored."""
        self._closed = True
        self._search_debouncer.cancel()
        self._filter_throttler.cancel()
        self.scheduler.cancel(self._pending_recompute)
        self._pending_recompute = None
        self.filtering = False
