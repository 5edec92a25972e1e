"""
Catalog View - State of the product grid screen

Owns one FilterEngine, the subscriptions it registers and its refresh
registration with RealTimeSync. Everything it owns is released by close().
"""

import logging
import math
from typing import Any, List, Optional

from catalog_dashboard.constants import LOW_STOCK_THRESHOLD, Topic
from catalog_dashboard.events.bus import EventBus, Subscription
from catalog_dashboard.filtering.engine import FilterEngine
from catalog_dashboard.schemas.catalog import Product, ProductPage, ProductQuery
from catalog_dashboard.services.analytics_service import AnalyticsService
from catalog_dashboard.services.product_service import ProductService
from catalog_dashboard.sync.realtime import RealTimeSync

logger = logging.getLogger(__name__)


def stock_badge_class(stock_level: int) -> str:
    if stock_level <= 0:
        return "bg-danger"
    if stock_level < LOW_STOCK_THRESHOLD:
        return "bg-warning"
    return "bg-success"


def stock_badge_text(stock_level: int) -> str:
    if stock_level <= 0:
        return "Out of Stock"
    if stock_level < LOW_STOCK_THRESHOLD:
        return "Low Stock"
    return "In Stock"


class CatalogView:
    """
    Products screen: server paging/sorting plus client-side filtering.

    Responses are tagged with a request generation; a response from an older
    load, or one arriving after close(), is discarded.
    """

    def __init__(
        self,
        products: ProductService,
        analytics: AnalyticsService,
        sync: RealTimeSync,
        bus: EventBus,
        engine: FilterEngine,
        *,
        page_size: int = 100,
        items_per_page: int = 12,
        auto_refresh: bool = True,
    ):
        self.products = products
        self.analytics = analytics
        self.sync = sync
        self.bus = bus
        self.engine = engine
        self.page_size = page_size
        self.items_per_page = items_per_page
        self.auto_refresh = auto_refresh

        self.categories: List[str] = []
        self.sort_by = "name"
        self.sort_order = "asc"
        self.current_page = 1
        self.total_items = 0
        self.loading = False
        self.selected_product: Optional[Product] = None
        self.view_mode = "grid"

        self._generation = 0
        self._subscriptions: List[Subscription] = []
        self.closed = False

    # ---- lifecycle ----

    async def init(self) -> None:
        """Load products and categories, and hook into realtime updates."""
        self.sync.attach_records(self._held_records)
        self.sync.set_refresh_target(self.refresh)
        self.subscribe(Topic.RECORDS_CHANGED, self._on_record_changed)
        await self.load_products()
        await self.load_categories()
        if self.auto_refresh:
            self.sync.start_refresh()

    def toggle_auto_refresh(self, enabled: bool) -> None:
        self.auto_refresh = enabled
        self.sync.toggle_refresh(enabled)

    def subscribe(self, topic: Topic, handler) -> Subscription:
        """Subscribe on behalf of this view; released on close()."""
        subscription = self.bus.subscribe(topic, handler)
        self._subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.engine.close()
        for subscription in self._subscriptions:
            self.bus.unsubscribe(subscription)
        self._subscriptions.clear()
        # Only detach if this view is still the one wired in
        if self.sync.records_provider == self._held_records:
            self.sync.attach_records(None)
        if self.sync.refresh_target == self.refresh:
            self.sync.stop_refresh()
            self.sync.set_refresh_target(None)
        logger.debug("Catalog view closed")

    def _held_records(self) -> List[Product]:
        return self.engine.records

    def _on_record_changed(self, product: Product) -> None:
        # A stock change can move a product in or out of an in-stock view
        if self.engine.criteria.in_stock:
            self.engine.apply_filters()

    # ---- loading ----

    @property
    def filters(self):
        return self.engine.criteria

    @property
    def visible_products(self) -> List[Product]:
        return self.engine.visible

    def build_query(self) -> ProductQuery:
        """Server-side parameters. Category filtering stays client-side."""
        criteria = self.engine.criteria
        price_range = criteria.price_range
        return ProductQuery(
            page=self.current_page - 1,
            size=self.page_size,
            sort=f"{self.sort_by},{self.sort_order}",
            search=criteria.search_term or None,
            min_price=price_range.min if price_range.min > 0 else None,
            max_price=price_range.max if 0 < price_range.max < self.engine.price_ceiling else None,
            in_stock=True if criteria.in_stock else None,
        )

    async def load_products(self, force_refresh: bool = False) -> Optional[ProductPage]:
        """
        Fetch the current page and re-run the client-side filters.

        Returns:
            The applied page, or None if the response was discarded as stale
        """
        self._generation += 1
        generation = self._generation
        self.loading = True
        page = await self.products.get_products(self.build_query(), force_refresh=force_refresh)

        if self.closed or generation != self._generation:
            logger.debug(f"Discarding stale product response (generation {generation}, current {self._generation})")
            return None

        self.loading = False
        self.total_items = page.total_elements
        self.engine.set_records(page.content)
        self.bus.publish(Topic.CATALOG_LOADED, page)
        self.engine.apply_filters()
        return page

    async def refresh(self) -> None:
        """Periodic refresh: re-run the last query from scratch."""
        await self.load_products(force_refresh=True)

    async def load_categories(self) -> List[str]:
        categories = await self.products.get_categories()
        if not self.closed:
            self.categories = categories
        return categories

    # ---- filter actions ----

    def on_search_change(self, search_term: str) -> None:
        self.engine.on_search_change(search_term)

    def on_filter_change(self, **changes: Any) -> None:
        self.current_page = 1
        self.engine.on_filter_change(**changes)

    def clear_filters(self) -> None:
        self.current_page = 1
        self.engine.clear_filters()

    def select_category(self, category: str) -> None:
        self.current_page = 1
        self.engine.select_category(category)
        self.analytics.track_event("category_selected", {
            "category": category or "All Categories",
            "productCount": self.engine.category_count(category) if category else len(self.engine.records),
        })

    # ---- sorting & paging ----

    async def sort(self, field: str) -> None:
        if self.sort_by == field:
            self.sort_order = "desc" if self.sort_order == "asc" else "asc"
        else:
            self.sort_by = field
            self.sort_order = "asc"
        await self.load_products()

    async def set_page(self, page: int) -> None:
        self.current_page = max(1, page)
        await self.load_products()

    def page_numbers(self) -> List[int]:
        total_pages = math.ceil(self.total_items / self.items_per_page)
        start = max(1, self.current_page - 2)
        end = min(total_pages, self.current_page + 2)
        return list(range(start, end + 1))

    # ---- product interactions ----

    def show_product_detail(self, product: Product) -> None:
        self.selected_product = product
        self.view_mode = "detail"
        self.analytics.track_event("product_detail_viewed", {
            "productId": product.id,
            "productName": product.name,
            "category": product.category,
        })

    def back_to_grid(self) -> None:
        self.selected_product = None
        self.view_mode = "grid"

    def add_to_cart(self, product: Product, quantity: int = 1) -> None:
        self.analytics.track_event("product_added_to_cart", {
            "productId": product.id,
            "productName": product.name,
            "price": product.price,
            "quantity": quantity,
        })

    def related_products(self, limit: int = 4) -> List[Product]:
        """Other products of the selected product's category."""
        selected = self.selected_product
        if selected is None:
            return []
        related = [
            p for p in self.engine.records
            if p.category == selected.category and p.id != selected.id
        ]
        return related[:limit]

    def category_count(self, category: str) -> int:
        return self.engine.category_count(category)
