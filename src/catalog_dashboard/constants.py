# Endpoints and notification topics shared by the dashboard data layer

from enum import Enum

API_PREFIX = "/api/v1"

PRODUCTS_ENDPOINT = f"{API_PREFIX}/products"
CATEGORIES_ENDPOINT = f"{API_PREFIX}/products/categories"
ANALYTICS_ENDPOINT = f"{API_PREFIX}/analytics"
REALTIME_METRICS_ENDPOINT = f"{API_PREFIX}/analytics/realtime"
EVENTS_ENDPOINT = f"{API_PREFIX}/analytics/events"
EXPORT_ENDPOINT = f"{API_PREFIX}/analytics/export"


def product_endpoint(product_id) -> str:
    return f"{PRODUCTS_ENDPOINT}/{product_id}"


class Topic(str, Enum):
    METRICS_UPDATED = "metrics-updated"      # payload: MetricsSnapshot
    STOCK_CHANGED = "stock-changed"          # payload: {"id": ..., "newStock": ...}
    RECORDS_CHANGED = "records-changed"      # payload: Product mutated in place
    FILTERING_STARTED = "filtering-started"  # payload: FilterCriteria
    FILTERS_APPLIED = "filters-applied"      # payload: list of visible Products
    CATALOG_LOADED = "catalog-loaded"        # payload: ProductPage
    ANALYTICS_UPDATED = "analytics-updated"  # payload: AnalyticsSummary


# Stock badge thresholds used by the catalog grid
LOW_STOCK_THRESHOLD = 10

# Analytics screens default to the trailing 30 days
DEFAULT_ANALYTICS_WINDOW_DAYS = 30

# CSV layout of the client-side sales export
SALES_EXPORT_COLUMNS = ["Date", "Sales", "Revenue", "Customers"]
