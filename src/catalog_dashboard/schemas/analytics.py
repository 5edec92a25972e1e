"""
Analytics Schemas - Aggregates, realtime metrics and tracked events

Both the aggregate and the realtime snapshot have documented zeroed defaults;
those defaults are what consumers receive when the analytics API fails.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog_dashboard.constants import DEFAULT_ANALYTICS_WINDOW_DAYS


class MetricsSnapshot(BaseModel):
    """Realtime dashboard metrics, replaced wholesale on every poll tick"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    active_users: int = Field(0, description="Users currently on the site")
    current_sales: float = Field(0, description="Sales in the current window")
    top_products: List[Any] = Field(default_factory=list, description="Best sellers right now")
    recent_orders: List[Any] = Field(default_factory=list, description="Latest orders")

    @classmethod
    def zeroed(cls) -> "MetricsSnapshot":
        return cls()


class AnalyticsSummary(BaseModel):
    """Aggregate returned by /api/v1/analytics"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    sales: List[Dict[str, Any]] = Field(default_factory=list, description="Sales series (date, amount, ...)")
    products: List[Dict[str, Any]] = Field(default_factory=list, description="Per-product performance")
    customers: List[Dict[str, Any]] = Field(default_factory=list, description="New customers series")
    revenue: float = Field(0, description="Total revenue")
    orders: int = Field(0, description="Total orders")
    conversion_rate: float = Field(0, description="Orders / sessions")


def _default_start() -> date:
    return date.today() - timedelta(days=DEFAULT_ANALYTICS_WINDOW_DAYS)


class AnalyticsQuery(BaseModel):
    """Filters of the analytics screen"""

    start_date: date = Field(default_factory=_default_start, description="Inclusive start")
    end_date: date = Field(default_factory=date.today, description="Inclusive end")
    category: str = Field("", description="Category filter, empty for all")
    product: str = Field("", description="Product filter, empty for all")

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }
        if self.category:
            params["category"] = self.category
        if self.product:
            params["product"] = self.product
        return params


class TrackedEvent(BaseModel):
    """Body posted to /api/v1/analytics/events"""

    event: str = Field(..., min_length=1, description="Event name, e.g. 'category_selected'")
    data: Dict[str, Any] = Field(default_factory=dict, description="Event-specific payload")
    timestamp: datetime = Field(default_factory=datetime.now, description="Client-side time")
    context: Dict[str, Any] = Field(default_factory=dict, description="Client context (view, session)")
