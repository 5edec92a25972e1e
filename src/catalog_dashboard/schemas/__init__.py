"""
Schemas - Pydantic models for the records and payloads exchanged with the API

These define the contract between the remote API, this data layer and the
presentation code that renders from it.
"""

from .analytics import AnalyticsQuery, AnalyticsSummary, MetricsSnapshot, TrackedEvent
from .catalog import Product, ProductPage, ProductQuery, StockChange
from .filters import FilterCriteria, PriceRange

__all__ = [
    "AnalyticsQuery",
    "AnalyticsSummary",
    "FilterCriteria",
    "MetricsSnapshot",
    "PriceRange",
    "Product",
    "ProductPage",
    "ProductQuery",
    "StockChange",
    "TrackedEvent",
]
