"""
Services - Endpoint-level operations on top of the cached fetcher
"""

from .analytics_service import AnalyticsService
from .fetcher import DataFetcher, fallback_for
from .product_service import ProductService

__all__ = ["AnalyticsService", "DataFetcher", "ProductService", "fallback_for"]
