"""
Views - Per-screen state owned by presentation code

Each view owns its subscriptions, timers and refresh registration and
releases all of them in close().
"""

from .analytics_view import AnalyticsView
from .catalog_view import CatalogView, stock_badge_class, stock_badge_text

__all__ = ["AnalyticsView", "CatalogView", "stock_badge_class", "stock_badge_text"]
