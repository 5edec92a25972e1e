"""Catalog dashboard data layer: cached fetching, filtering and realtime sync."""

from .constants import Topic
from .data_layer import DataLayer
from .settings import Settings, get_settings

__all__ = ["DataLayer", "Settings", "Topic", "get_settings"]
