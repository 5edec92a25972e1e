from .client import DashboardAPIClient

__all__ = ["DashboardAPIClient"]
