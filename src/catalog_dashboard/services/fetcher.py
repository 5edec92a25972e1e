"""
Data Fetcher - Cached remote queries with fail-soft defaults

Presentation code never sees a transport error from here: every failure
(network, timeout, non-2xx, malformed body) is logged and replaced by a
typed default shaped like the endpoint's normal response.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from catalog_dashboard import constants
from catalog_dashboard.adapters.http.client import DashboardAPIClient
from catalog_dashboard.cache.keys import query_key
from catalog_dashboard.cache.store import CacheStore
from catalog_dashboard.schemas.analytics import AnalyticsSummary, MetricsSnapshot

logger = logging.getLogger(__name__)

# Errors folded into a single "fetch failed" outcome
FETCH_ERRORS = (requests.RequestException, ValueError)


def _empty_page() -> Dict[str, Any]:
    return {"content": [], "totalElements": 0}


# Fresh objects on every call so callers can mutate what they get back
FALLBACKS: Dict[str, Callable[[], Any]] = {
    constants.PRODUCTS_ENDPOINT: _empty_page,
    constants.CATEGORIES_ENDPOINT: list,
    constants.ANALYTICS_ENDPOINT: lambda: AnalyticsSummary().model_dump(by_alias=True),
    constants.REALTIME_METRICS_ENDPOINT: lambda: MetricsSnapshot.zeroed().model_dump(by_alias=True),
    constants.EXPORT_ENDPOINT: bytes,
}


def fallback_for(endpoint: str) -> Any:
    """
    Typed default for an endpoint.

    Product detail paths (/api/v1/products/<id>) fall back to None; any
    endpoint without a known shape also yields None.
    """
    factory = FALLBACKS.get(endpoint)
    return factory() if factory is not None else None


class DataFetcher:
    """
    Performs remote queries through a CacheStore.

    The blocking HTTP call runs in a worker thread so the event loop keeps
    serving timers while a request is in flight.
    """

    def __init__(
        self,
        client: DashboardAPIClient,
        cache: CacheStore,
        *,
        default_timeout: float = 10.0,
        serve_stale_on_error: bool = True,
    ):
        self.client = client
        self.cache = cache
        self.default_timeout = default_timeout
        self.serve_stale_on_error = serve_stale_on_error

    async def fetch(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
        use_cache: bool = True,
        force_refresh: bool = False,
        parse: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """
        GET an endpoint, returning the decoded JSON payload.

        Args:
            endpoint: API path, e.g. "/api/v1/products"
            params: Query parameters; also the cache key material
            timeout: Request timeout in seconds (default 10s)
            use_cache: Read and populate the cache
            force_refresh: Skip the validity check but still overwrite the entry
            parse: Turns the decoded body into the object that is cached and
                returned (e.g. a pydantic model). A ValueError from it counts
                as a failed fetch.

        Returns:
            The (parsed) payload, the cached object, or the endpoint's
            fallback value. Fallbacks are never parsed.
        """
        key = query_key(endpoint, params)
        if use_cache and not force_refresh and self.cache.is_valid(key):
            logger.debug(f"Cache hit for {key}")
            return self.cache.get(key)

        request_params = dict(params) if params else None
        try:
            payload = await asyncio.to_thread(
                self.client.get, endpoint, request_params, timeout or self.default_timeout
            )
            if payload is None:
                raise ValueError("Empty response body")
            if parse is not None:
                payload = parse(payload)
        except FETCH_ERRORS as e:
            return self._fallback(endpoint, key, e, use_cache)

        if use_cache:
            self.cache.set(key, payload)
        return payload

    async def fetch_bytes(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        """GET a binary body (never cached). Returns b"" on failure."""
        try:
            return await asyncio.to_thread(
                self.client.get_bytes, endpoint, dict(params or {}), timeout or self.default_timeout
            )
        except FETCH_ERRORS as e:
            logger.error(f"Download from {endpoint} failed: {e}")
            return b""

    async def post(self, endpoint: str, body: Any, *, timeout: Optional[float] = None) -> bool:
        """
        Fire-and-forget POST. Failures are logged and swallowed.

        Returns:
            True if the server accepted the request
        """
        try:
            await asyncio.to_thread(self.client.post, endpoint, body, timeout or self.default_timeout)
        except FETCH_ERRORS as e:
            logger.warning(f"POST to {endpoint} failed (ignored): {e}")
            return False
        return True

    def _fallback(self, endpoint: str, key: str, error: Exception, use_cache: bool) -> Any:
        if use_cache and self.serve_stale_on_error and key in self.cache:
            logger.warning(f"Fetch of {endpoint} failed ({error}); serving expired cache entry")
            return self.cache.get(key)
        logger.error(f"Fetch of {endpoint} failed ({error}); using fallback value")
        # Failures never populate the cache: the next call retries the network
        return fallback_for(endpoint)
