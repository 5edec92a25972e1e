"""Unit tests for the cached, fail-soft DataFetcher."""
import logging

import pytest
import requests

from catalog_dashboard import constants
from catalog_dashboard.cache.keys import query_key
from catalog_dashboard.services.fetcher import fallback_for

PRODUCTS = constants.PRODUCTS_ENDPOINT
PAGE = {"content": [{"id": 1, "name": "Lamp", "price": 10, "stockQuantity": 2}], "totalElements": 1}
PARAMS = {"page": 0, "size": 100, "sort": "name,asc"}


class TestCaching:

    @pytest.mark.asyncio
    async def test_success_populates_cache(self, fetcher, client, cache):
        client.get.return_value = PAGE

        result = await fetcher.fetch(PRODUCTS, PARAMS)

        assert result == PAGE
        assert cache.is_valid(query_key(PRODUCTS, PARAMS))

    @pytest.mark.asyncio
    async def test_valid_entry_resolves_without_network(self, fetcher, client):
        client.get.return_value = PAGE
        await fetcher.fetch(PRODUCTS, PARAMS)

        # Same parameters, different order
        result = await fetcher.fetch(PRODUCTS, dict(reversed(list(PARAMS.items()))))

        assert result == PAGE
        assert client.get.call_count == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, fetcher, client, clock):
        client.get.return_value = PAGE
        await fetcher.fetch(PRODUCTS, PARAMS)

        clock.advance(300)
        await fetcher.fetch(PRODUCTS, PARAMS)

        assert client.get.call_count == 2

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_valid_entry(self, fetcher, client, cache):
        client.get.return_value = PAGE
        await fetcher.fetch(PRODUCTS, PARAMS)

        fresh = {"content": [], "totalElements": 0}
        client.get.return_value = fresh
        result = await fetcher.fetch(PRODUCTS, PARAMS, force_refresh=True)

        assert result == fresh
        assert cache.get(query_key(PRODUCTS, PARAMS)) == fresh

    @pytest.mark.asyncio
    async def test_use_cache_false_skips_store(self, fetcher, client, cache):
        client.get.return_value = {"activeUsers": 3}

        await fetcher.fetch(constants.REALTIME_METRICS_ENDPOINT, use_cache=False)
        await fetcher.fetch(constants.REALTIME_METRICS_ENDPOINT, use_cache=False)

        assert client.get.call_count == 2
        assert len(cache) == 0


class TestFailSoft:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        requests.ConnectionError("connection refused"),
        requests.Timeout("read timed out"),
        requests.HTTPError("503 Service Unavailable"),
        ValueError("Invalid JSON response"),
    ])
    async def test_products_failure_returns_empty_page(self, fetcher, client, error):
        client.get.side_effect = error

        result = await fetcher.fetch(PRODUCTS, PARAMS)

        assert result == {"content": [], "totalElements": 0}

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, fetcher, client, caplog):
        client.get.side_effect = requests.ConnectionError("down")

        with caplog.at_level(logging.ERROR):
            await fetcher.fetch(PRODUCTS, PARAMS)

        assert "using fallback value" in caplog.text

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self, fetcher, client, cache):
        client.get.side_effect = requests.ConnectionError("down")
        await fetcher.fetch(PRODUCTS, PARAMS)

        assert len(cache) == 0

        client.get.side_effect = None
        client.get.return_value = PAGE
        assert await fetcher.fetch(PRODUCTS, PARAMS) == PAGE
        assert client.get.call_count == 2

    @pytest.mark.asyncio
    async def test_expired_entry_served_on_failure(self, fetcher, client, clock):
        client.get.return_value = PAGE
        await fetcher.fetch(PRODUCTS, PARAMS)
        clock.advance(600)

        client.get.side_effect = requests.Timeout("slow")
        result = await fetcher.fetch(PRODUCTS, PARAMS)

        assert result == PAGE

    @pytest.mark.asyncio
    async def test_stale_serving_can_be_disabled(self, fetcher, client, clock):
        fetcher.serve_stale_on_error = False
        client.get.return_value = PAGE
        await fetcher.fetch(PRODUCTS, PARAMS)
        clock.advance(600)

        client.get.side_effect = requests.Timeout("slow")
        result = await fetcher.fetch(PRODUCTS, PARAMS)

        assert result == {"content": [], "totalElements": 0}

    @pytest.mark.asyncio
    async def test_fallbacks_are_fresh_objects(self, fetcher, client):
        client.get.side_effect = requests.ConnectionError("down")

        first = await fetcher.fetch(PRODUCTS, PARAMS)
        first["content"].append("mutated")
        second = await fetcher.fetch(PRODUCTS, PARAMS)

        assert second == {"content": [], "totalElements": 0}


class TestTimeouts:

    @pytest.mark.asyncio
    async def test_default_timeout_is_ten_seconds(self, fetcher, client):
        client.get.return_value = PAGE

        await fetcher.fetch(PRODUCTS, PARAMS)

        assert client.get.call_args.args[2] == 10.0

    @pytest.mark.asyncio
    async def test_caller_can_override_timeout(self, fetcher, client):
        client.get.return_value = PAGE

        await fetcher.fetch(PRODUCTS, PARAMS, timeout=2.5)

        assert client.get.call_args.args[2] == 2.5


class TestFallbackShapes:

    def test_known_shapes(self):
        assert fallback_for(constants.PRODUCTS_ENDPOINT) == {"content": [], "totalElements": 0}
        assert fallback_for(constants.CATEGORIES_ENDPOINT) == []
        assert fallback_for(constants.EXPORT_ENDPOINT) == b""
        assert fallback_for(constants.product_endpoint(7)) is None

    def test_realtime_metrics_zeroed(self):
        assert fallback_for(constants.REALTIME_METRICS_ENDPOINT) == {
            "activeUsers": 0,
            "currentSales": 0,
            "topProducts": [],
            "recentOrders": [],
        }

    def test_analytics_summary_zeroed(self):
        fallback = fallback_for(constants.ANALYTICS_ENDPOINT)
        assert fallback["sales"] == []
        assert fallback["revenue"] == 0
        assert fallback["conversionRate"] == 0


class TestPostAndDownload:

    @pytest.mark.asyncio
    async def test_post_failure_is_swallowed(self, fetcher, client):
        client.post.side_effect = requests.ConnectionError("down")

        assert await fetcher.post(constants.EVENTS_ENDPOINT, {"event": "x"}) is False

    @pytest.mark.asyncio
    async def test_post_success(self, fetcher, client):
        assert await fetcher.post(constants.EVENTS_ENDPOINT, {"event": "x"}) is True
        client.post.assert_called_once()

    @pytest.mark.asyncio
    async def test_download_failure_returns_empty_bytes(self, fetcher, client):
        client.get_bytes.side_effect = requests.HTTPError("500")

        assert await fetcher.fetch_bytes(constants.EXPORT_ENDPOINT, {"format": "csv"}) == b""


class TestMalformedResponses:
    """Empty bodies and payloads that fail parsing count as failed fetches."""

    @pytest.mark.asyncio
    async def test_empty_body_falls_back_and_is_not_cached(self, fetcher, client, cache):
        client.get.return_value = None

        result = await fetcher.fetch(PRODUCTS, PARAMS)

        assert result == {"content": [], "totalElements": 0}
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_empty_body_on_refresh_keeps_good_entry(self, fetcher, client):
        client.get.return_value = PAGE
        await fetcher.fetch(PRODUCTS, PARAMS)

        client.get.return_value = None
        refreshed = await fetcher.fetch(PRODUCTS, PARAMS, force_refresh=True)

        client.get.return_value = PAGE
        again = await fetcher.fetch(PRODUCTS, PARAMS)

        # The good entry is served on the failed refresh and is still a valid hit
        assert refreshed == PAGE
        assert again == PAGE
        assert client.get.call_count == 2

    @pytest.mark.asyncio
    async def test_parse_failure_is_not_cached(self, fetcher, client, cache):
        def parse(payload):
            raise ValueError("missing content")

        client.get.return_value = {"unexpected": True}

        result = await fetcher.fetch(PRODUCTS, PARAMS, parse=parse)

        assert result == {"content": [], "totalElements": 0}
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_parsed_object_is_cached_and_shared(self, fetcher, client):
        client.get.return_value = PAGE

        first = await fetcher.fetch(PRODUCTS, PARAMS, parse=lambda payload: {"parsed": payload})
        second = await fetcher.fetch(PRODUCTS, PARAMS, parse=lambda payload: {"parsed": payload})

        assert first == {"parsed": PAGE}
        assert second is first
        assert client.get.call_count == 1
