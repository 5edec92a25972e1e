"""
Product Service - Typed access to the products API

Payloads are validated inside the fetch, so the cache holds the validated
models themselves. Every reader of a cached page gets the same Product
objects, and an in-place stock update stays visible on the next cache hit.
A payload that does not validate is treated like any other failed fetch.
"""

import logging
from typing import Any, List, Optional, Union

from catalog_dashboard import constants
from catalog_dashboard.schemas.catalog import Product, ProductPage, ProductQuery
from catalog_dashboard.services.fetcher import DataFetcher

logger = logging.getLogger(__name__)


def parse_page(data: Any) -> ProductPage:
    # Some deployments return a bare list instead of a page object
    if isinstance(data, list):
        data = {"content": data, "totalElements": len(data)}
    return ProductPage.model_validate(data)


def parse_categories(data: Any) -> List[str]:
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of categories, got {type(data).__name__}")
    return [str(category) for category in data]


class ProductService:
    def __init__(self, fetcher: DataFetcher):
        self.fetcher = fetcher

    async def get_products(self, query: ProductQuery, force_refresh: bool = False) -> ProductPage:
        """
        Get one page of products with server-side filtering and sorting.

        Args:
            query: Paging, sort and server-side filters
            force_refresh: Bypass a valid cache entry (periodic refresh)

        Returns:
            ProductPage (shared with the cache); empty if the request failed
        """
        page = await self.fetcher.fetch(
            constants.PRODUCTS_ENDPOINT, query.to_params(), force_refresh=force_refresh, parse=parse_page
        )
        if isinstance(page, ProductPage):
            return page
        logger.debug("Product listing unavailable, returning an empty page")
        # Fallback of a failed fetch: {"content": [], "totalElements": 0}
        return ProductPage.model_validate(page)

    async def get_product(self, product_id: Union[int, str]) -> Optional[Product]:
        """Get a single product by id; None if missing or the request failed."""
        return await self.fetcher.fetch(constants.product_endpoint(product_id), parse=Product.model_validate)

    async def get_categories(self) -> List[str]:
        return await self.fetcher.fetch(constants.CATEGORIES_ENDPOINT, parse=parse_categories)
