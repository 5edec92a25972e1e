# Client-side filter rules. All rules are combined with logical AND.

from typing import Iterable, List

from catalog_dashboard.schemas.catalog import Product
from catalog_dashboard.schemas.filters import FilterCriteria


def matches_search(product: Product, term: str) -> bool:
    term = term.strip().lower()
    if not term:
        return True
    name = (product.name or "").lower()
    description = (product.description or "").lower()
    return term in name or term in description


def matches_category(product: Product, category: str) -> bool:
    # Exact, case-sensitive; empty means all categories
    if not category:
        return True
    return product.category == category


def matches_price(product: Product, criteria: FilterCriteria, price_ceiling: float) -> bool:
    price_range = criteria.price_range
    if price_range.min > 0 and product.price < price_range.min:
        return False
    if 0 < price_range.max < price_ceiling and product.price > price_range.max:
        return False
    return True


def matches_stock(product: Product, in_stock: bool) -> bool:
    return not in_stock or product.stock_level > 0


def matches_rating(product: Product, min_rating: float) -> bool:
    # Unrated products are not excluded by a rating threshold
    if min_rating <= 0 or product.rating is None:
        return True
    return product.rating >= min_rating


def matches(product: Product, criteria: FilterCriteria, price_ceiling: float = 1000.0) -> bool:
    return (
        matches_search(product, criteria.search_term)
        and matches_category(product, criteria.category)
        and matches_price(product, criteria, price_ceiling)
        and matches_stock(product, criteria.in_stock)
        and matches_rating(product, criteria.min_rating)
    )


def filter_products(products: Iterable[Product], criteria: FilterCriteria, price_ceiling: float = 1000.0) -> List[Product]:
    """Visible subset, in the original order. The same objects are returned, not copies."""
    return [product for product in products if matches(product, criteria, price_ceiling)]
