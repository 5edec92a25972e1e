from .engine import FilterEngine
from .predicates import filter_products, matches

__all__ = ["FilterEngine", "filter_products", "matches"]
