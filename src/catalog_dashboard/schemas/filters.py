"""
Filter Schemas - Client-side filter criteria of the catalog screen
"""

from pydantic import BaseModel, Field


class PriceRange(BaseModel):
    """Price bounds; min=0 and max at the ceiling mean 'no constraint'"""

    min: float = Field(default=0.0, ge=0)
    max: float = Field(default=1000.0, ge=0)


class FilterCriteria(BaseModel):
    """
    All filtering variables in one place.

    Mutated only by user-initiated filter actions and read on every
    recomputation. A fresh instance is the "no constraint" state.
    """

    search_term: str = ""
    category: str = ""  # empty means all categories
    price_range: PriceRange = Field(default_factory=PriceRange)
    in_stock: bool = False
    min_rating: float = Field(default=0.0, ge=0)

    @classmethod
    def unconstrained(cls, price_ceiling: float = 1000.0) -> "FilterCriteria":
        return cls(price_range=PriceRange(min=0.0, max=price_ceiling))
