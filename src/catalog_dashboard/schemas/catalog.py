"""
Catalog Schemas - Product records and paginated listings

Field names are Pythonic; the wire format of the products API is camelCase.
Records are mutable on purpose: realtime stock pushes update them in place.
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Product(BaseModel):
    """
    A single catalog item as returned by /api/v1/products.

    Unknown server fields are kept (extra="allow") so presentation code can
    render them without this layer knowing about them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Union[int, str] = Field(..., description="Stable product identifier")
    name: str = Field(..., description="Display name")
    description: Optional[str] = Field(None, description="Free-text description")
    category: Optional[str] = Field(None, description="Category label (case-sensitive)")
    price: float = Field(0.0, description="Unit price")
    stock_level: int = Field(
        0,
        validation_alias=AliasChoices("stockLevel", "stockQuantity", "stock_level"),
        serialization_alias="stockLevel",
        description="Units in stock",
    )
    rating: Optional[float] = Field(None, description="Average customer rating")


class ProductPage(BaseModel):
    """One page of the product listing endpoint"""

    model_config = ConfigDict(populate_by_name=True)

    content: List[Product] = Field(default_factory=list, description="Products on this page")
    total_elements: int = Field(0, alias="totalElements", description="Total matching products")


class ProductQuery(BaseModel):
    """Server-side query parameters for the product listing"""

    page: int = Field(default=0, ge=0, description="Zero-based page index")
    size: int = Field(default=100, ge=1, description="Page size")
    sort: str = Field(default="name,asc", description="'<field>,<asc|desc>'")
    search: Optional[str] = Field(None, description="Search term")
    min_price: Optional[float] = Field(None, description="Lower price bound")
    max_price: Optional[float] = Field(None, description="Upper price bound")
    in_stock: Optional[bool] = Field(None, description="Only products in stock")

    def to_params(self) -> Dict[str, Any]:
        """Query-string parameters, camelCase, without unset filters."""
        params: Dict[str, Any] = {
            "page": self.page,
            "size": self.size,
            "sort": self.sort,
            "search": self.search,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "inStock": "true" if self.in_stock else None,
        }
        return {key: value for key, value in params.items() if value is not None}


class StockChange(BaseModel):
    """Payload of a push-style stock-changed event"""

    model_config = ConfigDict(populate_by_name=True)

    id: Union[int, str] = Field(..., validation_alias=AliasChoices("id", "productId"))
    new_stock: int = Field(..., validation_alias=AliasChoices("newStock", "new_stock"))
