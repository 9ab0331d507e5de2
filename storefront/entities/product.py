from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import BaseEntity


class Product(BaseEntity):
    """Catalogue product."""

    name: str
    description: Optional[str] = None
    price: float = Field(..., ge=0, description="Unit price, currency agnostic")
    stock: int = Field(0, ge=0)
    category: Optional[str] = None
    sku: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    specifications: Dict[str, Any] = Field(default_factory=dict)
    low_stock_threshold: int = 5
    is_active: bool = True

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock_threshold
