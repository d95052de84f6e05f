"""
Pydantic records shared by every store backend.

Backends build these from their raw rows (dict from PostgREST, ORM object
from SQLAlchemy, fixture dict in memory), so the invariants below are checked
no matter where the data came from.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Product(BaseModel):
    """A catalog product."""
    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    rating: float = Field(0.0, ge=0, le=5)
    reviews_count: int = Field(0, ge=0)
    badge: Optional[str] = None
    category: str
    image_url: str = ""
    stock: int = Field(0, ge=0)
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    status: ProductStatus = ProductStatus.ACTIVE
    created_at: Optional[datetime] = None
    sales_count: int = Field(0, ge=0)

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def to_api(self) -> Dict[str, Any]:
        """Shape used by every endpoint that returns products."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "originalPrice": self.original_price,
            "rating": self.rating,
            "reviews": self.reviews_count,
            "badge": self.badge,
            "category": self.category,
            "image": self.image_url,
            "stock": self.stock,
            "features": list(self.features),
        }


class NewProduct(BaseModel):
    """Fields accepted when an admin creates a product."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    originalPrice: Optional[float] = Field(None, ge=0)
    badge: Optional[str] = None
    category: str = Field(..., min_length=1)
    image: str = ""
    stock: int = Field(0, ge=0)
    features: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class User(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    role: str = "user"


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    user_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    total: float = 0.0
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class WishlistEntry(BaseModel):
    id: str
    user_id: str
    product_id: str
    created_at: datetime
    product: Optional[Product] = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_api(self) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "id": self.id,
            "product_id": self.product_id,
            "created_at": self.created_at.isoformat(),
        }
        if self.product is not None:
            item["product"] = self.product.to_api()
        return item
