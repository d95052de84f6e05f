"""
Pydantic v2 request bodies for the storefront API.

All request schemas use extra="forbid" to reject unknown fields. Responses
are plain dicts built by each record's to_api(), so the JSON keys stay in the
camelCase the storefront frontend expects.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# The storefront frontend sends numeric ids; Supabase ids are strings
Identifier = Union[int, str]


class CartAddRequest(BaseModel):
    """Body of POST /api/cart."""
    model_config = ConfigDict(extra="forbid")

    productId: Identifier = Field(..., description="Product to add")
    quantity: int = Field(default=1, ge=1, description="How many to add")
    sessionId: str = Field(default="default", min_length=1, description="Cart session")


class CartUpdateRequest(BaseModel):
    """Body of PUT /api/cart. quantity <= 0 removes the line."""
    model_config = ConfigDict(extra="forbid")

    cartItemId: Identifier = Field(..., description="Cart line id")
    quantity: int = Field(..., description="New quantity")
    sessionId: str = Field(default="default", min_length=1, description="Cart session")


class WishlistAddRequest(BaseModel):
    """Body of POST /api/wishlist."""
    model_config = ConfigDict(extra="forbid")

    productId: Optional[Identifier] = Field(default=None, description="Product to save")
