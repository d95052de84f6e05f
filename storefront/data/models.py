"""
SQLAlchemy database models for the SQL backend.

Column names match the Supabase tables so the same database can be reached
either through PostgREST (SupabaseStore) or directly (SQLStore).
"""

import uuid

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, JSON, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.data.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class ProductRow(Base):
    """Product catalog - maps to the 'products' table."""
    __tablename__ = "products"

    # Insertion order doubles as catalog order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, nullable=False, index=True, default=_new_id)

    name = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    reviews_count = Column(Integer, nullable=False, default=0)
    badge = Column(String(100), nullable=True)
    category = Column(String(100), nullable=False, index=True)
    image_url = Column(Text, nullable=False, default="")
    stock = Column(Integer, nullable=False, default=0)
    features = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="active", index=True)
    sales_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    role = Column(String(20), nullable=False, default="user")

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OrderRow(Base):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, default=_new_id)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    shipping = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("UserRow")


class WishlistRow(Base):
    __tablename__ = "wishlist"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),
    )

    id = Column(String(64), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    product = relationship("ProductRow")
