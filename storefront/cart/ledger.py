"""
Session-keyed cart ledger.

Cart lines live in a SessionCartStore (session id -> ordered lines). Every
mutation of a session runs inside the lock its id hashes to, out of a fixed
pool, so two concurrent requests for the same session cannot interleave their
read-modify-write. Unrelated sessions only contend when they share a stripe.
Carts are process-local and unpersisted.
"""
from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional

from storefront.core.config import StorefrontConfig
from storefront.core.errors import NotFound, ValidationFailure
from storefront.data.records import Product
from storefront.utils.logger import get_logger

logger = get_logger("cart.ledger")

_CENT = Decimal("0.01")
LOCK_STRIPES = 64


@dataclass(frozen=True)
class CartLine:
    """One product in one session's cart, with the product snapshot taken at add-time."""
    id: str
    session_id: str
    product_id: str
    quantity: int
    name: str
    price: float
    image: str

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "sessionId": self.session_id,
            "quantity": self.quantity,
            "name": self.name,
            "price": self.price,
            "image": self.image,
        }


@dataclass(frozen=True)
class CartSummary:
    subtotal: float
    tax: float
    shipping: float
    total: float
    count: int

    def to_api(self) -> Dict[str, float]:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
        }


def round_money(value: Decimal) -> float:
    """Round half-up to cents."""
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


class SessionCartStore:
    """Map of session id -> ordered {line id: CartLine}."""

    def __init__(self) -> None:
        self._carts: Dict[str, "OrderedDict[str, CartLine]"] = {}

    def lines(self, session_id: str) -> List[CartLine]:
        return list(self._carts.get(session_id, {}).values())

    def get(self, session_id: str, line_id: str) -> Optional[CartLine]:
        return self._carts.get(session_id, {}).get(line_id)

    def find_by_product(self, session_id: str, product_id: str) -> Optional[CartLine]:
        for line in self._carts.get(session_id, {}).values():
            if line.product_id == product_id:
                return line
        return None

    def put(self, line: CartLine) -> None:
        self._carts.setdefault(line.session_id, OrderedDict())[line.id] = line

    def delete(self, session_id: str, line_id: str) -> bool:
        cart = self._carts.get(session_id)
        if not cart or line_id not in cart:
            return False
        del cart[line_id]
        if not cart:
            del self._carts[session_id]
        return True

    def clear(self, session_id: str) -> int:
        return len(self._carts.pop(session_id, {}))

    def sessions(self) -> List[str]:
        return list(self._carts.keys())


class CartLedger:
    """Cart operations: add, set quantity, remove, summarize."""

    def __init__(
        self,
        product_lookup: Callable[[str], Optional[Product]],
        config: StorefrontConfig,
        store: Optional[SessionCartStore] = None,
    ) -> None:
        self._lookup = product_lookup
        self._config = config
        self._store = store or SessionCartStore()
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def _lock_for(self, session_id: str) -> threading.Lock:
        return self._locks[hash(session_id) % len(self._locks)]

    def add(self, product_id: str, quantity: int, session_id: str) -> int:
        """
        Add `quantity` of a product to the session's cart.

        Repeat adds of the same product increment the existing line; the
        snapshot taken on first add is kept. Returns the session's item count.
        """
        if quantity < 1:
            raise ValidationFailure("Quantity must be at least 1")
        product = self._lookup(product_id)
        if product is None or not product.is_active:
            raise NotFound("Product not found")

        with self._lock_for(session_id):
            existing = self._store.find_by_product(session_id, product.id)
            if existing is not None:
                self._store.put(replace(existing, quantity=existing.quantity + quantity))
            else:
                self._store.put(CartLine(
                    id=uuid.uuid4().hex,
                    session_id=session_id,
                    product_id=product.id,
                    quantity=quantity,
                    name=product.name,
                    price=product.price,
                    image=product.image_url,
                ))
            count = sum(line.quantity for line in self._store.lines(session_id))

        logger.info("cart: method=add session_id=%s product_id=%s quantity=%s count=%s",
                    session_id, product_id, quantity, count)
        return count

    def set_quantity(self, line_id: str, quantity: int, session_id: str) -> None:
        """Overwrite a line's quantity; quantity <= 0 removes the line."""
        with self._lock_for(session_id):
            line = self._store.get(session_id, line_id)
            if line is None:
                raise NotFound("Cart item not found")
            if quantity <= 0:
                self._store.delete(session_id, line_id)
            else:
                self._store.put(replace(line, quantity=quantity))
        logger.info("cart: method=set_quantity session_id=%s line_id=%s quantity=%s",
                    session_id, line_id, quantity)

    def remove(self, line_id: Optional[str], session_id: str) -> int:
        """Remove one line, or every line of the session when `line_id` is None."""
        with self._lock_for(session_id):
            if line_id is None:
                removed = self._store.clear(session_id)
            else:
                removed = 1 if self._store.delete(session_id, line_id) else 0
        logger.info("cart: method=remove session_id=%s line_id=%s removed=%s",
                    session_id, line_id, removed)
        return removed

    def lines(self, session_id: str) -> List[CartLine]:
        with self._lock_for(session_id):
            return self._store.lines(session_id)

    def summarize(self, session_id: str) -> CartSummary:
        return self.summarize_lines(self.lines(session_id))

    def summarize_lines(self, lines: List[CartLine]) -> CartSummary:
        subtotal = sum((Decimal(str(line.price)) * line.quantity for line in lines), Decimal("0"))
        tax = subtotal * Decimal(str(self._config.tax_rate))
        if subtotal > Decimal(str(self._config.free_shipping_threshold)):
            shipping = Decimal("0")
        else:
            shipping = Decimal(str(self._config.flat_shipping))
        total = subtotal + tax + shipping
        return CartSummary(
            subtotal=round_money(subtotal),
            tax=round_money(tax),
            shipping=round_money(shipping),
            total=round_money(total),
            count=sum(line.quantity for line in lines),
        )
