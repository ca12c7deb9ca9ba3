# catalog/cart.py
from decimal import Decimal

from .models import Product

CART_SESSION_KEY = "cart"


class Cart:
    """
    Shopping cart kept in the session as {product_id: {..., quantity}}.
    Adding a product that is already there bumps its quantity.
    """

    def __init__(self, session):
        self.session = session
        self._items = session.get(CART_SESSION_KEY) or {}

    def _save(self):
        self.session[CART_SESSION_KEY] = self._items
        self.session.modified = True

    def add(self, product: Product, quantity=1):
        key = str(product.id)
        if key in self._items:
            self._items[key]["quantity"] += quantity
        else:
            self._items[key] = {
                "id": product.id,
                "name": product.name,
                "slug": product.slug,
                "price": str(product.price) if product.price is not None else None,
                "image": (product.images or [None])[0],
                "quantity": quantity,
            }
        self._save()

    def remove(self, product_id):
        if self._items.pop(str(product_id), None) is not None:
            self._save()

    def clear(self):
        self._items = {}
        self._save()

    def items(self):
        return list(self._items.values())

    def count(self):
        return sum(item["quantity"] for item in self._items.values())

    def total(self):
        return sum(
            (Decimal(item["price"]) * item["quantity"] for item in self._items.values() if item["price"]),
            Decimal(0),
        )

    def __len__(self):
        return len(self._items)
