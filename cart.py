"""
Shopping cart: immutable snapshots plus a store that persists them.

A Cart never changes in place. Each transition (add, update_quantity,
remove) returns a new Cart. CartStore holds the current snapshot, writes
every new one to its storage, and notifies subscribers.

Persisted form is a single JSON object keyed by product id:

    {"1": {"product": {...}, "quantity": 2}, ...}

Product descriptions are not saved; a restored cart has none.
"""
import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Protocol

from pydantic import (
    BaseModel, ConfigDict, Field, SerializationInfo, TypeAdapter, ValidationError,
    field_serializer,
)

import schemas

log = logging.getLogger(__name__)


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product: schemas.Product
    quantity: int = Field(ge=1)

    @field_serializer("product")
    def _saved_product(self, product, info: SerializationInfo):
        # descriptions stay out of the session cookie, which browsers cap at 4 KB
        return product.model_dump(mode=info.mode, exclude={"description"})

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


class Cart(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: Dict[int, CartItem] = Field(default_factory=dict)

    def __len__(self):
        return len(self.items)

    def __contains__(self, product_id):
        return product_id in self.items

    def get(self, product_id) -> Optional[CartItem]:
        return self.items.get(product_id)

    def add(self, product: schemas.Product) -> "Cart":
        # no stock check here; only update_quantity clamps
        items = dict(self.items)
        existing = items.get(product.id)
        quantity = existing.quantity + 1 if existing else 1
        items[product.id] = CartItem(product=product, quantity=quantity)
        return Cart(items=items)

    def update_quantity(self, product_id, quantity: int) -> "Cart":
        item = self.items.get(product_id)
        if item is None:
            return self
        quantity = min(quantity, item.product.stock)
        items = dict(self.items)
        if quantity <= 0:
            del items[product_id]
        else:
            items[product_id] = item.model_copy(update={"quantity": quantity})
        return Cart(items=items)

    def remove(self, product_id) -> "Cart":
        if product_id not in self.items:
            return self
        items = dict(self.items)
        del items[product_id]
        return Cart(items=items)

    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items.values()), Decimal("0"))

    def count(self) -> int:
        return sum(item.quantity for item in self.items.values())


_PERSISTED = TypeAdapter(Dict[int, CartItem])


def dump_cart(cart: Cart) -> str:
    return _PERSISTED.dump_json(cart.items).decode()


def load_cart(raw) -> Cart:
    """Rebuild a cart from its persisted form. Missing or unreadable data gives an empty cart."""
    if not raw:
        return Cart()
    try:
        return Cart(items=_PERSISTED.validate_json(raw))
    except ValidationError as e:
        log.warning("Discarding unreadable saved cart: %s", e.errors(include_url=False)[:1])
        return Cart()


# ---------- storage ----------

class CartStorage(Protocol):
    def read(self) -> Optional[str]: ...
    def write(self, raw: str) -> None: ...
    def clear(self) -> None: ...


class SessionCartStorage:
    """Keeps the cart in the signed session cookie, i.e. on the shopper's side."""

    def __init__(self, session, key="cart"):
        self.session = session
        self.key = key

    def read(self):
        return self.session.get(self.key)

    def write(self, raw):
        self.session[self.key] = raw
        self.session.modified = True

    def clear(self):
        self.session.pop(self.key, None)
        self.session.modified = True


class MemoryCartStorage:
    def __init__(self, raw=None):
        self.raw = raw

    def read(self):
        return self.raw

    def write(self, raw):
        self.raw = raw

    def clear(self):
        self.raw = None


# ---------- store ----------

class CartStore:
    def __init__(self, storage: CartStorage):
        self.storage = storage
        self._listeners: List[Callable[[Cart], None]] = []
        self.cart = load_cart(storage.read())

    def subscribe(self, listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, cart):
        self.cart = cart
        try:
            self.storage.write(dump_cart(cart))
        except Exception:
            log.exception("Failed to save cart")
        self._notify()
        return cart

    def _notify(self):
        for listener in list(self._listeners):
            listener(self.cart)

    def add_to_cart(self, product):
        return self._commit(self.cart.add(product))

    def update_quantity(self, product_id, quantity):
        return self._commit(self.cart.update_quantity(product_id, quantity))

    def remove_item(self, product_id):
        return self._commit(self.cart.remove(product_id))

    def calculate_total(self):
        return self.cart.total()

    def clear(self):
        self.cart = Cart()
        try:
            self.storage.clear()
        except Exception:
            log.exception("Failed to clear saved cart")
        self._notify()
        return self.cart
