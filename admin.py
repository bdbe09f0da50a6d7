"""
Admin dashboard state.

Two surfaces, products and orders, share one view behind a tab. Each one
tracks its own fetch status. If a fetch fails, that surface shows the fixed
sample data and a banner explains it. Every operation takes the current
AdminState and returns a new one.
"""
import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from catalog import DATABASE, FALLBACK, sample_orders, sample_products
from errors import BackendError
from models import ALLOWED_TRANSITIONS, OrderStatus
import schemas
from services import parse_decimal, parse_int

log = logging.getLogger(__name__)

PRODUCTS = "products"
ORDERS = "orders"
TABS = (PRODUCTS, ORDERS)

IMAGE_URL_RE = re.compile(r"^https?://.+")

TRANSITION_LABELS = {
    OrderStatus.IN_PROGRESS: "Start Delivery",
    OrderStatus.DELIVERED: "Mark Delivered",
    OrderStatus.CANCELLED: "Cancel",
}

PRODUCT_FORM_FIELDS = ("name", "description", "price", "image_url", "category", "stock")


class FetchStatus(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Surface:
    status: FetchStatus = FetchStatus.LOADING
    items: Tuple = ()
    source: str = DATABASE

    @property
    def using_sample(self):
        return self.status is FetchStatus.ERROR or self.source == FALLBACK

    def find(self, item_id):
        return next((i for i in self.items if i.id == item_id), None)


@dataclass(frozen=True)
class AdminState:
    tab: str = PRODUCTS
    products: Surface = field(default_factory=Surface)
    orders: Surface = field(default_factory=Surface)
    error: Optional[str] = None
    form_errors: Dict[str, str] = field(default_factory=dict)
    form: Dict[str, str] = field(default_factory=dict)
    editing: Optional[int] = None


def _load(fetch, sample, what) -> Surface:
    try:
        fetched = fetch()
    except BackendError as e:
        log.error("Admin: error fetching %s, using sample data: %s", what, e.message)
        return Surface(FetchStatus.ERROR, tuple(sample()), FALLBACK)
    log.info("Admin: received %d %s from API", len(fetched.data), what)
    return Surface(FetchStatus.SUCCESS, tuple(fetched.data), fetched.source)


def load_products(client) -> Surface:
    return _load(client.list_products, sample_products, PRODUCTS)


def load_orders(client) -> Surface:
    return _load(client.list_orders, sample_orders, ORDERS)


def load_admin(client, tab=PRODUCTS) -> AdminState:
    return switch_tab(
        AdminState(products=load_products(client), orders=load_orders(client)), tab
    )


def switch_tab(state, tab):
    return replace(state, tab=tab if tab in TABS else PRODUCTS)


def banner_lines(state):
    lines = []
    if state.products.using_sample:
        lines.append("Product data is using sample data")
    if state.orders.using_sample:
        lines.append("Order data is using sample data")
    return lines


# ---------- products ----------

def validate_product_form(form):
    """Check the product form. Returns (errors, payload); payload is None when there are errors."""
    name = (form.get("name") or "").strip()
    description = (form.get("description") or "").strip()
    price_raw = (form.get("price") or "").strip()
    image_url = (form.get("image_url") or "").strip()
    category = (form.get("category") or "").strip()
    stock_raw = (form.get("stock") or "").strip()

    errors = {}
    if not name:
        errors["name"] = "Product name is required"

    price = parse_decimal(price_raw)
    if not price_raw:
        errors["price"] = "Price is required"
    elif price is None or price <= 0:
        errors["price"] = "Price must be a positive number"

    if not category:
        errors["category"] = "Category is required"

    stock = parse_int(stock_raw, default=0) if stock_raw else 0
    if stock_raw and (parse_int(stock_raw) is None or stock < 0):
        errors["stock"] = "Stock must be a non-negative number"

    if image_url and not IMAGE_URL_RE.match(image_url):
        errors["image_url"] = "Image URL must be a valid URL"

    if errors:
        return errors, None
    return {}, schemas.ProductPayload(
        name=name,
        description=description or None,
        price=price,
        image_url=image_url or None,
        category=category,
        stock=stock,
    )


def edit_product(state, product_id):
    product = state.products.find(product_id)
    if product is None:
        return replace(state, tab=PRODUCTS, error="Product not found")
    form = {
        "name": product.name,
        "description": product.description or "",
        "price": str(product.price),
        "image_url": product.image_url or "",
        "category": product.category,
        "stock": str(product.stock),
    }
    return replace(state, tab=PRODUCTS, editing=product_id, form=form, form_errors={})


def save_product(state, client, form, product_id=None):
    """Create (no product_id) or update a product, then patch the local list from the response."""
    submitted = {k: form.get(k, "") for k in PRODUCT_FORM_FIELDS}
    errors, payload = validate_product_form(form)
    if errors:
        return replace(state, tab=PRODUCTS, form_errors=errors, form=submitted, editing=product_id)

    try:
        if product_id is None:
            saved = client.create_product(payload)
            items = state.products.items + (saved,)
        else:
            saved = client.update_product(product_id, payload)
            items = tuple(saved if p.id == product_id else p for p in state.products.items)
    except BackendError as e:
        log.error("Error saving product: %s", e.message)
        message = "Failed to update product" if product_id is not None else "Failed to create product"
        return replace(state, tab=PRODUCTS, error=message, form=submitted, form_errors={},
                       editing=product_id)

    return replace(
        state, tab=PRODUCTS, products=replace(state.products, items=items),
        error=None, form_errors={}, form={}, editing=None,
    )


def delete_product(state, client, product_id, confirmed=False):
    if not confirmed:
        return state
    try:
        client.delete_product(product_id)
    except BackendError as e:
        log.error("Error deleting product %s: %s", product_id, e.message)
        return replace(state, tab=PRODUCTS, error="Failed to delete product")
    items = tuple(p for p in state.products.items if p.id != product_id)
    return replace(state, tab=PRODUCTS, products=replace(state.products, items=items), error=None)


# ---------- orders ----------

def available_transitions(status):
    """(target status, button label) pairs offered for an order in `status`."""
    return tuple((target, TRANSITION_LABELS[target]) for target in ALLOWED_TRANSITIONS[OrderStatus(status)])


def transition_order(state, client, order_id, target):
    try:
        target = OrderStatus(target)
    except ValueError:
        return replace(state, tab=ORDERS, error=f"Invalid status: {target}")

    order = state.orders.find(order_id)
    if order is None:
        return replace(state, tab=ORDERS, error="Order not found")
    if target not in ALLOWED_TRANSITIONS[order.status]:
        return replace(state, tab=ORDERS,
                       error=f"Order #{order_id} can't move from {order.status.value} to {target.value}")

    try:
        client.update_order_status(order_id, target)
    except BackendError as e:
        log.error("Error updating order %s status: %s", order_id, e.message)
        return replace(state, tab=ORDERS, error="Failed to update order status")

    # only the status is patched; the rest of the local row stays as fetched
    items = tuple(
        o.model_copy(update={"status": target}) if o.id == order_id else o
        for o in state.orders.items
    )
    return replace(state, tab=ORDERS, orders=replace(state.orders, items=items), error=None)
