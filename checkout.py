import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import ValidationError

import schemas
from errors import BackendError

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")

EMPTY_CART_MESSAGE = "Your cart is empty. Please add some products before placing an order."
GENERIC_FAILURE = "Failed to place order. Please try again."


@dataclass(frozen=True)
class BuyerInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    @classmethod
    def from_form(cls, form):
        return cls(
            name=(form.get("buyer_name") or "").strip(),
            email=(form.get("buyer_email") or "").strip(),
            phone=(form.get("buyer_phone") or "").strip(),
            address=(form.get("delivery_address") or "").strip(),
        )


@dataclass(frozen=True)
class CheckoutResult:
    order_id: Optional[int] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self):
        return self.order_id is not None


def validate_buyer_info(info: BuyerInfo) -> Dict[str, str]:
    errors = {}
    if not info.name.strip():
        errors["buyer_name"] = "Name is required"
    if not info.email.strip():
        errors["buyer_email"] = "Email is required"
    elif not EMAIL_RE.search(info.email):
        errors["buyer_email"] = "Email is invalid"
    if not info.phone.strip():
        errors["buyer_phone"] = "Phone number is required"
    if not info.address.strip():
        errors["delivery_address"] = "Delivery address is required"
    return errors


def build_order_payload(info: BuyerInfo, cart) -> schemas.OrderPayload:
    return schemas.OrderPayload(
        buyer_name=info.name,
        buyer_email=info.email,
        buyer_phone=info.phone,
        delivery_address=info.address,
        total_amount=cart.total(),
        items=[
            schemas.OrderItemPayload(
                product_id=item.product.id,
                quantity=item.quantity,
                price=item.product.price,
            )
            for item in cart.items.values()
        ],
    )


def submit_order(info: BuyerInfo, store, client) -> CheckoutResult:
    """Validate, place a single order request, and empty the cart once the backend accepts it.

    Nothing is sent if the buyer details are invalid or the cart is empty.
    On a backend failure the cart is left as it was so the shopper can retry.
    """
    errors = validate_buyer_info(info)
    if errors:
        return CheckoutResult(field_errors=errors)

    cart = store.cart
    if not cart.items:
        return CheckoutResult(error=EMPTY_CART_MESSAGE)

    try:
        payload = build_order_payload(info, cart)
    except ValidationError as e:
        # e.g. every item is free, so the total is zero
        log.warning("Order payload rejected locally: %s", e.errors(include_url=False))
        return CheckoutResult(error=GENERIC_FAILURE)

    try:
        order = client.create_order(payload)
    except BackendError as e:
        log.error("Error placing order: %s", e.message)
        return CheckoutResult(error=e.message or GENERIC_FAILURE)

    store.clear()
    log.info("Order %s placed for %s", order.id, info.email)
    return CheckoutResult(order_id=order.id)
