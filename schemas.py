"""
Wire types for the order/product backend.

Response models (Product, Order, ...) are what the storefront and admin
panel work with; *Payload models are request bodies. Both sides of the
API validate through these, so a body that doesn't fit is rejected on the
server with a 400 and a response that doesn't fit is a malformed response
on the client.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import (
    BaseModel, ConfigDict, Field, PlainSerializer, StringConstraints,
    TypeAdapter, field_validator,
)

from models import OrderStatus

# numbers on the wire, Decimal in memory
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ---------- Responses ----------

class Product(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    price: Annotated[Money, Field(ge=0)]
    image_url: Optional[str] = None
    category: str
    stock: int = Field(0, ge=0)


class ProductSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    price: Money
    image_url: Optional[str] = None


class OrderItem(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[int] = None
    product_id: int
    quantity: int
    price: Money
    product: Optional[ProductSnapshot] = None

    @property
    def subtotal(self):
        return self.price * self.quantity


class Order(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    buyer_name: str
    buyer_email: str
    buyer_phone: str
    delivery_address: str
    total_amount: Money
    status: OrderStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItem] = []


class Deleted(BaseModel):
    message: str


ProductList = TypeAdapter(List[Product])
OrderList = TypeAdapter(List[Order])


# ---------- Requests ----------

class ProductPayload(BaseModel):
    name: NonBlank
    description: Optional[str] = None
    price: Annotated[Money, Field(gt=0)]
    image_url: Optional[str] = None
    category: NonBlank
    stock: int = Field(0, ge=0)

    @field_validator("stock", mode="before")
    @classmethod
    def _missing_stock_is_zero(cls, v):
        return 0 if v is None or v == "" else v


class OrderItemPayload(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    price: Annotated[Money, Field(ge=0)]


class OrderPayload(BaseModel):
    buyer_name: NonBlank
    buyer_email: NonBlank
    buyer_phone: NonBlank
    delivery_address: NonBlank
    total_amount: Annotated[Money, Field(gt=0)]
    items: List[OrderItemPayload] = Field(min_length=1)


class StatusUpdate(BaseModel):
    status: OrderStatus
