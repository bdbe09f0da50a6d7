"""Catalog provider and the fixed sample data used whenever the backend can't be trusted."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import schemas
from errors import BackendError

log = logging.getLogger(__name__)

FALLBACK = "fallback"
DATABASE = "database"

CATEGORY_ORDER = ("Fruits", "Vegetables")

SAMPLE_PRODUCTS = [
    {
        "id": 1,
        "name": "Organic Apples",
        "description": "Fresh organic apples from local farms",
        "price": "3.99",
        "image_url": "https://images.unsplash.com/photo-1568702846914-96b305d2aaeb",
        "category": "Fruits",
        "stock": 100,
    },
    {
        "id": 2,
        "name": "Bananas",
        "description": "Ripe yellow bananas, perfect for smoothies",
        "price": "2.49",
        "image_url": "https://images.unsplash.com/photo-1543218024-57a70143c369",
        "category": "Fruits",
        "stock": 150,
    },
    {
        "id": 6,
        "name": "Fresh Carrots",
        "description": "Locally grown carrots, perfect for salads and cooking",
        "price": "2.49",
        "image_url": "https://images.unsplash.com/photo-1598170845058-32b9d6a5da37",
        "category": "Vegetables",
        "stock": 150,
    },
    {
        "id": 7,
        "name": "Broccoli",
        "description": "Fresh green broccoli florets",
        "price": "2.99",
        "image_url": "https://images.unsplash.com/photo-1459411621453-7b03977f4bfc",
        "category": "Vegetables",
        "stock": 100,
    },
]


def sample_products() -> List[schemas.Product]:
    return schemas.ProductList.validate_python(SAMPLE_PRODUCTS)


def find_sample_product(product_id) -> Optional[schemas.Product]:
    for p in sample_products():
        if p.id == product_id:
            return p
    return None


def _sample_item(item_id, product_id, quantity):
    p = find_sample_product(product_id)
    return {
        "id": item_id,
        "product_id": p.id,
        "quantity": quantity,
        "price": p.price,
        "product": {"id": p.id, "name": p.name, "price": p.price, "image_url": p.image_url},
    }


def sample_orders() -> List[schemas.Order]:
    now = datetime.now(timezone.utc)
    return schemas.OrderList.validate_python([
        {
            "id": 1,
            "buyer_name": "John Doe",
            "buyer_email": "john@example.com",
            "buyer_phone": "555-123-4567",
            "delivery_address": "123 Main St, Anytown, USA",
            "total_amount": "15.45",
            "status": "PENDING",
            "created_at": now,
            "updated_at": now,
            "items": [_sample_item(1, 1, 2), _sample_item(2, 6, 3)],
        },
        {
            "id": 2,
            "buyer_name": "Jane Smith",
            "buyer_email": "jane@example.com",
            "buyer_phone": "555-987-6543",
            "delivery_address": "456 Oak Ave, Somewhere, USA",
            "total_amount": "18.93",
            "status": "DELIVERED",
            "created_at": now - timedelta(days=1),
            "updated_at": now - timedelta(hours=12),
            "items": [_sample_item(3, 2, 4), _sample_item(4, 7, 3)],
        },
    ])


@dataclass(frozen=True)
class Catalog:
    products: List[schemas.Product] = field(default_factory=list)
    source: str = DATABASE
    error: Optional[str] = None

    @property
    def is_fallback(self):
        return self.source == FALLBACK

    def find(self, product_id):
        return next((p for p in self.products if p.id == product_id), None)

    def by_category(self):
        """Products grouped for display: known categories first, then the rest alphabetically."""
        groups = {}
        for p in self.products:
            groups.setdefault(p.category, []).append(p)
        known = [c for c in CATEGORY_ORDER if c in groups]
        rest = sorted(c for c in groups if c not in CATEGORY_ORDER)
        return [(c, groups[c]) for c in known + rest]


def load_catalog(client) -> Catalog:
    try:
        fetched = client.list_products()
    except BackendError as e:
        log.warning("Falling back to sample catalog: %s", e.message)
        return Catalog(products=sample_products(), source=FALLBACK, error=e.message)
    return Catalog(products=fetched.data, source=fetched.source)
