from decimal import Decimal

import httpx
import pytest

import backend as backend_module
import schemas
from app import create_app
from backend import BackendClient
from config import TestConfig
from models import db, Order, OrderItem, OrderStatus, Product


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def backend(app):
    """BackendClient talking to the app's own /api blueprint in-process."""
    http = httpx.Client(transport=httpx.WSGITransport(app=app), base_url="http://testserver")
    with BackendClient(http) as c:
        yield c


@pytest.fixture()
def mock_backend():
    """Factory: BackendClient whose every request goes to `handler`.

    Requests seen are collected on the returned client's `.calls` list.
    """
    def make(handler):
        calls = []

        def recording(request):
            calls.append(request)
            return handler(request)

        c = BackendClient(httpx.Client(transport=httpx.MockTransport(recording),
                                       base_url="http://testserver"))
        c.calls = calls
        return c

    return make


@pytest.fixture()
def storefront_backend(monkeypatch, mock_backend):
    """Point the storefront's per-request client at a mock handler."""
    def install(handler):
        monkeypatch.setattr(backend_module, "make_backend_client", lambda app: mock_backend(handler))

    return install


@pytest.fixture()
def make_product():
    def make(id=1, stock=5, price="2.00", name=None, category="Fruits"):
        return schemas.Product(
            id=id,
            name=name or f"Product {id}",
            description=None,
            price=Decimal(price),
            image_url=None,
            category=category,
            stock=stock,
        )

    return make


@pytest.fixture()
def add_product(app):
    def add(name="Organic Apples", price="3.99", category="Fruits", stock=10, **kw):
        with app.app_context():
            product = Product(name=name, price=Decimal(price), category=category, stock=stock, **kw)
            db.session.add(product)
            db.session.commit()
            return product.id

    return add


@pytest.fixture()
def add_order(app):
    def add(status=OrderStatus.PENDING, items=((1, 2, "3.99"),)):
        with app.app_context():
            order = Order(
                buyer_name="John Doe",
                buyer_email="john@example.com",
                buyer_phone="555-123-4567",
                delivery_address="123 Main St, Anytown, USA",
                total_amount=sum(Decimal(price) * qty for _, qty, price in items),
                status=OrderStatus(status).value,
            )
            for product_id, qty, price in items:
                order.items.append(OrderItem(product_id=product_id, quantity=qty, price=Decimal(price),
                                             product_name=f"Product {product_id}"))
            db.session.add(order)
            db.session.commit()
            return order.id

    return add
