"""Tests for the admin dashboard state transitions."""

import json
from decimal import Decimal

import httpx
import pytest

from admin import (
    ORDERS, PRODUCTS, AdminState, FetchStatus, Surface, available_transitions,
    banner_lines, delete_product, edit_product, load_admin, save_product,
    switch_tab, transition_order, validate_product_form,
)
from catalog import DATABASE, FALLBACK, sample_orders
from models import OrderStatus

GOOD_FORM = {
    "name": "Kiwi",
    "description": "Green and fuzzy",
    "price": "0.79",
    "image_url": "https://example.com/kiwi.jpg",
    "category": "Fruits",
    "stock": "40",
}


def _product_json(id, **kw):
    body = {"id": id, "name": "Kiwi", "description": None, "price": 0.79,
            "image_url": None, "category": "Fruits", "stock": 40}
    body.update(kw)
    return body


def _state_with(products=(), orders=()):
    return AdminState(
        products=Surface(FetchStatus.SUCCESS, tuple(products), DATABASE),
        orders=Surface(FetchStatus.SUCCESS, tuple(orders), DATABASE),
    )


class TestValidateProductForm:
    def test_valid_form_gives_payload(self):
        errors, payload = validate_product_form(GOOD_FORM)
        assert errors == {}
        assert payload.price == Decimal("0.79")
        assert payload.stock == 40

    def test_required_fields(self):
        errors, payload = validate_product_form({})
        assert payload is None
        assert errors == {
            "name": "Product name is required",
            "price": "Price is required",
            "category": "Category is required",
        }

    @pytest.mark.parametrize("price", ["0", "-1", "abc", "NaN", "inf"])
    def test_price_must_be_positive_number(self, price):
        errors, _ = validate_product_form({**GOOD_FORM, "price": price})
        assert errors == {"price": "Price must be a positive number"}

    @pytest.mark.parametrize("stock", ["-3", "lots", "1.5"])
    def test_stock_must_be_non_negative_integer(self, stock):
        errors, _ = validate_product_form({**GOOD_FORM, "stock": stock})
        assert errors == {"stock": "Stock must be a non-negative number"}

    def test_blank_stock_defaults_to_zero(self):
        errors, payload = validate_product_form({**GOOD_FORM, "stock": ""})
        assert errors == {}
        assert payload.stock == 0

    def test_image_url_must_be_http(self):
        errors, _ = validate_product_form({**GOOD_FORM, "image_url": "ftp://nope"})
        assert errors == {"image_url": "Image URL must be a valid URL"}

    def test_blank_image_url_allowed(self):
        errors, payload = validate_product_form({**GOOD_FORM, "image_url": "  "})
        assert errors == {}
        assert payload.image_url is None


class TestLoadAdmin:
    def test_load_uses_backend_data(self, mock_backend):
        def handler(request):
            if request.url.path == "/api/products":
                return httpx.Response(200, json=[_product_json(5)], headers={"X-Data-Source": "database"})
            return httpx.Response(200, json=[])

        state = load_admin(mock_backend(handler))

        assert state.tab == PRODUCTS
        assert state.products.status is FetchStatus.SUCCESS
        assert [p.id for p in state.products.items] == [5]
        assert state.orders.items == ()
        assert banner_lines(state) == []

    def test_failed_fetches_fall_back_to_samples(self, mock_backend):
        state = load_admin(mock_backend(lambda r: httpx.Response(500, json={"error": "db down"})))

        assert state.products.status is FetchStatus.ERROR
        assert [p.id for p in state.products.items] == [1, 2, 6, 7]
        assert [o.id for o in state.orders.items] == [1, 2]
        assert banner_lines(state) == [
            "Product data is using sample data",
            "Order data is using sample data",
        ]

    def test_fallback_source_header_shows_banner(self, mock_backend):
        def handler(request):
            if request.url.path == "/api/products":
                return httpx.Response(200, json=[_product_json(1)], headers={"X-Data-Source": "fallback"})
            return httpx.Response(200, json=[])

        state = load_admin(mock_backend(handler))

        assert state.products.status is FetchStatus.SUCCESS
        assert state.products.source == FALLBACK
        assert banner_lines(state) == ["Product data is using sample data"]

    def test_unknown_tab_falls_back_to_products(self):
        assert switch_tab(AdminState(), "nonsense").tab == PRODUCTS
        assert switch_tab(AdminState(), ORDERS).tab == ORDERS


class TestProductOperations:
    def test_edit_prefills_form(self, make_product):
        state = edit_product(_state_with([make_product(id=3, price="1.50", stock=7)]), 3)
        assert state.editing == 3
        assert state.form["price"] == "1.50"
        assert state.form["stock"] == "7"

    def test_edit_unknown_product(self):
        state = edit_product(_state_with(), 3)
        assert state.error == "Product not found"
        assert state.editing is None

    def test_create_appends_returned_product(self, make_product, mock_backend):
        client = mock_backend(lambda r: httpx.Response(201, json=_product_json(9)))
        state = save_product(_state_with([make_product(id=1)]), client, GOOD_FORM)

        assert [p.id for p in state.products.items] == [1, 9]
        assert state.error is None
        assert state.form == {}
        sent = json.loads(client.calls[0].content)
        assert client.calls[0].method == "POST"
        assert sent["price"] == 0.79
        assert sent["stock"] == 40

    def test_update_replaces_in_place(self, make_product, mock_backend):
        client = mock_backend(lambda r: httpx.Response(200, json=_product_json(2, name="Gold Kiwi")))
        before = _state_with([make_product(id=1), make_product(id=2), make_product(id=3)])

        state = save_product(before, client, {**GOOD_FORM, "name": "Gold Kiwi"}, product_id=2)

        assert [p.id for p in state.products.items] == [1, 2, 3]
        assert state.products.find(2).name == "Gold Kiwi"
        assert state.editing is None
        assert client.calls[0].method == "PUT"
        assert client.calls[0].url.path == "/api/products/2"

    def test_invalid_form_makes_no_request(self, mock_backend):
        client = mock_backend(lambda r: httpx.Response(201, json=_product_json(9)))
        state = save_product(_state_with(), client, {**GOOD_FORM, "price": "-1"})

        assert client.calls == []
        assert state.form_errors == {"price": "Price must be a positive number"}
        assert state.form["name"] == "Kiwi"

    @pytest.mark.parametrize("product_id,message", [(None, "Failed to create product"),
                                                     (1, "Failed to update product")])
    def test_backend_failure_keeps_list(self, make_product, mock_backend, product_id, message):
        client = mock_backend(lambda r: httpx.Response(500, json={"error": "boom"}))
        before = _state_with([make_product(id=1)])

        state = save_product(before, client, GOOD_FORM, product_id=product_id)

        assert state.error == message
        assert state.products == before.products
        assert state.form["name"] == "Kiwi"

    def test_delete_requires_confirmation(self, make_product, mock_backend):
        client = mock_backend(lambda r: httpx.Response(200, json={"message": "Product deleted"}))
        before = _state_with([make_product(id=1)])

        assert delete_product(before, client, 1) is before
        assert client.calls == []

    def test_confirmed_delete_removes_row(self, make_product, mock_backend):
        client = mock_backend(lambda r: httpx.Response(200, json={"message": "Product deleted"}))
        state = delete_product(_state_with([make_product(id=1), make_product(id=2)]), client, 1,
                               confirmed=True)

        assert [p.id for p in state.products.items] == [2]
        assert client.calls[0].method == "DELETE"

    def test_delete_failure_keeps_row(self, make_product, mock_backend):
        client = mock_backend(lambda r: httpx.Response(404, json={"error": "Product not found"}))
        state = delete_product(_state_with([make_product(id=1)]), client, 1, confirmed=True)

        assert state.error == "Failed to delete product"
        assert [p.id for p in state.products.items] == [1]


class TestOrderTransitions:
    @pytest.mark.parametrize("status,targets", [
        (OrderStatus.PENDING, [OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED]),
        (OrderStatus.IN_PROGRESS, [OrderStatus.DELIVERED, OrderStatus.CANCELLED]),
        (OrderStatus.DELIVERED, []),
        (OrderStatus.CANCELLED, []),
    ])
    def test_available_transitions(self, status, targets):
        assert [t for t, _ in available_transitions(status)] == targets

    def test_labels(self):
        assert available_transitions("PENDING") == (
            (OrderStatus.IN_PROGRESS, "Start Delivery"),
            (OrderStatus.CANCELLED, "Cancel"),
        )

    def test_cancel_pending_order_patches_status_only(self, mock_backend):
        orders = sample_orders()
        client = mock_backend(lambda r: httpx.Response(200, json={"unexpected": "shape"}))
        # a malformed body still fails the call
        failed = transition_order(_state_with(orders=orders), client, 1, "CANCELLED")
        assert failed.error == "Failed to update order status"

        def ok(request):
            body = json.loads(request.content)
            return httpx.Response(200, json={**orders[0].model_dump(mode="json"), **body})

        client = mock_backend(ok)
        state = transition_order(_state_with(orders=orders), client, 1, "CANCELLED")

        assert state.error is None
        assert state.tab == ORDERS
        order = state.orders.find(1)
        assert order.status is OrderStatus.CANCELLED
        assert order.items == orders[0].items
        assert order.total_amount == orders[0].total_amount
        assert available_transitions(order.status) == ()
        assert json.loads(client.calls[0].content) == {"status": "CANCELLED"}

    def test_illegal_transition_makes_no_request(self, mock_backend):
        client = mock_backend(lambda r: httpx.Response(200, json={}))
        # order 2 is DELIVERED
        state = transition_order(_state_with(orders=sample_orders()), client, 2, "PENDING")

        assert client.calls == []
        assert state.error == "Order #2 can't move from DELIVERED to PENDING"

    def test_invalid_status_value(self, mock_backend):
        client = mock_backend(lambda r: httpx.Response(200, json={}))
        state = transition_order(_state_with(orders=sample_orders()), client, 1, "SHIPPED")

        assert client.calls == []
        assert state.error == "Invalid status: SHIPPED"

    def test_unknown_order(self, mock_backend):
        client = mock_backend(lambda r: httpx.Response(200, json={}))
        state = transition_order(_state_with(), client, 77, "CANCELLED")
        assert state.error == "Order not found"

    def test_backend_rejection_keeps_status(self, mock_backend):
        client = mock_backend(lambda r: httpx.Response(409, json={"error": "Illegal status change"}))
        state = transition_order(_state_with(orders=sample_orders()), client, 1, "IN_PROGRESS")

        assert state.error == "Failed to update order status"
        assert state.orders.find(1).status is OrderStatus.PENDING
