# routes_api.py
from flask import Blueprint, request, jsonify, current_app
from pydantic import ValidationError
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

import schemas
from catalog import DATABASE, FALLBACK, find_sample_product, sample_orders, sample_products
from models import db, Product, Order, OrderItem, OrderStatus, can_transition

bp = Blueprint("api", __name__, url_prefix="/api")

NO_STORE = {"Cache-Control": "no-store, max-age=0"}
INVALID_STATUS = "Invalid status. Must be one of: " + ", ".join(s.value for s in OrderStatus)


# ---------- helpers ----------

def _respond(data, status=200, source=DATABASE):
    return jsonify(data), status, {**NO_STORE, "X-Data-Source": source}


def _error(message, status, details=None):
    body = {"error": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def _parse(model, message):
    """(payload, None) for a valid JSON body, else (None, error response)."""
    if not request.is_json:
        return None, _error("Request body must be JSON", 415)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, _error("Malformed JSON body", 400)
    try:
        return model.model_validate(data), None
    except ValidationError as e:
        return None, _error(message, 400, e.errors(include_url=False, include_context=False))


def _product(p):
    return schemas.Product.model_validate(p).model_dump(mode="json")


def _order(o):
    return schemas.Order.model_validate(o).model_dump(mode="json")


def _all_products():
    return Product.query.order_by(Product.category, Product.name).all()


def _all_orders():
    return Order.query.order_by(desc(Order.created_at), desc(Order.id)).all()


def _snapshot(product_id):
    """(name, image_url) to store on an order line."""
    product = db.session.get(Product, product_id)
    if product is None:
        product = find_sample_product(product_id)
    if product is None:
        return f"Product {product_id}", None
    return product.name, product.image_url


# ---------- products ----------

@bp.get("/products")
def list_products():
    try:
        products = _all_products()
    except SQLAlchemyError:
        current_app.logger.exception("Error fetching products, returning sample catalog")
        db.session.rollback()
        return _respond([_product(p) for p in sample_products()], source=FALLBACK)

    if not products:
        current_app.logger.info("No products in database, returning sample catalog")
        return _respond([_product(p) for p in sample_products()], source=FALLBACK)

    current_app.logger.debug("Fetched %d products", len(products))
    return _respond([_product(p) for p in products])


@bp.get("/products/<int:product_id>")
def get_product(product_id):
    product = db.get_or_404(Product, product_id, description="Product not found")
    return _respond(_product(product))


@bp.post("/products")
def create_product():
    payload, error = _parse(schemas.ProductPayload, "Name, price, and category are required")
    if error:
        return error

    product = Product(**payload.model_dump())
    try:
        db.session.add(product)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Error creating product")
        return _error("Failed to create product", 500)

    current_app.logger.info("Created product %s (%s)", product.id, product.name)
    return _respond(_product(product), 201)


@bp.put("/products/<int:product_id>")
def update_product(product_id):
    product = db.get_or_404(Product, product_id, description="Product not found")
    payload, error = _parse(schemas.ProductPayload, "Name, price, and category are required")
    if error:
        return error

    for key, value in payload.model_dump().items():
        setattr(product, key, value)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Error updating product %s", product_id)
        return _error("Failed to update product", 500)

    return _respond(_product(product))


@bp.delete("/products/<int:product_id>")
def delete_product(product_id):
    product = db.get_or_404(Product, product_id, description="Product not found")
    try:
        db.session.delete(product)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Error deleting product %s", product_id)
        return _error("Failed to delete product", 500)

    return _respond({"message": "Product deleted successfully"})


# ---------- orders ----------

@bp.get("/orders")
def list_orders():
    try:
        orders = _all_orders()
    except SQLAlchemyError:
        current_app.logger.exception("Error fetching orders, returning sample orders")
        db.session.rollback()
        return _respond([_order(o) for o in sample_orders()], source=FALLBACK)

    return _respond([_order(o) for o in orders])


@bp.get("/orders/<int:order_id>")
def get_order(order_id):
    order = db.get_or_404(Order, order_id, description="Order not found")
    return _respond(_order(order))


@bp.post("/orders")
def create_order():
    payload, error = _parse(schemas.OrderPayload, "Missing required fields")
    if error:
        return error

    order = Order(
        buyer_name=payload.buyer_name,
        buyer_email=payload.buyer_email,
        buyer_phone=payload.buyer_phone,
        delivery_address=payload.delivery_address,
        total_amount=payload.total_amount,
        status=OrderStatus.PENDING.value,
    )
    for line in payload.items:
        name, image_url = _snapshot(line.product_id)
        order.items.append(OrderItem(
            product_id=line.product_id,
            quantity=line.quantity,
            price=line.price,
            product_name=name,
            product_image_url=image_url,
        ))

    # order and its lines land together or not at all
    try:
        db.session.add(order)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Error creating order")
        return _error("Failed to create order", 500)

    current_app.logger.info("Order %s created with %d item(s)", order.id, len(order.items))
    return _respond(_order(order), 201)


@bp.put("/orders/<int:order_id>")
def update_order_status(order_id):
    payload, error = _parse(schemas.StatusUpdate, INVALID_STATUS)
    if error:
        return error

    order = db.get_or_404(Order, order_id, description="Order not found")
    new_status = payload.status
    if not can_transition(order.status, new_status):
        return _error(f"Cannot change order status from {order.status} to {new_status.value}", 409)

    order.status = new_status.value
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Error updating order %s status", order_id)
        return _error("Failed to update order status", 500)

    current_app.logger.info("Order %s moved to %s", order_id, new_status.value)
    return _respond(_order(order))
