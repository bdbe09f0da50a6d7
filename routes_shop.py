# routes_shop.py
from flask import (
    Blueprint, render_template, request, redirect, url_for,
    flash, session, abort, current_app
)

from backend import get_backend
from cart import CartStore, SessionCartStorage
from catalog import load_catalog
from checkout import BuyerInfo, submit_order
from services import format_money, parse_int
from tracking import track_order

bp = Blueprint("shop", __name__)


def _cart_store():
    return CartStore(SessionCartStorage(session, current_app.config["CART_SESSION_KEY"]))


# ---------- Public pages ----------

@bp.route("/")
def index():
    return render_template("index.html")


@bp.route("/products")
def products():
    catalog = load_catalog(get_backend())
    return render_template("products.html", catalog=catalog)


# ---------- Cart ----------

@bp.post("/cart/add/<int:product_id>")
def add_to_cart(product_id):
    product = load_catalog(get_backend()).find(product_id)
    if product is None:
        abort(404)
    _cart_store().add_to_cart(product)
    flash(f"Added {product.name} to cart!", "success")
    return redirect(url_for("shop.products"))


@bp.post("/cart/update/<int:product_id>")
def update_cart(product_id):
    quantity = parse_int(request.form.get("quantity"))
    if quantity is None:
        flash("Quantity must be a whole number.", "error")
    else:
        _cart_store().update_quantity(product_id, quantity)
    return redirect(url_for("shop.order"))


@bp.post("/cart/remove/<int:product_id>")
def remove_from_cart(product_id):
    _cart_store().remove_item(product_id)
    return redirect(url_for("shop.order"))


# ---------- Checkout ----------

@bp.route("/order", methods=["GET", "POST"])
def order():
    store = _cart_store()
    if request.method == "POST":
        buyer = BuyerInfo.from_form(request.form)
        result = submit_order(buyer, store, get_backend())
        if result.ok:
            flash("Thanks! Your order has been placed.", "success")
            return redirect(url_for("shop.track", orderId=result.order_id))
        return render_template("order.html", cart=store.cart, buyer=buyer,
                               form_errors=result.field_errors, error=result.error)

    return render_template("order.html", cart=store.cart, buyer=BuyerInfo(),
                           form_errors={}, error=None)


# ---------- Order tracking ----------

@bp.route("/track")
def track():
    order_id = (request.args.get("orderId") or "").strip()
    result = track_order(order_id, get_backend())
    return render_template("track.html", order_id=order_id, result=result)


# ---------- Template helpers ----------

@bp.app_context_processor
def inject_cart_count():
    return dict(cart_count=_cart_store().cart.count())


@bp.app_template_filter("money")
def money_filter(value):
    return format_money(value)
