# routes_admin.py
from flask import Blueprint, render_template, request

from admin import (
    ORDERS, PRODUCTS, available_transitions, banner_lines, delete_product,
    edit_product, load_admin, save_product, transition_order,
)
from backend import get_backend
from tracking import STATUS_LABELS

bp = Blueprint("admin", __name__, url_prefix="/admin")


def _render(state):
    return render_template(
        "admin.html",
        state=state,
        banners=banner_lines(state),
        transitions=available_transitions,
        status_labels=STATUS_LABELS,
    )


@bp.get("/")
def dashboard():
    state = load_admin(get_backend(), request.args.get("tab", PRODUCTS))
    edit_id = request.args.get("edit", type=int)
    if edit_id is not None:
        state = edit_product(state, edit_id)
    return _render(state)


# POST handlers render the resulting state directly so the operator sees
# the locally patched list, not a fresh fetch.

@bp.post("/products")
def create_product():
    client = get_backend()
    state = save_product(load_admin(client, PRODUCTS), client, request.form)
    return _render(state)


@bp.post("/products/<int:product_id>")
def update_product(product_id):
    client = get_backend()
    state = save_product(load_admin(client, PRODUCTS), client, request.form, product_id=product_id)
    return _render(state)


@bp.post("/products/<int:product_id>/delete")
def remove_product(product_id):
    client = get_backend()
    confirmed = request.form.get("confirm") == "yes"
    state = delete_product(load_admin(client, PRODUCTS), client, product_id, confirmed=confirmed)
    return _render(state)


@bp.post("/orders/<int:order_id>/status")
def update_order_status(order_id):
    client = get_backend()
    state = transition_order(load_admin(client, ORDERS), client, order_id,
                             request.form.get("status", ""))
    return _render(state)
