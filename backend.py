"""
HTTP client for the order/product backend.

Every call either returns parsed schema objects or raises one of the
BackendError kinds from errors.py:

    404                   -> NotFoundError
    other 4xx             -> ClientError
    5xx, network, timeout -> TransientError
    unparseable body      -> MalformedResponseError (a TransientError)
"""
import logging
import time
from dataclasses import dataclass
from typing import Generic, TypeVar
from urllib.parse import quote

import httpx
from flask import current_app, g
from pydantic import ValidationError

import schemas
from errors import ClientError, MalformedResponseError, NotFoundError, TransientError

log = logging.getLogger(__name__)

T = TypeVar("T")

DATA_SOURCE_HEADER = "X-Data-Source"


@dataclass(frozen=True)
class Fetched(Generic[T]):
    data: T
    source: str = "database"


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


def _segment(value):
    return quote(str(value).strip(), safe="")


class BackendClient:
    def __init__(self, http: httpx.Client):
        self.http = http

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ---------- transport ----------

    def _send(self, method, path, json=None):
        started = time.monotonic()
        try:
            response = self.http.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise TransientError(f"Backend timed out: {method} {path}") from e
        except httpx.RequestError as e:
            raise TransientError(f"Network error: {e}") from e
        log.debug("%s %s -> %s in %.1fms", method, path, response.status_code,
                  (time.monotonic() - started) * 1000)

        if response.is_success:
            return response

        status = response.status_code
        message = _error_message(response)
        if status == 404:
            raise NotFoundError(message or "Not found", status)
        if 400 <= status < 500:
            raise ClientError(message or f"Request rejected: {status}", status)
        raise TransientError(message or f"Server error: {status} {response.reason_phrase}", status)

    def _parse(self, response, validate):
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise MalformedResponseError("Server returned non-JSON response", response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON response: {e}", response.status_code) from e
        try:
            return validate(body)
        except ValidationError as e:
            log.error("Response from %s failed validation: %s", response.request.url, e)
            raise MalformedResponseError("Invalid response format from API", response.status_code) from e

    def _source(self, response):
        return response.headers.get(DATA_SOURCE_HEADER, "database")

    # ---------- products ----------

    def list_products(self) -> Fetched:
        response = self._send("GET", "/api/products")
        products = self._parse(response, schemas.ProductList.validate_python)
        return Fetched(products, self._source(response))

    def get_product(self, product_id) -> schemas.Product:
        response = self._send("GET", f"/api/products/{_segment(product_id)}")
        return self._parse(response, schemas.Product.model_validate)

    def create_product(self, payload: schemas.ProductPayload) -> schemas.Product:
        response = self._send("POST", "/api/products", json=payload.model_dump(mode="json"))
        return self._parse(response, schemas.Product.model_validate)

    def update_product(self, product_id, payload: schemas.ProductPayload) -> schemas.Product:
        response = self._send("PUT", f"/api/products/{_segment(product_id)}",
                              json=payload.model_dump(mode="json"))
        return self._parse(response, schemas.Product.model_validate)

    def delete_product(self, product_id) -> schemas.Deleted:
        response = self._send("DELETE", f"/api/products/{_segment(product_id)}")
        return self._parse(response, schemas.Deleted.model_validate)

    # ---------- orders ----------

    def list_orders(self) -> Fetched:
        response = self._send("GET", "/api/orders")
        orders = self._parse(response, schemas.OrderList.validate_python)
        return Fetched(orders, self._source(response))

    def get_order(self, order_id) -> schemas.Order:
        response = self._send("GET", f"/api/orders/{_segment(order_id)}")
        return self._parse(response, schemas.Order.model_validate)

    def create_order(self, payload: schemas.OrderPayload) -> schemas.Order:
        response = self._send("POST", "/api/orders", json=payload.model_dump(mode="json"))
        return self._parse(response, schemas.Order.model_validate)

    def update_order_status(self, order_id, status) -> schemas.Order:
        # the backend validates against the enum
        body = {"status": getattr(status, "value", status)}
        response = self._send("PUT", f"/api/orders/{_segment(order_id)}", json=body)
        return self._parse(response, schemas.Order.model_validate)


def make_backend_client(app):
    timeout = app.config.get("BACKEND_TIMEOUT", 5.0)
    base_url = app.config.get("BACKEND_URL")
    if base_url:
        http = httpx.Client(base_url=base_url, timeout=timeout)
    else:
        # same process: route straight into our own /api blueprint
        http = httpx.Client(transport=httpx.WSGITransport(app=app),
                            base_url="http://greengrocer.internal", timeout=timeout)
    return BackendClient(http)


def get_backend():
    """Client scoped to the current app context; closed on teardown."""
    if "backend" not in g:
        g.backend = make_backend_client(current_app._get_current_object())
    return g.backend


def init_app(app):
    @app.teardown_appcontext
    def close_backend(exc):
        client = g.pop("backend", None)
        if client is not None:
            client.close()
