from flask import render_template, request, jsonify
from werkzeug.exceptions import HTTPException


class GreengrocerError(Exception):
    pass


class BackendError(GreengrocerError):
    """Any failure talking to the order/product backend."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(BackendError):
    pass


class ClientError(BackendError):
    """The backend rejected the request; sending it again won't help."""


class TransientError(BackendError):
    """Server-side or network failure; callers fall back to sample data."""


class MalformedResponseError(TransientError):
    """Response body was not the JSON shape the endpoint promises."""


PAGE_MESSAGES = {
    403: "Access denied 🚫",
    404: "Page not found 😕",
    405: "That action isn't allowed here",
    500: "Something broke on our end 😓",
}


def _wants_json():
    return request.path.startswith("/api/")


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def http_error(e):
        if _wants_json():
            return jsonify({"error": e.description}), e.code
        message = PAGE_MESSAGES.get(e.code, e.name)
        return render_template('errors/error.html', code=e.code, message=message), e.code

    @app.errorhandler(500)
    def server_error(e):
        if _wants_json():
            return jsonify({"error": "Internal server error"}), 500
        return render_template('errors/error.html', code=500, message=PAGE_MESSAGES[500]), 500
