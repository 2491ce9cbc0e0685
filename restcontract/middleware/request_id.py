"""
Request ID middleware - X-Request-ID correlation for contract-validated APIs.

Every request gets an id in g.request_id (taken from the caller's
X-Request-ID header when present). The id is echoed back on the response
and appears in contract violation logs.
"""

import uuid
from flask import Flask, request, g


REQUEST_ID_HEADER = 'X-Request-ID'


def setup_request_id_middleware(app: Flask) -> None:
    """
    Install request id hooks on a Flask app.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

    @app.after_request
    def echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id() -> str:
    """Current request id, or a fresh UUID outside a request."""
    return getattr(g, 'request_id', None) or str(uuid.uuid4())
