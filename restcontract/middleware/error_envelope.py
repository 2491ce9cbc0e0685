"""
Error envelope middleware - errors that escape a handler.

Contract validation failures never reach this layer (the pipeline answers
400 itself). Everything else - handler exceptions, malformed JSON, unknown
URLs - is rendered in the same shape as validation failures:

{
    "status": "error",
    "error": "The requested URL was not found on the server...",
    "code": "NOT_FOUND"
}
"""

import logging
from flask import Flask, jsonify, g
from werkzeug.exceptions import HTTPException


logger = logging.getLogger('restcontract.middleware.error')


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on a Flask app.

    Handles:
    - HTTP exceptions (400, 404, 405, ...), status preserved
    - Unhandled exceptions from handlers, rendered as 500
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, error.code)

    @app.errorhandler(Exception)
    def handle_unhandled_error(error):
        request_id = getattr(g, 'request_id', None)
        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )
        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)


def make_error_response(code: str, message: str, status_code: int):
    """
    Build an error response in the envelope shape.

    Returns:
        Tuple of (response, status_code)
    """
    return jsonify({
        "status": "error",
        "error": message,
        "code": code,
    }), status_code
