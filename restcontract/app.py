"""
Flask application factory for contract-validated APIs.

Usage:
    app = create_app()
    router = ContractRouter(registry, app)

    @router.get("/potatoes")
    def list_potatoes(req):
        return {"status": 200, "potatoes": []}
"""

import logging
from typing import Any

from flask import Flask
from flask_cors import CORS

from .config import Config
from .middleware import (
    setup_error_handlers,
    setup_request_id_middleware,
    setup_request_logging_middleware,
)


def create_app(config: Any = Config, import_name: str = __name__) -> Flask:
    app = Flask(import_name)
    app.config.from_object(config)

    logging.getLogger('restcontract').setLevel(config.LOG_LEVEL)

    CORS(app,
         origins=config.cors_origins_list(),
         allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
         expose_headers=["X-Request-ID"])

    setup_request_id_middleware(app)
    setup_request_logging_middleware(app, config)
    setup_error_handlers(app)

    return app
