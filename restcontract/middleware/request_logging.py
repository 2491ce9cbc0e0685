"""
Request logging middleware - sampled access logs.

Paths in the watchlist are always logged; otherwise a request is logged
with probability REQUEST_LOG_SAMPLE_RATE.
"""

import logging
import random
import time
from typing import Any, List

from flask import Flask, g, request

from ..config import Config


logger = logging.getLogger("restcontract.request")


def _should_log(path: str, watchlist: List[str], sample_rate: float) -> bool:
    if watchlist:
        return any(path.startswith(prefix) for prefix in watchlist)
    if sample_rate <= 0:
        return False
    if sample_rate >= 1:
        return True
    return random.random() <= sample_rate


def setup_request_logging_middleware(app: Flask, config: Any = Config) -> None:
    """
    Set up request logging on a Flask app.

    Config:
      - REQUEST_LOG_ENABLED (default: true)
      - REQUEST_LOG_SAMPLE_RATE (default: 0.0)
      - REQUEST_LOG_ENDPOINTS (path prefixes to always log)
    """
    if not config.REQUEST_LOG_ENABLED:
        return

    sample_rate = config.REQUEST_LOG_SAMPLE_RATE
    watchlist = list(config.REQUEST_LOG_ENDPOINTS)

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        path = request.path
        if not _should_log(path, watchlist, sample_rate):
            return response

        duration_ms = None
        if hasattr(g, "request_start"):
            duration_ms = round((time.perf_counter() - g.request_start) * 1000, 2)

        logger.info(
            "api_request path=%s method=%s status=%s duration_ms=%s request_id=%s",
            path,
            request.method,
            response.status_code,
            duration_ms,
            getattr(g, "request_id", None),
        )
        return response
