"""
Global middleware for contract-validated Flask apps.

Provides:
- Request ID injection (X-Request-ID)
- Error envelope standardization
- Sampled request logging
"""

from .request_id import setup_request_id_middleware, get_request_id
from .error_envelope import setup_error_handlers, make_error_response
from .request_logging import setup_request_logging_middleware

__all__ = [
    'setup_request_id_middleware',
    'get_request_id',
    'setup_error_handlers',
    'make_error_response',
    'setup_request_logging_middleware',
]
