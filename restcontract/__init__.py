"""
restcontract - one route contract enforced at both ends of an HTTP exchange.

- Server: ContractRouter validates body, params and query before a Flask
  handler runs
- Client: ContractClient validates response bodies from a requests session
"""

from .contracts import (
    ContractRegistry,
    RouteDefinition,
    Schema,
    ContractRouter,
    ValidatedRequest,
    contract_route,
    decode_and_report,
    ValidationContext,
    ContractViolation,
    ResponseValidationError,
    UnknownRouteError,
)
from .client import ContractClient
from .diagnostics import Diagnostics
from .app import create_app

__version__ = "0.4.0"

__all__ = [
    'ContractRegistry',
    'RouteDefinition',
    'Schema',
    'ContractRouter',
    'ValidatedRequest',
    'contract_route',
    'decode_and_report',
    'ValidationContext',
    'ContractViolation',
    'ResponseValidationError',
    'UnknownRouteError',
    'ContractClient',
    'Diagnostics',
    'create_app',
]
