"""
Contract enforcement package.

Provides the contract registry, pydantic-backed schemas, decode-and-report,
and the Flask validation pipeline.
"""

from .errors import (
    RestContractError,
    ContractDefinitionError,
    UnknownRouteError,
    ContractViolation,
    ResponseValidationError,
)
from .schema import (
    MISSING,
    ContextEntry,
    FieldError,
    Valid,
    Invalid,
    Schema,
    as_schema,
    describe,
)
from .registry import HTTP_METHODS, RouteDefinition, ContractRegistry
from .validate import ValidationContext, decode_and_report, report
from .wrapper import ValidatedRequest, ContractRouter, contract_route

__all__ = [
    'RestContractError',
    'ContractDefinitionError',
    'UnknownRouteError',
    'ContractViolation',
    'ResponseValidationError',
    'MISSING',
    'ContextEntry',
    'FieldError',
    'Valid',
    'Invalid',
    'Schema',
    'as_schema',
    'describe',
    'HTTP_METHODS',
    'RouteDefinition',
    'ContractRegistry',
    'ValidationContext',
    'decode_and_report',
    'report',
    'ValidatedRequest',
    'ContractRouter',
    'contract_route',
]
