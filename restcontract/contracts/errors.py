"""
Exception hierarchy for contract enforcement.

RestContractError
├── ContractDefinitionError      malformed registry input (setup time)
│   └── UnknownRouteError        handler bound to a route with no contract
└── ContractViolation            a value did not match its declared schema
    └── ResponseValidationError  client-side response mismatch
"""

from typing import Any, Dict, Optional, Tuple


class RestContractError(Exception):
    """Base class for all restcontract errors."""
    pass


class ContractDefinitionError(RestContractError):
    """Raised when a contract registry is built from invalid input."""
    pass


class UnknownRouteError(ContractDefinitionError, KeyError):
    """Raised when a (path, method) pair has no route definition."""

    def __init__(self, path: str, method: str):
        self.path = path
        self.method = method
        super().__init__(f'No route definition for {method.upper()} "{path}"')

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class ContractViolation(RestContractError):
    """
    Raised when a value does not conform to its declared schema.

    Attributes:
        message: Formatted report, e.g. "Invalid body: Invalid value ..."
        context: ValidationContext the value was checked in
        errors: FieldErrors reported by the schema
    """

    def __init__(self, message: str, context: Any = None, errors: Tuple = ()):
        super().__init__(message)
        self.message = message
        self.context = context
        self.errors = tuple(errors)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "message": self.message,
            "context": getattr(self.context, "value", self.context),
            "errors": [
                {"path": error.path, "expected": error.expected}
                for error in self.errors
            ],
        }


class ResponseValidationError(ContractViolation):
    """Raised by ContractClient when a response body breaks its contract."""

    def __init__(
        self,
        message: str,
        url: str,
        method: str,
        response: Optional[Any] = None,
        context: Any = None,
        errors: Tuple = (),
    ):
        super().__init__(message, context=context, errors=errors)
        self.url = url
        self.method = method
        self.response = response
