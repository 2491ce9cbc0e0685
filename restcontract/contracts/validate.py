"""
Decode-and-Report - run a schema and format any failure.

One report line per FieldError, in the order the schema reported them:

    Invalid value <json> supplied to <key: expected>/<key: expected>/...

The first context entry is the root shape (empty key), so a failing
top-level field renders as:

    Invalid value 123 supplied to : { status: 200 }/status: 200

The full message is "<label>: " followed by the lines joined by newlines.
Labels are "Invalid body", "Invalid params", "Invalid query", and on the
client 'Data validation failed for "<path>"'.
"""

import json
from enum import Enum
from typing import Any, Iterable, List, Optional

from .schema import MISSING, FieldError, Invalid, Schema, Valid, DecodeResult


class ValidationContext(Enum):
    """Which part of an exchange a value was decoded from."""
    BODY = "body"
    PARAMS = "params"
    QUERY = "query"
    RESPONSE = "response"

    @property
    def label(self) -> str:
        return f"Invalid {self.value}"

    @property
    def strict(self) -> bool:
        """Path captures and query strings are always text; only they are coerced."""
        return self in (ValidationContext.BODY, ValidationContext.RESPONSE)


def _json_compatible(value: Any) -> Any:
    # Integral floats render like JSON numbers (1.0 -> 1)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _json_compatible(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_compatible(v) for v in value]
    return value


def stringify(value: Any) -> str:
    """Render a supplied value as compact JSON ("undefined" when missing)."""
    if value is MISSING:
        return "undefined"
    try:
        return json.dumps(
            _json_compatible(value),
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
    except (TypeError, ValueError):
        return repr(value)


def format_error(error: FieldError) -> str:
    path = "/".join(f"{entry.key}: {entry.description}" for entry in error.context)
    return f"Invalid value {stringify(error.actual)} supplied to {path}"


def report(errors: Iterable[FieldError]) -> List[str]:
    """Format FieldErrors into report lines."""
    return [format_error(error) for error in errors]


def format_message(label: str, errors: Iterable[FieldError]) -> str:
    return f"{label}: " + "\n".join(report(errors))


def decode_and_report(
    schema: Schema,
    value: Any,
    context: ValidationContext,
    label: Optional[str] = None,
    strict: Optional[bool] = None,
) -> DecodeResult:
    """
    Decode a value and, on failure, attach the formatted report.

    Args:
        schema: Schema to decode with
        value: Untrusted input
        context: Part of the exchange being validated
        label: Message prefix, defaults to the context label
        strict: Decode as strict JSON, defaults to the context's strictness

    Returns:
        Valid with the decoded value, or Invalid carrying the errors and
        the formatted message. The caller decides whether Invalid is fatal.
    """
    if strict is None:
        strict = context.strict
    if strict:
        # JSON has one number type: 200.0 is the literal 200
        result = schema.decode(_json_compatible(value), strict=True)
    else:
        result = schema.decode(value)
    if isinstance(result, Valid):
        return result
    return Invalid(
        errors=result.errors,
        message=format_message(label or context.label, result.errors),
    )
