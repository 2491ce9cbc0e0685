"""
Schema capability - pydantic-backed decoders for contract parts.

A Schema wraps any type pydantic can validate (BaseModel subclasses,
TypedDicts, dataclasses, Literal, list[...], dict[...], unions) and exposes:
- decode(value) -> Valid | Invalid
- name: the expected shape rendered in compact structural notation

Failed decodes are translated from pydantic's ValidationError into
FieldErrors. Each FieldError carries the full context chain from the root
shape down to the offending field, so reports can show every level:

    Invalid value 123 supplied to : { status: 200 }/status: 200
"""

import dataclasses
import enum
import json
import types
import typing
from collections import abc
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, TypeAdapter, ValidationError


class _Missing:
    """Sentinel for a field that was not supplied at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


_PRIMITIVE_NAMES = {
    str: "string",
    int: "number",
    float: "number",
    bool: "boolean",
}

_UNION_TYPES = (Union, types.UnionType)
_SEQUENCE_TYPES = (list, set, frozenset, abc.Sequence, abc.MutableSequence, abc.Set, abc.Iterable)
_MAPPING_TYPES = (dict, abc.Mapping, abc.MutableMapping)


# =============================================================================
# Decode results
# =============================================================================

@dataclass(frozen=True)
class ContextEntry:
    """One step of a FieldError context: the key and what was expected there."""
    key: str
    description: str


@dataclass(frozen=True)
class FieldError:
    """A single violation: where it happened, what was expected, what was supplied."""
    context: Tuple[ContextEntry, ...]
    actual: Any = MISSING

    @property
    def path(self) -> str:
        """Keys from the root to the field, joined with '/' (root omitted)."""
        return "/".join(entry.key for entry in self.context[1:])

    @property
    def expected(self) -> str:
        """Description of the shape expected at the offending field."""
        return self.context[-1].description if self.context else "unknown"


@dataclass(frozen=True)
class Valid:
    value: Any

    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    errors: Tuple[FieldError, ...]
    message: Optional[str] = None

    def is_valid(self) -> bool:
        return False


DecodeResult = Union[Valid, Invalid]


# =============================================================================
# Shape descriptions
# =============================================================================

def _literal_name(value: Any) -> str:
    if isinstance(value, enum.Enum):
        value = value.value
    return json.dumps(value, ensure_ascii=False)


def _join_union(names: List[str]) -> str:
    if len(names) == 1:
        return names[0]
    return "(" + " | ".join(names) + ")"


def _strip_annotated(tp: Any) -> Any:
    while typing.get_origin(tp) is typing.Annotated:
        tp = typing.get_args(tp)[0]
    return tp


def _structural_fields(tp: Any) -> Optional[Dict[str, Any]]:
    """
    Declared fields of a record-like type, keyed the way pydantic reports
    them in error locations. Returns None for non-record types.
    """
    if not isinstance(tp, type):
        return None
    if issubclass(tp, BaseModel):
        return {
            (info.alias or name): info.annotation
            for name, info in tp.model_fields.items()
        }
    if typing.is_typeddict(tp) or dataclasses.is_dataclass(tp):
        return typing.get_type_hints(tp)
    return None


def describe(tp: Any, _seen: Optional[Tuple[Any, ...]] = None) -> str:
    """
    Render a type in compact structural notation.

    Examples:
        str                         -> string
        Literal[200]                -> 200
        list[Potato]                -> Array<{ size: number }>
        Optional[int]               -> (number | null)
    """
    seen = _seen or ()
    if isinstance(tp, Schema):
        return tp.name
    tp = _strip_annotated(tp)

    if tp is Any or tp is object:
        return "unknown"
    if tp is None or tp is type(None):
        return "null"
    if tp in _PRIMITIVE_NAMES:
        return _PRIMITIVE_NAMES[tp]
    if isinstance(tp, typing.ForwardRef):
        return tp.__forward_arg__
    if isinstance(tp, str):
        return tp

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is Literal:
        return _join_union([_literal_name(v) for v in args])
    if origin in _UNION_TYPES:
        return _join_union([describe(a, seen) for a in args])
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return f"Array<{describe(args[0], seen)}>"
        return "[" + ", ".join(describe(a, seen) for a in args) + "]"
    if origin in _SEQUENCE_TYPES:
        item = describe(args[0], seen) if args else "unknown"
        return f"Array<{item}>"
    if origin in _MAPPING_TYPES:
        key = describe(args[0], seen) if args else "string"
        value = describe(args[1], seen) if len(args) > 1 else "unknown"
        return f"{{ [K in {key}]: {value} }}"

    if tp in (list, set, frozenset, tuple):
        return "Array<unknown>"
    if tp is dict:
        return "{ [K in string]: unknown }"

    if isinstance(tp, type):
        if issubclass(tp, enum.Enum):
            return _join_union([_literal_name(member.value) for member in tp])
        fields = _structural_fields(tp)
        if fields is not None:
            # Self-referencing models render by name past the first level
            if tp in seen:
                return tp.__name__
            if not fields:
                return "{}"
            inner = seen + (tp,)
            return "{ " + ", ".join(
                f"{key}: {describe(value, inner)}" for key, value in fields.items()
            ) + " }"
        return tp.__name__

    return str(tp)


# =============================================================================
# Error location resolution
# =============================================================================

def _origin_name(origin: Any) -> str:
    name = getattr(origin, "__name__", None) or getattr(origin, "_name", None) or ""
    return name.lower()


def _union_tag_matches(member: Any, tag: Any) -> bool:
    """pydantic tags union branch errors with the member's name, e.g. 'int', 'Potato', 'list[int]'."""
    if not isinstance(tag, str):
        return False
    member = _strip_annotated(member)
    if getattr(member, "__name__", None) == tag:
        return True
    origin = typing.get_origin(member)
    if origin is not None:
        return tag.startswith(_origin_name(origin) + "[")
    return False


def _step(tp: Any, item: Union[str, int]) -> Optional[Tuple[str, Any]]:
    """
    Follow one element of a pydantic error location into a type.

    Returns (context key, child type), or None when the element cannot be
    resolved against the declared type.
    """
    tp = _strip_annotated(tp)
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin in _UNION_TYPES:
        members = [a for a in args if a is not type(None)]
        # Optional[X] validates as a nullable X, pydantic adds no branch tag
        if len(members) == 1:
            return _step(members[0], item)
        for index, member in enumerate(members):
            if _union_tag_matches(member, item):
                return str(index), member
        return None

    fields = _structural_fields(tp)
    if fields is not None:
        return str(item), fields.get(item, Any)

    if origin is tuple and isinstance(item, int):
        if len(args) == 2 and args[1] is Ellipsis:
            return str(item), args[0]
        if 0 <= item < len(args):
            return str(item), args[item]
        return str(item), Any
    if (origin in _SEQUENCE_TYPES or tp in (list, set, frozenset, tuple)) and isinstance(item, int):
        return str(item), args[0] if args else Any
    if origin in _MAPPING_TYPES or tp is dict:
        if item == "[key]":
            return "[key]", args[0] if args else str
        return str(item), args[1] if len(args) > 1 else Any
    return None


def resolve_context(root: Any, root_name: str, loc: Tuple[Union[str, int], ...]) -> Tuple[ContextEntry, ...]:
    """Build the ContextEntry chain for a pydantic error location."""
    entries = [ContextEntry("", root_name)]
    current = root
    for item in loc:
        step = _step(current, item)
        if step is None:
            entries.append(ContextEntry(str(item), "unknown"))
            current = Any
            continue
        key, current = step
        entries.append(ContextEntry(key, describe(current)))
    return tuple(entries)


# =============================================================================
# Schema
# =============================================================================

class Schema:
    """
    Decoder for one contract part (params, query, body or response).

    Usage:
        class Potato(BaseModel):
            size: float

        schema = Schema(list[Potato])
        result = schema.decode([{"size": 1}])
        if result.is_valid():
            potatoes = result.value
    """

    def __init__(self, annotation: Any, name: Optional[str] = None):
        self.annotation = annotation
        self.adapter = TypeAdapter(annotation)
        self.name = name or describe(annotation)

    def decode(self, value: Any, strict: bool = False) -> DecodeResult:
        """
        Decode a value.

        Args:
            value: Untrusted input
            strict: Validate as strict JSON, so "400" is not a number and
                1 is not a string. The value must be JSON-serializable.
        """
        try:
            if strict:
                return Valid(self.adapter.validate_json(json.dumps(value), strict=True))
            return Valid(self.adapter.validate_python(value))
        except ValidationError as exc:
            return Invalid(self.field_errors(exc))

    def field_errors(self, exc: ValidationError) -> Tuple[FieldError, ...]:
        """Translate pydantic errors, keeping the order pydantic reported them in."""
        errors = []
        for error in exc.errors(include_url=False):
            actual = MISSING if error["type"] == "missing" else error.get("input", MISSING)
            errors.append(FieldError(
                context=resolve_context(self.annotation, self.name, tuple(error["loc"])),
                actual=actual,
            ))
        return tuple(errors)

    def dump(self, value: Any) -> Any:
        """JSON-compatible form of a decoded value."""
        return self.adapter.dump_python(value, mode="json")

    def __repr__(self) -> str:
        return f"Schema({self.name})"


def as_schema(obj: Any) -> Optional[Schema]:
    """Wrap a type in a Schema; None (no constraint) and Schemas pass through."""
    if obj is None or isinstance(obj, Schema):
        return obj
    return Schema(obj)
