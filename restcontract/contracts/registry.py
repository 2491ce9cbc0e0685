"""
Contract Registry - single source of truth for an API's route contracts.

Each (path, method) pair has at most one RouteDefinition:
- params: path template captures (e.g. "/plant-potato/<id>")
- query: query string key/value pairs
- body: decoded request body
- response: response body (enforced by ContractClient only)

Any part may be omitted, meaning "no constraint". The registry is built
once at setup time and is read-only afterwards.

Usage:
    registry = ContractRegistry({
        "/potatoes": {
            "GET": RouteDefinition(response=PotatoList),
        },
        "/plant-potato": {
            "POST": {"body": PlantPotato, "response": Ack},
        },
    })
    registry.lookup("/potatoes", "get")
"""

from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import ContractDefinitionError, UnknownRouteError
from .schema import Schema, as_schema


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


def normalize_method(method: str) -> str:
    """Upper-case an HTTP verb and check it is one the registry knows."""
    normalized = str(method).upper()
    if normalized not in HTTP_METHODS:
        raise ContractDefinitionError(
            f"Unsupported HTTP method '{method}'. Expected one of {', '.join(HTTP_METHODS)}"
        )
    return normalized


@dataclass(frozen=True)
class RouteDefinition:
    """Schemas declared for one (path, method) pair."""
    params: Optional[Schema] = None
    query: Optional[Schema] = None
    body: Optional[Schema] = None
    response: Optional[Schema] = None

    def __post_init__(self):
        # Accept plain types/models and wrap them; frozen needs object.__setattr__
        for part in fields(self):
            object.__setattr__(self, part.name, as_schema(getattr(self, part.name)))

    @classmethod
    def from_value(cls, value: Any) -> "RouteDefinition":
        if isinstance(value, RouteDefinition):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {part.name for part in fields(cls)}
            if unknown:
                raise ContractDefinitionError(
                    f"Unknown route definition keys: {', '.join(sorted(unknown))}"
                )
            return cls(**value)
        raise ContractDefinitionError(
            f"Route definition must be a RouteDefinition or mapping, got {type(value).__name__}"
        )


class ContractRegistry:
    """
    Immutable mapping of route path -> HTTP method -> RouteDefinition.

    Lookups match the path exactly; the method is case-insensitive.
    Unknown keys are not an error, lookup() simply returns None.
    """

    def __init__(self, routes: Mapping[str, Mapping[str, Any]]):
        table: Dict[str, Mapping[str, RouteDefinition]] = {}
        for path, methods in routes.items():
            if not isinstance(path, str):
                raise ContractDefinitionError(f"Route path must be a string, got {path!r}")
            if not isinstance(methods, Mapping):
                raise ContractDefinitionError(f'Methods for "{path}" must be a mapping')

            definitions: Dict[str, RouteDefinition] = {}
            for method, definition in methods.items():
                verb = normalize_method(method)
                if verb in definitions:
                    raise ContractDefinitionError(f'Duplicate route definition for {verb} "{path}"')
                definitions[verb] = RouteDefinition.from_value(definition)
            table[path] = MappingProxyType(definitions)

        self._routes = MappingProxyType(table)

    def lookup(self, path: str, method: str) -> Optional[RouteDefinition]:
        """
        Get the route definition for a (path, method) pair.

        Returns:
            RouteDefinition if registered, None otherwise
        """
        methods = self._routes.get(path)
        if methods is None:
            return None
        return methods.get(str(method).upper())

    def require(self, path: str, method: str) -> RouteDefinition:
        """Like lookup(), but raises UnknownRouteError when absent."""
        definition = self.lookup(path, method)
        if definition is None:
            raise UnknownRouteError(path, method)
        return definition

    def paths(self) -> List[str]:
        """Registered route paths, in declaration order."""
        return list(self._routes.keys())

    def methods(self, path: str) -> List[str]:
        """Registered methods for a path (upper-case)."""
        return list(self._routes.get(path, {}).keys())

    def __iter__(self) -> Iterator[Tuple[str, str, RouteDefinition]]:
        for path, methods in self._routes.items():
            for method, definition in methods.items():
                yield path, method, definition

    def __len__(self) -> int:
        return sum(len(methods) for methods in self._routes.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.lookup(*key) is not None

    def __repr__(self) -> str:
        keys = ", ".join(f"{method} {path}" for path, method, _ in self)
        return f"ContractRegistry({keys})"
