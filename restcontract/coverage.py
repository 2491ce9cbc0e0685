"""
Route coverage - detect drift between a Flask app and its contract registry.

Two kinds of drift:
- unvalidated: rules the app serves without going through a contract
  (e.g. a plain @app.route added next to the ContractRouter)
- unimplemented: registry entries no handler was ever bound to

Exempt rule paths (health checks, admin hooks) can be passed explicitly.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Set, Tuple

from flask import Flask

from .contracts.registry import ContractRegistry


RouteKey = Tuple[str, str]


@dataclass
class RouteDrift:
    unvalidated: List[RouteKey] = field(default_factory=list)
    unimplemented: List[RouteKey] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unvalidated and not self.unimplemented

    def format(self) -> str:
        """Human-readable drift report."""
        if self.ok:
            return "OK: every route is contract-validated and every contract is implemented."

        lines = ["CONTRACT DRIFT DETECTED!", "=" * 50]
        if self.unvalidated:
            lines.append("Routes served without a contract:")
            lines.extend(f"  - {method} {path}" for path, method in self.unvalidated)
        if self.unimplemented:
            lines.append("Contracts with no handler:")
            lines.extend(f"  - {method} {path}" for path, method in self.unimplemented)
        return "\n".join(lines)


def _declared_methods(rule) -> Set[str]:
    """Methods a rule was declared with, minus the ones Flask adds on its own."""
    methods = set(rule.methods or ())
    if "GET" in methods:
        methods.discard("HEAD")
    if getattr(rule, "provide_automatic_options", False):
        methods.discard("OPTIONS")
    return methods


def find_route_drift(app: Flask, registry: ContractRegistry, exempt: Iterable[str] = ()) -> RouteDrift:
    """
    Compare the app's URL map with the registry.

    Args:
        app: Flask application with handlers registered
        registry: Contract registry the app is supposed to implement
        exempt: Rule paths allowed to bypass contracts

    Returns:
        RouteDrift, sorted by path then method
    """
    exempt_paths = set(exempt)
    served: Set[RouteKey] = set()
    unvalidated: List[RouteKey] = []

    for rule in app.url_map.iter_rules():
        if rule.endpoint == "static" or rule.endpoint.endswith(".static"):
            continue

        view = app.view_functions.get(rule.endpoint)
        contract = getattr(view, "contract_route", None)
        if contract is not None:
            served.add(contract)
            continue

        if rule.rule in exempt_paths:
            continue
        unvalidated.extend((rule.rule, method) for method in _declared_methods(rule))

    unimplemented = [
        (path, method) for path, method, _ in registry if (path, method) not in served
    ]
    return RouteDrift(unvalidated=sorted(unvalidated), unimplemented=sorted(unimplemented))
