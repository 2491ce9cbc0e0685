"""
Server validation pipeline - contract enforcement for Flask handlers.

Usage:
    router = ContractRouter(registry, app)

    @router.post("/plant-potato/<id>")
    def plant_potato(req):
        # req.params / req.body / req.query are decoded by their schemas
        return {"status": 200}

Per request the wrapper:
1. Decodes the request body against the route's body schema
2. Decodes path captures (request.view_args) against the params schema
3. Decodes the query string against the query schema
4. Calls the handler with a ValidatedRequest (sync or async handlers)
5. Sends the handler's return value as the response body

The first failing stage ends the request with:
    400 {"status": "error", "error": "Invalid <part>: ..."}
and the handler is never called. Handler exceptions are not caught here;
they reach the app's error handlers unchanged. Response schemas are not
enforced on the server.

The body is parsed for every route, with or without a body schema, so a
malformed JSON body is rejected by the app's error handlers (400
BAD_REQUEST) before the handler runs.

JSON bodies are decoded strictly (no "400" -> 400 coercion). Form bodies,
path captures and query strings arrive as text and are decoded leniently.

ContractRouter keeps HEAD and OPTIONS contracts on their own handlers even
when the same path has a GET handler.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Union

from flask import Blueprint, Flask, Request, Response, current_app, g, jsonify, make_response, request
from pydantic import BaseModel

from .registry import ContractRegistry, RouteDefinition, normalize_method
from .schema import Invalid
from .validate import ValidationContext, decode_and_report


logger = logging.getLogger('restcontract.contracts')


@dataclass(frozen=True)
class ValidatedRequest:
    """
    Request parts after contract decoding.

    Parts without a schema hold the raw collected values.
    """
    path: str
    method: str
    body: Any
    params: Any
    query: Any
    route: RouteDefinition
    request: Request


def _collect_body() -> Any:
    """Decoded request body: JSON, form fields, or {} when there is none."""
    if request.is_json:
        if not request.get_data(cache=True):
            return {}
        # Malformed JSON raises BadRequest, handled by the app's error handlers
        return request.get_json()
    if request.form:
        return request.form.to_dict()
    return {}


def _collect_params() -> Dict[str, Any]:
    return dict(request.view_args or {})


def _collect_query() -> Dict[str, Any]:
    """Query string as a dict; repeated keys collapse to lists."""
    return {
        key: values[0] if len(values) == 1 else values
        for key, values in request.args.lists()
    }


# Fixed check order: the first failing stage is the one reported
_STAGES: Tuple[Tuple[ValidationContext, Callable[[], Any]], ...] = (
    (ValidationContext.BODY, _collect_body),
    (ValidationContext.PARAMS, _collect_params),
    (ValidationContext.QUERY, _collect_query),
)


def contract_route(registry: ContractRegistry, path: str, method: str):
    """
    Decorator that enforces a route's request contract on a handler.

    Args:
        registry: Contract registry holding the route
        path: Route path exactly as registered (Flask rule syntax)
        method: HTTP method, any case

    Raises:
        UnknownRouteError: If the registry has no definition for (path, method)
    """
    verb = normalize_method(method)
    definition = registry.require(path, verb)

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> Union[Response, Tuple[Response, int]]:
            decoded: Dict[str, Any] = {}

            for context, collect in _STAGES:
                raw = collect()
                schema = getattr(definition, context.value)
                if schema is None:
                    decoded[context.value] = raw
                    continue

                strict = request.is_json if context is ValidationContext.BODY else None
                result = decode_and_report(schema, raw, context, strict=strict)
                if isinstance(result, Invalid):
                    _log_violation(path, verb, context, result)
                    return _make_error_response(result.message)
                decoded[context.value] = result.value

            validated = ValidatedRequest(
                path=path,
                method=verb,
                route=definition,
                request=request._get_current_object(),
                **decoded,
            )
            g.contract_request = validated

            result = current_app.ensure_sync(fn)(validated)
            return _make_response(result)

        wrapper.contract_route = (path, verb)
        return wrapper
    return decorator


def _make_response(result: Any) -> Response:
    """Turn a handler's return value into the response body."""
    if isinstance(result, Response):
        # Handler built the response itself
        return result
    if isinstance(result, BaseModel):
        return jsonify(result.model_dump(mode="json"))
    if result is None:
        return current_app.response_class(status=200)
    if isinstance(result, (dict, list)):
        return jsonify(result)
    return make_response(result)


def _make_error_response(message: str) -> Tuple[Response, int]:
    return jsonify({"status": "error", "error": message}), 400


def _log_violation(path: str, method: str, context: ValidationContext, result: Invalid) -> None:
    request_id = getattr(g, 'request_id', None)
    logger.warning(
        f"Contract violation: route={method} {path} stage={context.value} "
        f"request_id={request_id} errors={len(result.errors)}",
        extra={
            "event": "contract_violation",
            "route": f"{method} {path}",
            "stage": context.value,
            "request_id": request_id,
            "report": result.message,
        }
    )


class ContractRouter:
    """
    Binds handlers to a Flask app or blueprint through the contract registry.

    Every handler is registered for exactly one (path, method) pair, which
    must exist in the registry.
    """

    def __init__(self, registry: ContractRegistry, app: Union[Flask, Blueprint]):
        self.registry = registry
        self.app = app
        self._views: Dict[str, Dict[str, Callable]] = {}

    def add(self, path: str, method: str, handler: Callable, **options: Any) -> Callable:
        """Register a handler and return it unchanged."""
        verb = normalize_method(method)
        view = contract_route(self.registry, path, verb)(handler)
        self._views.setdefault(path, {})[verb] = view
        if verb == "GET":
            view = self._get_or_head(path, view)

        # Flask answers OPTIONS on every rule unless the path declares its own
        options.setdefault(
            "provide_automatic_options", "OPTIONS" not in self.registry.methods(path)
        )
        # Blueprints reject dots in endpoint names
        endpoint = options.pop("endpoint", None) or f"{verb} {path}".replace(".", "_")
        self.app.add_url_rule(path, endpoint=endpoint, view_func=view, methods=[verb], **options)
        return handler

    def _get_or_head(self, path: str, view: Callable) -> Callable:
        """GET view that hands HEAD requests to the path's HEAD handler, if one is bound."""

        @functools.wraps(view)
        def dispatch(*args, **kwargs):
            # Werkzeug matches HEAD against GET rules
            head = self._views[path].get("HEAD")
            if request.method == "HEAD" and head is not None:
                return head(*args, **kwargs)
            return view(*args, **kwargs)

        return dispatch

    def route(self, path: str, method: str, **options: Any) -> Callable[[Callable], Callable]:
        def decorator(fn: Callable) -> Callable:
            return self.add(path, method, fn, **options)
        return decorator

    def get(self, path: str, **options: Any):
        return self.route(path, "GET", **options)

    def post(self, path: str, **options: Any):
        return self.route(path, "POST", **options)

    def put(self, path: str, **options: Any):
        return self.route(path, "PUT", **options)

    def patch(self, path: str, **options: Any):
        return self.route(path, "PATCH", **options)

    def delete(self, path: str, **options: Any):
        return self.route(path, "DELETE", **options)

    def head(self, path: str, **options: Any):
        return self.route(path, "HEAD", **options)

    def options(self, path: str, **options: Any):
        return self.route(path, "OPTIONS", **options)

    def use(self, fn: Callable) -> Callable:
        """Run a function before every request handled by the app/blueprint."""
        self.app.before_request(fn)
        return fn
