"""
Contract-validating HTTP client.

Wraps a requests.Session so every call's response is checked against the
route's declared response schema before it reaches the caller.

Usage:
    client = ContractClient(registry, base_url="http://localhost:5000")

    response = client.get("/potatoes")
    response.json()            # raw payload
    response.contract_data     # payload decoded by the response schema

Validation per response:
- route + response schema found: decode the JSON body, raise
  ResponseValidationError on mismatch
- route not in the registry: diagnostic only, response delivered
- route without response schema: delivered as-is
- url/method unresolvable: diagnostic only, response delivered

Non-2xx statuses raise requests.HTTPError before any validation, unless the
client was built with return_errors=True, in which case the error response
is returned to the caller unvalidated.
"""

import logging
from typing import Any, Callable, List, Optional, Tuple
from urllib.parse import unquote, urlsplit

import requests

from .contracts.errors import ResponseValidationError
from .contracts.registry import ContractRegistry
from .contracts.schema import Invalid
from .contracts.validate import ValidationContext, decode_and_report
from .diagnostics import Diagnostics


logger = logging.getLogger(__name__)


class ContractClient:
    """
    HTTP client bound to a contract registry.

    Args:
        registry: Contracts the responses are validated against
        base_url: Prefix for relative urls; its path is stripped again when
            resolving a response back to a registry path
        session: requests.Session to send through (a new one by default)
        return_errors: Return non-2xx responses instead of raising HTTPError
        diagnostics: Sink for non-fatal warnings (default from Config)
        timeout: Default timeout (seconds) for every call
    """

    def __init__(
        self,
        registry: ContractRegistry,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        return_errors: bool = False,
        diagnostics: Optional[Diagnostics] = None,
        timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.base_url = base_url.rstrip("/") if base_url else None
        self.session = session or requests.Session()
        self.return_errors = return_errors
        self.diagnostics = diagnostics or Diagnostics.from_config(logger=logger)
        self.timeout = timeout
        self._base_path = urlsplit(self.base_url).path.rstrip("/") if self.base_url else ""

    # =========================================================================
    # Verbs
    # =========================================================================

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send a request and validate its response.

        Raises:
            ResponseValidationError: Response body breaks the route's contract
            requests.HTTPError: Non-2xx status (unless return_errors)
        """
        kwargs["hooks"] = self._hooks(kwargs.get("hooks"))
        kwargs.setdefault("timeout", self.timeout)
        try:
            return self.session.request(method, self._url(url), **kwargs)
        except requests.HTTPError as exc:
            if self.return_errors and exc.response is not None:
                return exc.response
            raise

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def head(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("HEAD", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", url, **kwargs)

    def post(self, url: str, json: Any = None, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, json=json, **kwargs)

    def put(self, url: str, json: Any = None, **kwargs: Any) -> requests.Response:
        return self.request("PUT", url, json=json, **kwargs)

    def patch(self, url: str, json: Any = None, **kwargs: Any) -> requests.Response:
        return self.request("PATCH", url, json=json, **kwargs)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ContractClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================================================================
    # Response validation
    # =========================================================================

    def _url(self, url: str) -> str:
        if self.base_url and not urlsplit(url).scheme:
            return f"{self.base_url}/{url.lstrip('/')}"
        return url

    def _hooks(self, hooks: Optional[dict]) -> dict:
        # Per-request hooks replace the session's, so carry those along
        merged = dict(hooks or {})
        callbacks: List[Callable] = list(self.session.hooks.get("response", []))
        extra = merged.get("response") or []
        callbacks.extend([extra] if callable(extra) else extra)
        callbacks.append(self._verify_response)
        merged["response"] = callbacks
        return merged

    def resolve(self, response: requests.Response) -> Tuple[Optional[str], Optional[str]]:
        """Registry (path, METHOD) a response was produced for, as the transport reports it."""
        prepared = getattr(response, "request", None)
        if prepared is None or not prepared.url or not prepared.method:
            return None, None

        path = unquote(urlsplit(prepared.url).path)
        base = self._base_path
        if base and (path == base or path.startswith(base + "/")):
            path = path[len(base):] or "/"
        return path, prepared.method.upper()

    def _verify_response(self, response: requests.Response, *args: Any, **kwargs: Any) -> requests.Response:
        if response.is_redirect:
            return response

        if not response.ok:
            # Load the body now, HTTPError unwinds the send before requests does
            response.content
        response.raise_for_status()

        path, method = self.resolve(response)
        if not path or not method:
            self.diagnostics.warn(
                f"Unable to verify response for {response.url}",
                event="malformed_response_metadata",
                url=response.url,
            )
            return response

        route = self.registry.lookup(path, method)
        if route is None:
            self.diagnostics.warn(
                f'Unable to verify response for "{path}": Missing route definition!',
                event="route_not_found",
                url=path,
                method=method,
            )
            return response
        if route.response is None:
            return response

        result = decode_and_report(
            route.response,
            _json_body(response),
            ValidationContext.RESPONSE,
            label=f'Data validation failed for "{path}"',
        )
        if isinstance(result, Invalid):
            raise ResponseValidationError(
                result.message,
                url=path,
                method=method,
                response=response,
                context=ValidationContext.RESPONSE,
                errors=result.errors,
            )

        response.contract_data = result.value
        return response


def _json_body(response: requests.Response) -> Any:
    """Decoded JSON body, or None when the body is empty or not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
