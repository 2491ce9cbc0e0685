"""
Tests for ContractClient.

End-to-end tests run a real Werkzeug server on an ephemeral localhost port.
The "untrusted" server is a plain Flask app, so it can break the contract.
"""

import logging

import pytest
import requests
from flask import Flask, jsonify
from pydantic import BaseModel

from restcontract import ContractClient, ContractRegistry, Diagnostics, ResponseValidationError
from restcontract.contracts.validate import ValidationContext


class Sized(BaseModel):
    size: float


class Counted(BaseModel):
    count: int


@pytest.fixture
def untrusted_app():
    app = Flask(__name__)

    @app.get("/potatoes")
    def potatoes():
        return jsonify({"status": 200, "potatoes": []})

    @app.post("/plant-potato")
    def plant():
        return jsonify({"status": 123})

    @app.get("/carrots")
    def carrots():
        return jsonify({"carrots": 3})

    @app.get("/teapot")
    def teapot():
        return jsonify({"status": "error", "error": "short and stout"}), 418

    @app.get("/moved")
    def moved():
        return "", 302, {"Location": "/potatoes"}

    @app.get("/sizes")
    def sizes():
        return jsonify({"size": "400"})

    @app.get("/counts")
    def counts():
        return app.response_class('{"count": 400.0}', mimetype="application/json")

    @app.get("/no-response-schema")
    def no_response_schema():
        return jsonify({"anything": True})

    return app


@pytest.fixture
def base_url(live_server, untrusted_app):
    return live_server(untrusted_app)


@pytest.fixture
def diagnostics():
    return Diagnostics(logger=logging.getLogger("restcontract.client"), enabled=True)


@pytest.fixture
def contract_client(registry, base_url, diagnostics):
    with ContractClient(registry, base_url=base_url, diagnostics=diagnostics, timeout=5) as client:
        yield client


class TestResponseValidation:

    def test_valid_response_is_returned_unchanged(self, contract_client):
        response = contract_client.get("/potatoes")

        assert response.status_code == 200
        assert response.json() == {"status": 200, "potatoes": []}
        assert response.contract_data.status == 200
        assert response.contract_data.potatoes == []

    def test_bad_response_raises_exact_message(self, contract_client):
        with pytest.raises(ResponseValidationError) as exc_info:
            contract_client.post("/plant-potato", json={"size": 500})

        error = exc_info.value
        assert str(error) == (
            'Data validation failed for "/plant-potato": '
            "Invalid value 123 supplied to : { status: 200 }/status: 200"
        )
        assert error.url == "/plant-potato"
        assert error.method == "POST"
        assert error.context is ValidationContext.RESPONSE
        assert error.response.json() == {"status": 123}
        assert error.to_dict()["errors"] == [{"path": "status", "expected": "200"}]

    def test_redirect_is_followed_then_validated(self, contract_client):
        response = contract_client.get("/moved")

        assert response.json() == {"status": 200, "potatoes": []}
        assert response.history[0].status_code == 302

    def test_numeric_string_is_not_a_number(self, base_url):
        registry = ContractRegistry({"/sizes": {"GET": {"response": Sized}}})
        client = ContractClient(registry, base_url=base_url)

        with pytest.raises(ResponseValidationError) as exc_info:
            client.get("/sizes")

        assert str(exc_info.value) == (
            'Data validation failed for "/sizes": '
            'Invalid value "400" supplied to : { size: number }/size: number'
        )

    def test_integral_float_satisfies_integer_field(self, base_url):
        registry = ContractRegistry({"/counts": {"GET": {"response": Counted}}})
        client = ContractClient(registry, base_url=base_url)

        response = client.get("/counts")

        assert response.contract_data.count == 400


class TestUnverifiableResponses:

    def test_unknown_route_is_delivered_with_diagnostic(self, contract_client, caplog):
        with caplog.at_level(logging.WARNING, logger="restcontract.client"):
            response = contract_client.get("/carrots")

        assert response.json() == {"carrots": 3}
        [record] = [r for r in caplog.records if r.name == "restcontract.client"]
        assert record.getMessage() == 'Unable to verify response for "/carrots": Missing route definition!'
        assert record.event == "route_not_found"

    def test_unknown_route_diagnostic_can_be_suppressed(self, registry, base_url, caplog):
        client = ContractClient(registry, base_url=base_url, diagnostics=Diagnostics(enabled=False))

        with caplog.at_level(logging.DEBUG):
            response = client.get("/carrots")

        assert response.status_code == 200
        assert not [r for r in caplog.records if r.name == "restcontract.client"]

    def test_route_without_response_schema_has_no_diagnostic(self, base_url, diagnostics, caplog):
        registry = ContractRegistry({"/no-response-schema": {"GET": {}}})
        client = ContractClient(registry, base_url=base_url, diagnostics=diagnostics)

        with caplog.at_level(logging.WARNING, logger="restcontract.client"):
            response = client.get("/no-response-schema")

        assert response.json() == {"anything": True}
        assert not [r for r in caplog.records if r.name == "restcontract.client"]
        assert not hasattr(response, "contract_data")

    def test_missing_request_metadata_is_non_fatal(self, registry, diagnostics, caplog):
        client = ContractClient(registry, diagnostics=diagnostics)
        response = requests.Response()
        response.status_code = 200

        with caplog.at_level(logging.WARNING, logger="restcontract.client"):
            result = client._verify_response(response)

        assert result is response
        [record] = [r for r in caplog.records if r.name == "restcontract.client"]
        assert record.event == "malformed_response_metadata"


class TestErrorStatuses:

    def test_error_status_raises_by_default(self, contract_client):
        with pytest.raises(requests.HTTPError) as exc_info:
            contract_client.get("/teapot")

        assert exc_info.value.response.status_code == 418

    def test_return_errors_mode_returns_error_response(self, registry, base_url):
        client = ContractClient(registry, base_url=base_url, return_errors=True)

        response = client.get("/teapot")

        assert response.status_code == 418
        assert response.json() == {"status": "error", "error": "short and stout"}

    def test_return_errors_mode_still_validates_success(self, registry, base_url):
        client = ContractClient(registry, base_url=base_url, return_errors=True)

        with pytest.raises(ResponseValidationError):
            client.post("/plant-potato", json={"size": 500})


class TestResolve:

    def _response(self, url, method="GET"):
        response = requests.Response()
        response.status_code = 200
        response.request = requests.Request(method, url).prepare()
        return response

    def test_strips_base_url_path_prefix(self, registry):
        client = ContractClient(registry, base_url="http://farm.test/api/v1/")

        assert client.resolve(self._response("http://farm.test/api/v1/potatoes?x=1")) == ("/potatoes", "GET")

    def test_base_path_only_strips_whole_segments(self, registry):
        client = ContractClient(registry, base_url="http://farm.test/api")

        assert client.resolve(self._response("http://farm.test/apiary")) == ("/apiary", "GET")
        assert client.resolve(self._response("http://farm.test/api")) == ("/", "GET")
        assert client.resolve(self._response("http://farm.test/api/potatoes")) == ("/potatoes", "GET")

    def test_method_is_upper_cased(self, registry):
        client = ContractClient(registry)

        assert client.resolve(self._response("http://farm.test/potatoes", "post")) == ("/potatoes", "POST")

    def test_percent_encoding_is_undone(self, registry):
        client = ContractClient(registry)

        path, _ = client.resolve(self._response("http://farm.test/bags/big%20sack"))
        assert path == "/bags/big sack"

    def test_absolute_urls_bypass_base_url(self, registry):
        client = ContractClient(registry, base_url="http://farm.test")

        assert client._url("http://other.test/potatoes") == "http://other.test/potatoes"
        assert client._url("potatoes") == "http://farm.test/potatoes"


def test_session_hooks_still_run(registry, base_url):
    session = requests.Session()
    seen = []
    session.hooks["response"].append(lambda r, *args, **kwargs: seen.append(r.status_code))
    client = ContractClient(registry, base_url=base_url, session=session)

    client.get("/potatoes")

    assert seen == [200]
    assert session.hooks["response"] and len(session.hooks["response"]) == 1


def test_round_trip_with_contract_router(live_server, potato_app, registry):
    """Both ends enforce the same registry."""
    client = ContractClient(registry, base_url=live_server(potato_app))

    response = client.get("/potatoes")

    assert response.json() == {"status": 200, "potatoes": [{"size": 400}]}
    assert response.contract_data.potatoes[0].size == 400


def test_round_trip_server_rejection_surfaces_as_http_error(live_server, potato_app, registry):
    client = ContractClient(registry, base_url=live_server(potato_app), return_errors=True)

    response = client.post("/plant-potato", json={"id": "a"})

    assert response.status_code == 400
    assert response.json() == {
        "status": "error",
        "error": "Invalid query: Invalid value undefined supplied to : { weight: string }/weight: string",
    }
