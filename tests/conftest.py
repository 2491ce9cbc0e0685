"""
Shared pytest fixtures.

Provides:
- The potato API contract (pydantic models + registry)
- A Flask app serving it through ContractRouter
- A live Werkzeug server for end-to-end client tests
"""

import threading
from typing import List, Literal

import pytest
from pydantic import BaseModel
from werkzeug.serving import make_server

from restcontract import ContractRegistry, ContractRouter, create_app
from restcontract.config import Config


class Potato(BaseModel):
    size: float


class PotatoList(BaseModel):
    status: Literal[200]
    potatoes: List[Potato]


class Ack(BaseModel):
    status: Literal[200]


class PlantParams(BaseModel):
    identifier: str


class PlantBody(BaseModel):
    id: str


class WeightQuery(BaseModel):
    weight: str


class BagParams(BaseModel):
    bag: Literal["sack", "crate"]


class TestConfig(Config):
    DIAGNOSTICS_ENABLED = True
    REQUEST_LOG_ENABLED = False
    REQUEST_LOG_SAMPLE_RATE = 0.0
    REQUEST_LOG_ENDPOINTS = []
    TESTING = True


def build_potato_registry() -> ContractRegistry:
    return ContractRegistry({
        "/plant-potato/<id>": {
            "POST": {"params": PlantParams, "response": Ack},
        },
        "/plant-potato": {
            "POST": {"query": WeightQuery, "body": PlantBody, "response": Ack},
        },
        "/potatoes": {
            "GET": {"response": PotatoList},
        },
        "/bags/<bag>": {
            "PUT": {"params": BagParams, "body": PlantBody},
        },
    })


@pytest.fixture
def registry():
    return build_potato_registry()


@pytest.fixture
def app():
    """Bare app with middleware, no routes."""
    return create_app(TestConfig)


@pytest.fixture
def router(registry, app):
    return ContractRouter(registry, app)


@pytest.fixture
def potato_app(registry, app, router):
    """App implementing every route of the potato contract."""

    @router.post("/plant-potato/<id>")
    def plant_with_id(req):
        return {"status": 200}

    @router.post("/plant-potato")
    def plant(req):
        return {"status": 200}

    @router.get("/potatoes")
    def list_potatoes(req):
        return {"status": 200, "potatoes": [{"size": 400}]}

    @router.put("/bags/<bag>")
    def fill_bag(req):
        return {"bag": req.params.bag, "id": req.body.id}

    return app


@pytest.fixture
def client(potato_app):
    return potato_app.test_client()


@pytest.fixture
def live_server():
    """Run a Flask app on an ephemeral localhost port; yields a starter."""
    servers = []

    def start(flask_app) -> str:
        server = make_server("127.0.0.1", 0, flask_app, threaded=True)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_port}"

    yield start

    for server in servers:
        server.shutdown()
