"""Shared fixtures for dblebox tests."""

from __future__ import annotations

import json

import httpx
import pytest

from dblebox import config
from dblebox.client import SessionClient
from dblebox.config import Store


class FakeApi:
    """In-memory dblebox server for httpx.MockTransport.

    Routes map ``(method, path)`` to ``(status, body)`` or to a callable
    taking the request and returning an ``httpx.Response``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body=None, status: int = 200, headers=None) -> None:
        self.routes[(method, path)] = (status, body if body is not None else {}, headers or {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            return route(request)
        status, body, headers = route
        return httpx.Response(status, json=body, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]


@pytest.fixture()
def dblebox_home(tmp_path, monkeypatch):
    """Point DBLEBOX_HOME to a temp directory and create the directory structure."""
    monkeypatch.setattr(config, "DBLEBOX_HOME", tmp_path)
    config.ensure_home()
    return tmp_path


@pytest.fixture()
def store(dblebox_home):
    return Store.load()


@pytest.fixture()
def fake_api():
    return FakeApi()


@pytest.fixture()
def client(store, fake_api):
    with SessionClient(store, base_url="https://api.test", transport=fake_api.transport) as c:
        yield c


@pytest.fixture()
def cli_api(dblebox_home, fake_api, monkeypatch):
    """Make every SessionClient the CLI builds talk to ``fake_api``."""

    def _client(store):
        return SessionClient(store, base_url="https://api.test", transport=fake_api.transport)

    monkeypatch.setattr("dblebox.cli.SessionClient", _client)
    return fake_api
