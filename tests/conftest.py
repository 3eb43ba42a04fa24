from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests

from smart_structure.api import ApiClient
from smart_structure.config import ClientConfig
from smart_structure.notifications import NotificationChannel
from smart_structure.storage import MemoryBackend, SessionStore
from smart_structure.workflow import Workflow

BASE_URL = "http://test.local/api/v1"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self._text = text

    def json(self):
        if self._text is not None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeHttp:
    """Stands in for ``requests.Session``; answers from a route table."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, payload=None, status_code=200, text=None, exc=None):
        self.routes[(method, path)] = (payload, status_code, text, exc)

    def request(self, method, url, headers=None, json=None, timeout=None):
        path = url[len(BASE_URL) + 1:]
        self.calls.append(
            SimpleNamespace(method=method, path=path, headers=headers or {}, json=json, timeout=timeout)
        )
        try:
            payload, status_code, text, exc = self.routes[(method, path)]
        except KeyError:
            raise requests.ConnectionError(f"no route for {method} {path}")
        if exc is not None:
            raise exc
        return FakeResponse(payload, status_code, text)

    def paths(self):
        return [(c.method, c.path) for c in self.calls]


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


USER = {"id": "u1", "name": "Asha", "role": "owner", "email": "asha@example.com"}

SURVEY = {
    "id": "s1-abcdef-123",
    "latitude": 12.97,
    "longitude": 77.59,
    "plotArea": 240.0,
    "soilType": "clay",
    "seismicZone": "III",
    "floodRisk": "low",
    "createdAt": "2024-03-05T10:00:00Z",
}


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE_URL, timeout=5)


@pytest.fixture
def api(config, http):
    client = ApiClient(config)
    client.session = http
    return client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return SessionStore(MemoryBackend())


@pytest.fixture
def notifier(clock):
    return NotificationChannel(lifetime=3.0, clock=clock)


@pytest.fixture
def make_workflow(api, store, notifier, config):
    def factory(**overrides):
        return Workflow(
            api=overrides.get("api", api),
            store=overrides.get("store", store),
            notifier=overrides.get("notifier", notifier),
            config=overrides.get("config", config),
        )

    return factory


@pytest.fixture
def workflow(make_workflow):
    return make_workflow()


@pytest.fixture
def logged_in(workflow, http):
    http.add("POST", "auth/login", {"success": True, "data": {"token": "tok", "refreshToken": "ref", "user": USER}})
    http.add("GET", "land-surveys", {"status": "success", "data": [SURVEY]})
    assert workflow.login("asha@example.com", "pw").ok
    http.calls.clear()
    workflow.notifier.clear()
    return workflow
