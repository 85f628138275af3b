import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import pytest
import requests

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = ""
    url: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.text)


def json_response(payload: Any, status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code=status_code, text=json.dumps(payload))


Route = Union[FakeResponse, Exception, Callable[[], FakeResponse]]


@dataclass
class FakeHttp:
    """URL-keyed stand-in for the shared http client's `get`."""

    routes: Dict[str, Route] = field(default_factory=dict)
    calls: List[str] = field(default_factory=list)
    headers: List[dict] = field(default_factory=list)

    def add(self, url: str, route: Route) -> None:
        self.routes[url] = route

    def __call__(self, url, *, timeout=0, headers=None, **kwargs):
        self.calls.append(url)
        self.headers.append(dict(headers or {}))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404, text="not found", url=url)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route()
        return route


@pytest.fixture
def fake_http(monkeypatch):
    import hianime.core.resolver.transport as transport

    fake = FakeHttp()
    monkeypatch.setattr(transport, "http_get", fake)
    return fake


@pytest.fixture
def connection_error():
    return requests.exceptions.ConnectionError("connection refused")


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from hianime.main import app

    with TestClient(app) as c:
        yield c
