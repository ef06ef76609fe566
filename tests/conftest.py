"""
Shared fixtures: an in-process fake of the Grovi backend mounted on requests sessions
"""

import json
from typing import Any, Dict, List, Tuple
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from requests.adapters import BaseAdapter

from grovi.models import CredentialStore
from grovi.state import AppState

USER = {
    "id": 7,
    "name": "Somchai Farmer",
    "username": "somchai",
    "email": "somchai@example.com",
    "is_active": True,
    "created_at": "2024-01-15T08:30:00Z",
}

TOKEN = "token-abc"


def make_field(field_id="f1", name="แปลง A1", **overrides) -> Dict[str, Any]:
    field = {
        "id": field_id,
        "user_id": USER["id"],
        "name": name,
        "crop_type": "ข้าวหอมมะลิ",
        "variety": "ข้าวหอมมะลิ",
        "planting_season": None,
        "planting_date": "2024-06-01T00:00:00",
        "geometry": {
            "type": "Polygon",
            "coordinates": [[[100.0, 14.0], [100.01, 14.0], [100.01, 14.01], [100.0, 14.0]]],
        },
        "area_m2": 2040.0,
        "centroid_lat": 14.003,
        "centroid_lng": 100.006,
        "address": None,
        "created_at": "2024-06-02T10:00:00Z",
    }
    field.update(overrides)
    return field


class FakeBackend(BaseAdapter):
    """
    Routes (method, path) to canned responses.

    A route holds a queue of responses; the last one repeats. A response is
    (status, json_payload), (status, bytes) or a handler(request) returning one.
    """

    def __init__(self):
        super().__init__()
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[Dict[str, Any]] = []

    def add(self, method: str, path: str, *responses):
        self.routes[(method.upper(), path)] = list(responses)

    def raise_on(self, method: str, path: str, exc: Exception):
        self.routes[(method.upper(), path)] = [exc]

    def called(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method.upper() and c["path"] == path]

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        parsed = urlparse(request.url)
        body = None
        if request.body:
            raw = request.body.decode("utf-8") if isinstance(request.body, bytes) else request.body
            try:
                body = json.loads(raw)
            except ValueError:
                body = raw
        self.calls.append({
            "method": request.method,
            "path": parsed.path,
            "host": parsed.netloc,
            "params": {k: v[0] for k, v in parse_qs(parsed.query).items()},
            "json": body,
            "headers": dict(request.headers),
            "timeout": timeout,
        })

        queue = self.routes.get((request.method, parsed.path))
        if not queue:
            entry = (404, {"detail": "Not Found"})
        else:
            entry = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            entry = entry(request)

        status, payload = entry
        response = requests.Response()
        response.status_code = status
        response.request = request
        response.url = request.url
        response.encoding = "utf-8"
        if isinstance(payload, bytes):
            response._content = payload
            response.headers["Content-Type"] = "application/octet-stream"
        elif payload is None:
            response._content = b""
        else:
            response._content = json.dumps(payload).encode("utf-8")
            response.headers["Content-Type"] = "application/json"
        return response

    def close(self):
        pass


def _mounted_session(adapter: BaseAdapter) -> requests.Session:
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def geocoder():
    return FakeBackend()


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def credential_store():
    return CredentialStore.in_memory()


@pytest.fixture
def app(backend, geocoder, navigations, credential_store):
    return AppState(
        credential_store=credential_store,
        navigator=navigations.append,
        http_session=_mounted_session(backend),
        geocoder_session=_mounted_session(geocoder),
    )


@pytest.fixture
def signed_in(app, backend):
    """App with an authenticated session and two cached fields"""
    backend.add("POST", "/auth/login", (200, {"access_token": TOKEN, "token_type": "bearer", "user": USER}))
    backend.add("GET", "/fields/", (200, [make_field("f1"), make_field("f2", name="North plot")]))
    app.session.login("somchai", "secret")
    return app
