from types import SimpleNamespace

import pytest

from switchyard.config import AppConfig
from switchyard.models.request import Request, Runtime
from switchyard.models.response import Response
from switchyard.models.route import Route

ROUTES = [
    {"name": "test", "method": "get", "path": "/test"},
    {"name": "item", "method": "get", "path": "/test/{id}"},
    {"name": "multi", "method": "post", "path": "/test/{id}/item/{itemId}"},
    {"name": "socketTest", "method": "socket", "path": "/test"},
    {"name": "orders", "method": "aws:sqs", "path": "/orders"},
    {"name": "files", "method": ["get", "put"], "path": "/files/{key+}"},
]


class Recorder:
    """Middleware factory that records (name, stage) for every handler call."""

    def __init__(self):
        self.calls = []

    def middleware(self, name, stages=("start", "mount", "in", "out", "end")):
        def make(stage):
            def handler(value):
                self.calls.append((name, stage))
                return value

            return handler

        return {stage: make(stage) for stage in stages}

    def stages(self, stage):
        return [name for name, s in self.calls if s == stage]


class FakeSocket:
    def __init__(self, headers=None, address="10.0.0.1"):
        self.emitted = []
        self.handshake = SimpleNamespace(headers=headers or {}, address=address)

    async def emit(self, route, payload):
        self.emitted.append((route, payload))


@pytest.fixture
def app_config():
    return AppConfig(
        EAPI_LOGGING="none",
        EAPI_CORS_LIST="http://localhost,https://example.com",
        EAPI_ROUTES_PATH="does/not/exist.yml",
    )


@pytest.fixture
def routes():
    return [dict(r) for r in ROUTES]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def fake_socket():
    return FakeSocket()


@pytest.fixture
def make_request():
    def _make(path="/test", method="get", route=None, runtime=Runtime.HTTP, **fields):
        if route is None:
            route = Route(name="test", method=method, path=path)
        return Request(runtime=runtime, method=method, path=path, route=route, **fields)

    return _make


@pytest.fixture
def echo_dispatch():
    async def dispatch(request):
        return Response(body={"path": request.path}, request=request)

    return dispatch
