"""Shared fixtures: in-memory stores and a scriptable fake network."""

import httpx
import pytest

from shiksha.offline.cache import ResponseCache
from shiksha.offline.store import LocalStore


class FakeNetwork:
    """
    Routes keyed by (METHOD, path). Each route builds a fresh response.
    Flip `online` to make every request raise ConnectError.
    """

    def __init__(self):
        self.online = True
        self.routes = {}
        self.calls = []

    def route(self, method, path, status=200, json=None, content=None, headers=None):
        def build(request):
            if json is not None:
                return httpx.Response(status, json=json, headers=headers)
            return httpx.Response(status, content=content or b"", headers=headers)
        self.routes[(method.upper(), path)] = build

    def route_fn(self, method, path, fn):
        self.routes[(method.upper(), path)] = fn

    def handler(self, request: httpx.Request):
        self.calls.append((request.method, request.url.path))
        if not self.online:
            raise httpx.ConnectError("network is down", request=request)
        build = self.routes.get((request.method, request.url.path))
        if build is None:
            return httpx.Response(404, text="no route")
        return build(request)

    def count(self, method, path) -> int:
        return self.calls.count((method.upper(), path))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
async def store():
    s = await LocalStore("sqlite://").open()
    yield s
    await s.close()


@pytest.fixture
async def cache():
    c = await ResponseCache("sqlite://").open()
    yield c
    await c.close()
