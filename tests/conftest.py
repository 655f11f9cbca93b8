"""Shared fixtures: an in-memory HTTP transport and clients wired to it."""

import httpx
import pytest

from catalog_scraper.fetcher import FetchClient
from catalog_scraper.storage import HttpCache


class FakeServer:
    """Serves canned responses by URL and counts live requests.

    A route is either an exception instance to raise or a callable taking the
    request and returning an httpx.Response.
    """

    def __init__(self) -> None:
        self.routes: dict[str, object] = {}
        self.calls: list[str] = []

    def add(self, url: str, body: str = "", status: int = 200, **kwargs) -> None:
        self.routes[url] = lambda request: httpx.Response(status, text=body, **kwargs)

    def fail(self, url: str, error: Exception) -> None:
        self.routes[url] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        return route(request)

    def count(self, url: str) -> int:
        return self.calls.count(url)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def http_client(server):
    client = httpx.Client(transport=httpx.MockTransport(server.handler))
    yield client
    client.close()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_dir, http_client):
    """An enabled HttpCache backed by the fake server."""
    return HttpCache(cache_dir=cache_dir, client=http_client)


@pytest.fixture
def fetch_client(cache):
    """FetchClient with zero retry delay over the enabled cache."""
    return FetchClient(cache=cache, retry_delay=0)
