"""Shared fixtures for end-to-end wizard tests against a scripted portal."""

from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio

from intake.services.api import PortalApiClient


class FakePortal:
    """
    Stand-in for the aiohttp session behind PortalApiClient.

    Routes are keyed by ``(method, path)``; unrouted requests get a 404.
    Every request is recorded so tests can inspect bodies and parameters.
    """

    def __init__(self, base_url: str, response_factory):
        self.base_url = base_url.rstrip("/")
        self._response_factory = response_factory
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.calls: List[Tuple[str, str, Optional[dict], Any]] = []
        self.closed = False

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = (status, body)

    def request(self, method: str, url: str, params=None, json=None):
        path = url[len(self.base_url) :]
        self.calls.append((method, path, params, json))
        status, body = self.routes.get(
            (method, path), (404, {"message": f"No route for {method} {path}"})
        )
        return self._response_factory(status=status, json_data=body)

    def calls_to(self, method: str, path: str) -> List[Tuple[str, str, Optional[dict], Any]]:
        return [c for c in self.calls if c[0] == method and c[1] == path]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def portal(settings, make_response):
    """Scripted portal with no routes."""
    return FakePortal(settings.api_base_url, make_response)


@pytest_asyncio.fixture
async def make_client(portal, settings):
    """Build PortalApiClients wired to the fake portal."""
    clients = []

    def factory(token: Optional[str] = None) -> PortalApiClient:
        client = PortalApiClient(token=token, settings=settings)
        client._http_session = portal
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()
