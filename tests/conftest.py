"""Shared fixtures: an in-process stand-in for the NAS web API."""

from typing import Any

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from dstation_cli.api.client import NasClient


class StubNas:
    """
    Serves canned envelopes for ``/webapi/*`` keyed by (api, method) and
    records the query string of every request it receives.
    """

    def __init__(self) -> None:
        self.url = ""
        self.requests: list[dict[str, str]] = []
        self._responses: dict[tuple[str, str], tuple[int, Any]] = {}

    def stub(self, api: str, method: str, body: Any = None, status: int = 200) -> None:
        self._responses[(api, method)] = (status, body)

    def queries(self, method: str) -> list[dict[str, str]]:
        return [q for q in self.requests if q.get("method") == method]

    def last_query(self, method: str) -> dict[str, str]:
        return self.queries(method)[-1]

    async def handle(self, request: web.Request) -> web.Response:
        query = dict(request.query)
        self.requests.append({"path": request.path, **query})

        key = (query.get("api", ""), query.get("method", ""))
        if key not in self._responses:
            return web.json_response({"success": False, "error": {"code": 102}})

        status, body = self._responses[key]
        if isinstance(body, str):
            return web.Response(status=status, text=body)
        return web.json_response(body, status=status)


@pytest_asyncio.fixture
async def nas():
    stub = StubNas()
    app = web.Application()
    app.router.add_get("/webapi/{tail:.*}", stub.handle)
    server = TestServer(app)
    # The stub's own access log echoes raw query strings; keep it out of caplog.
    await server.start_server(access_log=None)
    stub.url = f"http://{server.host}:{server.port}"
    yield stub
    await server.close()


@pytest_asyncio.fixture
async def client(nas):
    async with NasClient(nas.url) as nas_client:
        yield nas_client


@pytest_asyncio.fixture
async def unreachable_url():
    """Address of a server that has already been shut down."""
    server = TestServer(web.Application())
    await server.start_server()
    url = f"http://{server.host}:{server.port}"
    await server.close()
    return url
