"""Shared fixtures: a fake Nightscout server and a fixed clock."""

import asyncio
import json
import socket
from datetime import datetime, timezone
from typing import Any, List, Optional

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from nightscout_bar.poller.config import PollerConfig
from nightscout_bar.poller.poller import NightscoutPoller
from nightscout_bar.poller.settings import MemorySettings

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_STRING = "2024-01-01T12:00:00.000Z"


def entry(sgv: Any = 150, direction: Optional[str] = "Flat", date_string: str = NOW_STRING) -> dict:
    data = {"sgv": sgv, "dateString": date_string}
    if direction is not None:
        data["direction"] = direction
    return data


def free_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class FakeNightscout:
    """Serves queued responses on /api/v1/entries.json and records requests."""

    def __init__(self):
        self.url = ""
        self.requests: List[dict] = []
        self.responses: List[tuple] = []
        self.default = (200, json.dumps([entry()]).encode(), None)
        self.received = asyncio.Event()

    def reply(
        self,
        entries: Optional[list] = None,
        status: int = 200,
        body: Optional[bytes] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        """Queue a response. A gate holds the response until it is set."""
        if entries is not None:
            body = json.dumps(entries).encode()
        self.responses.append((status, body or b"", gate))

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            {
                "path": request.path,
                "query": dict(request.query),
                "headers": request.headers.copy(),
            }
        )
        status, body, gate = self.responses.pop(0) if self.responses else self.default
        self.received.set()
        if gate is not None:
            await gate.wait()
        return web.Response(status=status, body=body, content_type="application/json")


@pytest_asyncio.fixture
async def nightscout():
    fake = FakeNightscout()
    app = web.Application()
    app.router.add_get("/api/v1/entries.json", fake.handle)

    server = test_utils.TestServer(app)
    await server.start_server()
    fake.url = f"http://{server.host}:{server.port}"
    try:
        yield fake
    finally:
        await server.close()


@pytest.fixture
def make_poller():
    """Build a poller against a URL with in-memory settings and a fixed clock."""

    def _make(url: str, config: Optional[PollerConfig] = None, **settings: Any) -> NightscoutPoller:
        values = {
            "ServerURL": url,
            "APISecret": "secret",
            "ShowValuesInMmol": False,
            "ServerInMmol": False,
        }
        values.update(settings)
        return NightscoutPoller(
            MemorySettings(values),
            config or PollerConfig(poll_interval=30.0, request_timeout=5.0),
            clock=lambda: NOW,
            local_tz=timezone.utc,
        )

    return _make
