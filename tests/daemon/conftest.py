"""Shared fixtures for daemon HTTP tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from pipeforge.daemon.app import app
from pipeforge.daemon.queue import ExecutionQueue
from pipeforge.daemon.settings import PipeforgeSettings, get_settings

REMOTE_CONFIGS: dict[str, dict] = {
    "/demo.json": {
        "name": "demo",
        "plugins": {"dataCollect": {"package": "@scope/collector", "params": {"url": "x"}}},
    },
    "/evil.json": {
        "name": "demo",
        "plugins": {"dataCollect": {"package": "../local/evil", "params": {"url": "x"}}},
    },
}


def remote_handler(request: httpx.Request) -> httpx.Response:
    """Serve ``REMOTE_CONFIGS`` by path; 404 for anything else."""
    body = REMOTE_CONFIGS.get(request.url.path)
    if body is None:
        return httpx.Response(404)
    return httpx.Response(200, json=body)


@pytest.fixture
async def queue() -> AsyncIterator[ExecutionQueue]:
    q = ExecutionQueue()
    yield q
    await q.aclose(timeout=5)


@pytest.fixture
async def remote_client() -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client whose requests are served by ``remote_handler``."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(remote_handler)) as rc:
        yield rc


@pytest.fixture
async def client(
    queue: ExecutionQueue,
    settings: PipeforgeSettings,
    remote_client: httpx.AsyncClient,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app.

    The app lifespan does NOT run under ``ASGITransport``, so state fields are
    pre-set: a fresh queue, a mock-transport HTTP client and temp settings.
    """
    app.dependency_overrides[get_settings] = lambda: settings

    app.state.queue = queue
    app.state.http_client = remote_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.queue = None
    app.state.http_client = None
    app.dependency_overrides.clear()
